"""
Trainer for the Tensor Logic Engine

Training loop with:
    - Supervised (query, target truth value) examples
    - One engine train_step per example
    - Per-epoch loss history
    - Checkpointing of projections, optimizer moments and rule weights
"""

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

import torch

from ..core.truth import TruthValue

if TYPE_CHECKING:
    from ..models.engine import InferenceEngine

logger = logging.getLogger(__name__)

Example = Tuple[torch.Tensor, TruthValue]


class Trainer:
    """
    Trainer for an InferenceEngine.

    Each epoch:
        1. Run inference from every query
        2. Score the final conclusion strength against the target
        3. Step rule weights, premise weights and attention projections
    """

    def __init__(self, engine: "InferenceEngine", examples: Sequence[Example]):
        """
        Initialize trainer.

        Args:
            engine: Engine with rules and atoms already loaded
            examples: (query embedding, target truth value) pairs
        """
        self.engine = engine
        self.examples = list(examples)

        self.history: Dict[str, List[float]] = {
            "train_loss": [],
            "skipped": [],
            "chain_length": [],
        }

    def train_epoch(self) -> Tuple[float, int]:
        """
        Train for one epoch.

        Examples whose inference produces no chain are skipped.

        Returns:
            (average_loss, num_skipped)
        """
        total_loss = 0.0
        total_chain = 0
        num_steps = 0
        skipped = 0

        for query, target in self.examples:
            loss = self.engine.train_step(query, target)
            if loss is None:
                skipped += 1
                continue

            total_loss += loss
            total_chain += len(self.engine.inference_chain)
            num_steps += 1

        if num_steps == 0:
            return 0.0, skipped

        self.history["chain_length"].append(total_chain / num_steps)
        return total_loss / num_steps, skipped

    def train(
        self,
        num_epochs: int,
        checkpoint_dir: Optional[str] = None,
        verbose: bool = True,
    ) -> Dict[str, List[float]]:
        """
        Train the engine for multiple epochs.

        Args:
            num_epochs: Number of training epochs
            checkpoint_dir: Directory to save checkpoints
            verbose: Print progress

        Returns:
            Training history dict
        """
        if checkpoint_dir:
            Path(checkpoint_dir).mkdir(parents=True, exist_ok=True)

        best_loss = float("inf")

        for epoch in range(1, num_epochs + 1):
            start_time = time.time()

            train_loss, skipped = self.train_epoch()
            self.history["train_loss"].append(train_loss)
            self.history["skipped"].append(skipped)

            if checkpoint_dir and skipped < len(self.examples) and train_loss < best_loss:
                best_loss = train_loss
                self.save_checkpoint(f"{checkpoint_dir}/best.pt")

            if verbose:
                elapsed = time.time() - start_time
                skip_str = f"Skipped: {skipped} | " if skipped else ""
                print(f"Epoch {epoch:3d} | Loss: {train_loss:.6f} | {skip_str}Time: {elapsed:.2f}s")

        if checkpoint_dir:
            self.save_checkpoint(f"{checkpoint_dir}/final.pt")

        return self.history

    def save_checkpoint(self, path: str):
        """Save engine checkpoint."""
        torch.save({
            "model_state_dict": self.engine.state_dict(),
            "optimizer_state_dict": self.engine.grad_ctx.state_dict(),
            "rules": {
                rule.name: {
                    "weight": rule.weight,
                    "premise_weights": rule.premise_weights.clone(),
                }
                for rule in self.engine.rules
            },
            "training_steps": self.engine.atomspace.training_steps,
            "history": self.history,
        }, path)
        logger.info("Saved checkpoint to %s", path)

    def load_checkpoint(self, path: str):
        """
        Load engine checkpoint.

        Rule weights are restored by rule name; rules absent from the
        checkpoint keep their current weights.
        """
        checkpoint = torch.load(path, map_location="cpu")
        self.engine.load_state_dict(checkpoint["model_state_dict"])
        self.engine.grad_ctx.load_state_dict(checkpoint["optimizer_state_dict"])

        saved_rules = checkpoint["rules"]
        for rule in self.engine.rules:
            state = saved_rules.get(rule.name)
            if state is None:
                continue
            rule.weight = state["weight"]
            rule.premise_weights = state["premise_weights"].clone()

        self.engine.atomspace.training_steps = checkpoint["training_steps"]
        self.history = checkpoint["history"]
        logger.info("Loaded checkpoint from %s", path)
