"""
Inference Engine for Tensor Logic

Orchestrates one reasoning call:
    1. Retrieving: a = softmax(q · E^T / sqrt(D)), relevant = top-k(a)
    2. Selecting:  rule r is satisfied iff every premise P_i has
                   max_{x ∈ relevant} sim(P_i, x) ≥ 0.5;
                   pick argmax_r Σ_i w_i max_x sim(P_i, x)
    3. Applying:   s = r.apply(), record (r, C, s * ρ_r, a[relevant])
    4. Terminate:  sim(q, C) > 0.9 -> Satisfied
                   steps == bound  -> Exhausted
                   no rule         -> NoRule

Training (train_step):
    L = (s_pred - s_target)²  on the final conclusion
    backward: rule gradients -> shared buffer -> rule weight steps,
              then one Adam step per projection matrix

Backward passes are approximate and hand-derived: they reach rule weights,
premise weights and the four attention projections only.

The engine is single-threaded and holds no locks. Callers must serialize
access to an engine and its AtomSpace.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import torch
import torch.nn as nn

from ..config.constants import HIDDEN_DIM
from ..config.settings import Settings, settings as default_settings
from ..core.atomspace import Atom, AtomSpace
from ..core.attention import AttentionMechanism
from ..core.functional import cosine_similarity
from ..core.rules import Rule
from ..core.truth import TruthValue
from ..errors import ConfigurationError
from ..training.loss import StrengthLoss, final_strength
from ..training.optimizer import GradientContext

logger = logging.getLogger(__name__)


class InferenceState(Enum):
    IDLE = "idle"
    RETRIEVING = "retrieving"
    SELECTING = "selecting"
    APPLYING = "applying"
    SATISFIED = "satisfied"
    EXHAUSTED = "exhausted"
    NO_RULE = "no_rule"


@dataclass(eq=False)
class InferenceNode:
    """One rule application in an inference chain."""

    rule: Rule
    conclusion: Atom
    confidence: float
    attention_pattern: torch.Tensor


class InferenceEngine(nn.Module):
    """
    Neural-symbolic inference engine.

    Owns the rule list, the current inference chain, the learned attention
    projections and the gradient context. The AtomSpace is shared with the
    caller.
    """

    def __init__(
        self,
        atomspace: AtomSpace,
        settings: Optional[Settings] = None,
        hidden_dim: int = HIDDEN_DIM,
        generator: Optional[torch.Generator] = None,
    ):
        super().__init__()
        if atomspace is None:
            raise ConfigurationError("InferenceEngine requires an AtomSpace")

        self.atomspace = atomspace
        self.settings = settings or default_settings
        self.hidden_dim = hidden_dim

        self.rules: List[Rule] = []
        self.inference_chain: List[InferenceNode] = []
        self.state = InferenceState.IDLE
        self.termination: Optional[InferenceState] = None

        # Learned attention and its optimizer state
        self.attention = AttentionMechanism(
            embed_dim=atomspace.embed_dim,
            hidden_dim=hidden_dim,
            temperature=self.settings.temperature,
            generator=generator,
        )
        self.grad_ctx = GradientContext(4 * atomspace.embed_dim * hidden_dim)
        self.loss_fn = StrengthLoss()

        self.eval()
        logger.info(
            "InferenceEngine created (capacity=%d, D=%d, H=%d)",
            atomspace.capacity,
            atomspace.embed_dim,
            hidden_dim,
        )

    @property
    def num_rules(self) -> int:
        return len(self.rules)

    def add_rule(self, rule: Optional[Rule]) -> bool:
        """
        Register a rule with the engine.

        Returns:
            False if the rule is missing or the rule limit is reached
        """
        if rule is None:
            return False
        if self.num_rules >= self.settings.max_rules:
            logger.warning("Rule limit (%d) reached, dropping %r", self.settings.max_rules, rule.name)
            return False

        if rule.id is None:
            rule.id = self.num_rules + 1
        self.rules.append(rule)
        logger.debug("Added rule %s", rule)
        return True

    def clear(self):
        """Drop all rules and the inference chain."""
        self.rules = []
        self.inference_chain = []
        self.state = InferenceState.IDLE
        self.termination = None

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def _as_query(self, query) -> Optional[torch.Tensor]:
        if query is None:
            return None
        if isinstance(query, Atom):
            return query.embedding

        query = torch.as_tensor(query, dtype=torch.float32).reshape(-1)
        if query.shape[0] != self.atomspace.embed_dim:
            logger.warning(
                "Query has dimension %d, expected %d", query.shape[0], self.atomspace.embed_dim
            )
            return None
        return query

    def _retrieve(self, query: torch.Tensor) -> List[Atom]:
        self.state = InferenceState.RETRIEVING
        self.atomspace.compute_attention(query)
        return self.atomspace.get_top_k(self.settings.top_k)

    def _select_rule(self, relevant: Sequence[Atom]) -> Tuple[Optional[Rule], float]:
        """
        Best satisfied rule for the relevant set.

        Returns:
            (rule, score), or (None, 0.0) if no rule is satisfied
        """
        self.state = InferenceState.SELECTING
        threshold = self.settings.premise_match_threshold

        best_rule = None
        best_score = 0.0

        # Newest rule first; ties keep the most recently added rule
        for rule in reversed(self.rules):
            if rule.conclusion(self.atomspace) is None:
                continue

            score = 0.0
            satisfied = True
            for w, premise in zip(rule.premise_weights.tolist(), rule.premises(self.atomspace)):
                max_sim = self.atomspace.best_match(premise, relevant)
                if max_sim < threshold:
                    satisfied = False
                    break
                score += max_sim * w

            if satisfied and score > best_score:
                best_score = score
                best_rule = rule

        return best_rule, best_score

    def infer(self, query, max_steps: int) -> Optional[List[InferenceNode]]:
        """
        Run bounded multi-step inference.

        Attention is computed once before the loop unless
        settings.recompute_attention is set.

        Args:
            query: [D] query embedding (or an Atom, whose embedding is used)
            max_steps: Upper bound on rule applications

        Returns:
            The inference chain (possibly empty), or None for an invalid query
        """
        query = self._as_query(query)
        if query is None:
            return None

        self.inference_chain = []
        relevant = self._retrieve(query)
        termination = InferenceState.EXHAUSTED

        for step in range(max_steps):
            if step > 0 and self.settings.recompute_attention:
                relevant = self._retrieve(query)

            rule, score = self._select_rule(relevant)
            if rule is None:
                termination = InferenceState.NO_RULE
                break

            self.state = InferenceState.APPLYING
            result_strength = rule.apply(self.atomspace)
            conclusion = rule.conclusion(self.atomspace)

            self.inference_chain.append(
                InferenceNode(
                    rule=rule,
                    conclusion=conclusion,
                    confidence=result_strength * rule.confidence,
                    attention_pattern=torch.tensor([a.attention_weight for a in relevant]),
                )
            )
            logger.debug(
                "Step %d: applied %s (score %.4f) -> %s", step + 1, rule.name, score, conclusion
            )

            if cosine_similarity(query, conclusion.embedding) > self.settings.satisfaction_threshold:
                termination = InferenceState.SATISFIED
                break

        self.termination = termination
        self.state = InferenceState.IDLE
        logger.debug("Inference finished: %s after %d steps", termination.value, len(self.inference_chain))
        return self.inference_chain

    def forward(self, query, max_steps: int) -> Optional[List[InferenceNode]]:
        """Forward pass = infer."""
        return self.infer(query, max_steps)

    # ------------------------------------------------------------------
    # Attention transform
    # ------------------------------------------------------------------

    def attend(self, atoms: Sequence[Atom]) -> Optional[torch.Tensor]:
        """
        Learned attention transform over a batch of atoms.

        Returns:
            [n, D] attended embeddings, or None for an empty or oversized batch
        """
        if not atoms or any(a is None for a in atoms):
            return None
        if len(atoms) > self.settings.max_batch:
            logger.warning("Attention batch of %d exceeds limit %d", len(atoms), self.settings.max_batch)
            return None

        embeddings = torch.stack([a.embedding for a in atoms])
        return self.attention(embeddings)

    def attend_backward(self, grad_output: Optional[torch.Tensor], atoms: Sequence[Atom]):
        """Deposit attention output gradients on the atoms' truth values."""
        if grad_output is None or not atoms:
            return
        self.attention.backward(grad_output, atoms)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train_step(self, query, target: Optional[TruthValue]) -> Optional[float]:
        """
        One supervised step on the final conclusion strength.

        Args:
            query: [D] query embedding
            target: Target truth value (strength is supervised)

        Returns:
            The loss, or None if inference produced no chain
        """
        if query is None or target is None:
            return None

        self.train()
        try:
            chain = self.infer(query, self.settings.train_max_steps)
            predicted = final_strength(chain)
            if predicted is None:
                return None

            loss = self.loss_fn(predicted, target)
            self.backward(self.loss_fn.error(predicted, target), loss)
        finally:
            self.eval()

        return loss

    def backward(self, error: float, loss: float = 0.0):
        """
        Propagate a strength error through the last inference chain.

        Args:
            error: s_pred - s_target
            loss: Loss value recorded on the gradient context
        """
        if not self.inference_chain:
            return

        ctx = self.grad_ctx
        ctx.zero()
        ctx.loss = loss

        for node in self.inference_chain:
            ctx.accumulate(node.rule.compute_gradient(self.atomspace, error))

        updated: List[Rule] = []
        for node in self.inference_chain:
            if node.rule not in updated:
                node.rule.update_weights(ctx)
                updated.append(node.rule)

        for weights in self.attention.projections():
            ctx.apply(weights)

        self.atomspace.training_steps += 1
        logger.info(
            "Training step %d: loss=%.6f, rules updated=%d",
            self.atomspace.training_steps,
            loss,
            len(updated),
        )
