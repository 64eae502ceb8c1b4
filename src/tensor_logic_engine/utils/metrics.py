"""
Engine Statistics

Summary numbers exposed to hosts:
    - num_atoms: atoms in the store
    - num_rules: rules registered with the engine
    - training_steps: completed training steps
    - avg_attention: mean retrieval attention over stored atoms
    - loss: last training loss
"""

from typing import Dict, List

import torch


def compute_avg_attention(scores: torch.Tensor, count: int) -> float:
    """
    Mean attention over the first count atoms.

    After compute_attention this is 1/count, since weights sum to 1.
    """
    if count <= 0:
        return 0.0
    return scores[:count].sum().item() / count


def compute_stats(engine) -> Dict[str, float]:
    """
    Collect engine statistics.

    Args:
        engine: InferenceEngine

    Returns:
        Dict with num_atoms, num_rules, training_steps, avg_attention, loss
    """
    store = engine.atomspace
    return {
        "num_atoms": store.count,
        "num_rules": engine.num_rules,
        "training_steps": store.training_steps,
        "avg_attention": compute_avg_attention(store.attention_scores, store.count),
        "loss": engine.grad_ctx.loss,
    }


def chain_confidences(chain) -> List[float]:
    """Per-step confidences of an inference chain."""
    return [node.confidence for node in chain or []]


def format_stats(stats: Dict[str, float]) -> str:
    """Format statistics for display."""
    return (
        f"Atoms: {stats['num_atoms']} | "
        f"Rules: {stats['num_rules']} | "
        f"Steps: {stats['training_steps']} | "
        f"Attn: {stats['avg_attention']:.4f} | "
        f"Loss: {stats['loss']:.6f}"
    )
