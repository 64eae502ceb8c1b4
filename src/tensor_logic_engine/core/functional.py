"""
Elementwise and vector helpers shared by the engine.

Activation:
    sigmoid(x) = 1 / (1 + e^-x), saturated to {0, 1} outside [-20, 20]

Softmax (max-shifted for stability):
    softmax(v)_i = exp(v_i - max v) / Σ_j exp(v_j - max v)

Cosine similarity:
    sim(a, b) = a · b / (||a|| ||b||), 0 when either norm vanishes
"""

import math
from typing import Optional

import torch

SIGMOID_SATURATION = 20.0
NORM_EPS = 1e-10


def sigmoid(x: float) -> float:
    if x > SIGMOID_SATURATION:
        return 1.0
    if x < -SIGMOID_SATURATION:
        return 0.0
    return 1.0 / (1.0 + math.exp(-x))


def softmax(values: torch.Tensor, dim: int = -1) -> torch.Tensor:
    """
    Max-shifted softmax.

    Args:
        values: Scores of any shape
        dim: Dimension to normalize over

    Returns:
        Probabilities with the same shape as values
    """
    shifted = values - values.max(dim=dim, keepdim=True).values
    exp = torch.exp(shifted)
    return exp / exp.sum(dim=dim, keepdim=True)


def cosine_similarity(a: Optional[torch.Tensor], b: Optional[torch.Tensor]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 if either vector is missing or has (near) zero norm.
    """
    if a is None or b is None:
        return 0.0

    denom = torch.norm(a).item() * torch.norm(b).item()
    if denom < NORM_EPS:
        return 0.0

    return torch.dot(a, b).item() / denom


def xavier_uniform(*shape: int, generator: Optional[torch.Generator] = None) -> torch.Tensor:
    """
    Uniform initialization scaled by the total element count.

    w ~ U(-1, 1) * sqrt(2 / size)
    """
    size = 1
    for dim in shape:
        size *= dim
    scale = math.sqrt(2.0 / size)
    return (torch.rand(*shape, generator=generator) - 0.5) * 2.0 * scale


def name_hash(name: str) -> int:
    """DJB2 hash of a name, truncated to 64 bits."""
    h = 5381
    for byte in name.encode("utf-8"):
        h = ((h << 5) + h + byte) & 0xFFFFFFFFFFFFFFFF
    return h


def hash_embedding(name: str, dim: int) -> torch.Tensor:
    """
    Deterministic embedding of a name.

    Component i is byte (hash >> (i mod 32)) & 0xFF scaled to [0, 1].
    """
    h = name_hash(name)
    return torch.tensor(
        [((h >> (i % 32)) & 0xFF) / 255.0 for i in range(dim)],
        dtype=torch.float32,
    )
