"""
Learned Attention for Tensor Logic

Scaled dot-product attention over a batch of atom embeddings X ∈ R^(n×D):
    Q = X @ W_q,  K = X @ W_k,  V = X @ W_v          (W_* ∈ R^(D×H))
    A = softmax_rows( Q @ K^T / sqrt(H) / τ )
    Y = A @ (V @ W_o)                                 (W_o ∈ R^(H×D))

The four projection matrices are buffers, not autograd parameters: they are
updated by the engine's hand-rolled Adam step. The backward pass is a
deliberate shortcut that deposits a scaled copy of the output gradient on
each atom's truth-value gradient and does not reach the projections.
"""

import math
from typing import Optional, Sequence

import torch
import torch.nn as nn

from ..config.constants import ATTENTION_GRAD_SCALE, DEFAULT_TEMPERATURE, EMBED_DIM, HIDDEN_DIM
from .atomspace import Atom
from .functional import softmax, xavier_uniform


class AttentionMechanism(nn.Module):
    """
    Single-layer Q/K/V attention with an output projection.

    Buffers:
        query_weights, key_weights, value_weights: [D, H]
        output_weights: [H, D]
    """

    def __init__(
        self,
        embed_dim: int = EMBED_DIM,
        hidden_dim: int = HIDDEN_DIM,
        temperature: float = DEFAULT_TEMPERATURE,
        generator: Optional[torch.Generator] = None,
    ):
        super().__init__()
        self.embed_dim = embed_dim
        self.hidden_dim = hidden_dim
        self.temperature = temperature

        self.register_buffer("query_weights", xavier_uniform(embed_dim, hidden_dim, generator=generator))
        self.register_buffer("key_weights", xavier_uniform(embed_dim, hidden_dim, generator=generator))
        self.register_buffer("value_weights", xavier_uniform(embed_dim, hidden_dim, generator=generator))
        self.register_buffer("output_weights", xavier_uniform(hidden_dim, embed_dim, generator=generator))

    def projections(self):
        """The four projection matrices, in Q, K, V, O order."""
        return [self.query_weights, self.key_weights, self.value_weights, self.output_weights]

    @torch.no_grad()
    def attention_scores(self, embeddings: torch.Tensor) -> torch.Tensor:
        """
        Row-normalized attention matrix.

        Args:
            embeddings: [n, D] atom embeddings

        Returns:
            A: [n, n], each row sums to 1
        """
        queries = embeddings @ self.query_weights
        keys = embeddings @ self.key_weights
        scores = queries @ keys.t() / math.sqrt(self.hidden_dim) / self.temperature
        return softmax(scores, dim=1)

    @torch.no_grad()
    def forward(self, embeddings: torch.Tensor) -> torch.Tensor:
        """
        Attention transform of a batch.

        Args:
            embeddings: [n, D] atom embeddings

        Returns:
            Y: [n, D] attended embeddings
        """
        values = embeddings @ self.value_weights
        projected = values @ self.output_weights
        return self.attention_scores(embeddings) @ projected

    @staticmethod
    def backward(grad_output: torch.Tensor, atoms: Sequence[Optional[Atom]]):
        """
        Distribute output gradients onto truth-value gradients.

        tv.grad_i += 0.1 * dY_i
        """
        for i, atom in enumerate(atoms):
            if atom is None:
                continue
            atom.tv.gradient += grad_output[i] * ATTENTION_GRAD_SCALE
