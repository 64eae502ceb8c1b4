"""
Gradient Context with a hand-rolled Adam optimizer.

Adam update for a flat weight buffer w and gradient g, step t:
    m = β1 m + (1 - β1) g
    v = β2 v + (1 - β2) g²
    w -= lr * (m / (1 - β1^t)) / (sqrt(v / (1 - β2^t)) + ε)

The gradient buffer is shared: several sources accumulate into it before an
apply. zero() clears gradients and loss but keeps the moments and step count.
"""

from typing import Optional

import torch

from ..config.constants import ADAM_BETA1, ADAM_BETA2, ADAM_EPS, ADAM_LR
from ..errors import ConfigurationError


class GradientContext:
    """
    Accumulated gradients, Adam moments and the current loss.

    One context per engine, reused across training steps.
    """

    def __init__(
        self,
        size: int,
        lr: float = ADAM_LR,
        beta1: float = ADAM_BETA1,
        beta2: float = ADAM_BETA2,
        epsilon: float = ADAM_EPS,
    ):
        if size <= 0:
            raise ConfigurationError(f"Gradient buffer size must be positive, got {size}")

        self.size = size
        self.gradients = torch.zeros(size)
        self.m = torch.zeros(size)
        self.v = torch.zeros(size)

        self.lr = lr
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon

        self.num_steps = 0
        self.loss = 0.0

    def zero(self):
        """Clear gradients and loss."""
        self.gradients.zero_()
        self.loss = 0.0

    def accumulate(self, grads: Optional[torch.Tensor]):
        """
        Add external gradients into the shared buffer.

        Only the first min(len(grads), size) entries are used.
        """
        if grads is None:
            return

        grads = torch.as_tensor(grads, dtype=torch.float32).reshape(-1)
        n = min(grads.shape[0], self.size)
        self.gradients[:n] += grads[:n]

    @torch.no_grad()
    def apply(self, weights: Optional[torch.Tensor]):
        """
        One Adam step on a weight tensor, in place.

        The tensor is treated as a flat buffer; only its first
        min(numel, size) elements are updated.

        Args:
            weights: Contiguous weight tensor
        """
        if weights is None:
            return

        self.num_steps += 1

        bias_correction1 = 1.0 - self.beta1 ** self.num_steps
        bias_correction2 = 1.0 - self.beta2 ** self.num_steps

        flat = weights.view(-1)
        n = min(flat.shape[0], self.size)
        g = self.gradients[:n]

        self.m[:n] = self.beta1 * self.m[:n] + (1.0 - self.beta1) * g
        self.v[:n] = self.beta2 * self.v[:n] + (1.0 - self.beta2) * g * g

        m_hat = self.m[:n] / bias_correction1
        v_hat = self.v[:n] / bias_correction2

        flat[:n] -= self.lr * m_hat / (torch.sqrt(v_hat) + self.epsilon)

    def state_dict(self):
        return {
            "m": self.m.clone(),
            "v": self.v.clone(),
            "num_steps": self.num_steps,
        }

    def load_state_dict(self, state):
        self.m = state["m"].clone()
        self.v = state["v"].clone()
        self.num_steps = state["num_steps"]
