"""
Loss Functions for Tensor Logic Training

Squared strength error of the final conclusion:
    L = (s_pred - s_target)²
    ∂L/∂s_pred = 2 (s_pred - s_target)

Rule gradients absorb the 1/2 blend of rule application, so the engine
propagates the raw error d = s_pred - s_target.
"""

from typing import Optional

from ..core.truth import TruthValue


class StrengthLoss:
    """
    Squared error between predicted and target strength.

    Properties:
        - Ignores confidence (only strength is supervised)
        - Zero exactly when the conclusion matches the target
    """

    def __call__(self, predicted: float, target: TruthValue) -> float:
        return (predicted - target.strength) ** 2

    def error(self, predicted: float, target: TruthValue) -> float:
        """Signed error d = s_pred - s_target."""
        return predicted - target.strength


def final_strength(chain) -> Optional[float]:
    """Strength of the last conclusion in an inference chain, if any."""
    if not chain:
        return None
    return chain[-1].conclusion.tv.strength
