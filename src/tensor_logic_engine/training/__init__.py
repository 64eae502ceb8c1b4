"""Training infrastructure for the Tensor Logic Engine."""

from .loss import StrengthLoss
from .optimizer import GradientContext
from .trainer import Trainer

__all__ = ["StrengthLoss", "GradientContext", "Trainer"]
