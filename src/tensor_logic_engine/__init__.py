"""
Tensor Logic Engine: Neural-Symbolic Reasoning over an AtomSpace

Mathematical foundation:
    - Beliefs are truth values (strength, confidence) with embeddings
    - Knowledge is a bounded hypergraph of atoms with dense neural views
    - Reasoning is attention-guided forward chaining over weighted rules
"""

from .config import Settings, settings
from .core import (
    Atom,
    AtomSpace,
    AttentionMechanism,
    PatternMatcher,
    Rule,
    TruthValue,
    abduction,
    deduction,
    induction,
    merge,
    revision,
)
from .errors import ConfigurationError, TensorLogicError
from .models import InferenceEngine, InferenceNode, InferenceState
from .training import GradientContext, StrengthLoss, Trainer

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "settings",
    "Atom",
    "AtomSpace",
    "AttentionMechanism",
    "PatternMatcher",
    "Rule",
    "TruthValue",
    "abduction",
    "deduction",
    "induction",
    "merge",
    "revision",
    "ConfigurationError",
    "TensorLogicError",
    "InferenceEngine",
    "InferenceNode",
    "InferenceState",
    "GradientContext",
    "StrengthLoss",
    "Trainer",
]
