"""Core symbolic and neural components for Tensor Logic."""

from .truth import TruthValue, merge, revision, deduction, induction, abduction
from .matching import PatternMatcher
from .atomspace import Atom, AtomSpace
from .rules import Rule
from .attention import AttentionMechanism

__all__ = [
    "TruthValue",
    "merge",
    "revision",
    "deduction",
    "induction",
    "abduction",
    "PatternMatcher",
    "Atom",
    "AtomSpace",
    "Rule",
    "AttentionMechanism",
]
