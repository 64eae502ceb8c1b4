"""
Pattern Matching Interface

Abstract interface for anything that can compare atoms.
The knowledge store implements it directly.
"""

from abc import ABC, abstractmethod
from typing import Optional


class PatternMatcher(ABC):
    """
    Abstract base class for atom matchers.

    Implementations must provide:
        - similarity(): Graded match in [-1, 1]
        - unify(): Boolean structural match
    """

    @abstractmethod
    def similarity(self, a: Optional["Atom"], b: Optional["Atom"]) -> float:
        """
        Graded similarity of two atoms.

        Args:
            a: First atom (may be None)
            b: Second atom (may be None)

        Returns:
            Similarity score, 0.0 if either atom is missing
        """
        pass

    @abstractmethod
    def unify(self, pattern: Optional["Atom"], target: Optional["Atom"]) -> bool:
        """
        Approximate structural match of pattern against target.

        No variable bindings are produced.

        Args:
            pattern: Pattern atom
            target: Candidate atom

        Returns:
            True if target matches pattern
        """
        pass

    def best_match(self, pattern: "Atom", candidates) -> float:
        """Highest similarity of pattern to any candidate, floored at 0."""
        best = 0.0
        for candidate in candidates:
            sim = self.similarity(pattern, candidate)
            if sim > best:
                best = sim
        return best
