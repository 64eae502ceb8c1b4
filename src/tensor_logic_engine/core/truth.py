"""
Truth Value Algebra for Tensor Logic

A truth value is a probabilistic belief (s, c, e):
    s ∈ [0,1]  strength, degree of truth
    c ∈ [0,1]  confidence in s
    e = c / (1 - c + ε)  evidence pseudo-count

Each truth value also carries a distributed code of dimension D:
    emb[i] = s * cos(iπ/D) + c * sin(iπ/D)

Combinators (PLN style), each with an embedding-space analog:
    merge:      confidence-weighted average, c = (c1+c2) / (1+c1+c2)
    revision:   evidence-weighted average,   c = e / (e+1)
    deduction:  (A->B), (B->C) => (A->C),  s = s1*s2
    induction:  (A->B), (A->C) => (B->C),  s = s2
    abduction:  (A->B), (C->B) => (A->C),  s = s1

Every combinator returns a fresh TruthValue, or None when either input is
missing. Strength and confidence are not range checked.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

import torch

from ..config.constants import EMBED_DIM, EVIDENCE_EPS
from .functional import sigmoid

MERGE_EPS = 1e-10


def evidence_from_confidence(confidence: float) -> float:
    """e = c / (1 - c + ε)"""
    return confidence / (1.0 - confidence + EVIDENCE_EPS)


def phase_embedding(strength: float, confidence: float, dim: int = EMBED_DIM) -> torch.Tensor:
    """Phase-rotated code of (s, c): s*cos(iπ/D) + c*sin(iπ/D)."""
    angles = torch.arange(dim, dtype=torch.float32) * (math.pi / dim)
    return strength * torch.cos(angles) + confidence * torch.sin(angles)


@dataclass(eq=False)
class TruthValue:
    """
    Probabilistic truth value with an embedding and gradient accumulator.

    Invariant: embedding and gradient share the same length D.
    """

    strength: float
    confidence: float
    evidence: float
    embedding: torch.Tensor
    gradient: torch.Tensor = field(default=None)

    def __post_init__(self):
        if self.gradient is None:
            self.gradient = torch.zeros_like(self.embedding)

    @classmethod
    def create(cls, strength: float, confidence: float, dim: int = EMBED_DIM) -> "TruthValue":
        """
        Build a truth value from strength and confidence.

        Args:
            strength: Degree of truth
            confidence: Certainty in the strength
            dim: Embedding dimension

        Returns:
            TruthValue with derived evidence and phase embedding
        """
        return cls(
            strength=strength,
            confidence=confidence,
            evidence=evidence_from_confidence(confidence),
            embedding=phase_embedding(strength, confidence, dim),
        )

    @property
    def dim(self) -> int:
        return self.embedding.shape[0]

    def clone(self) -> "TruthValue":
        return TruthValue(
            strength=self.strength,
            confidence=self.confidence,
            evidence=self.evidence,
            embedding=self.embedding.clone(),
            gradient=self.gradient.clone(),
        )

    def __str__(self):
        return f"<{self.strength:.4f}, {self.confidence:.4f}>"


def merge(a: Optional[TruthValue], b: Optional[TruthValue]) -> Optional[TruthValue]:
    """
    Confidence-weighted merge.

    s = (c1*s1 + c2*s2) / (c1 + c2)
    c = (c1 + c2) / (1 + c1 + c2)
    e = e1 + e2
    """
    if a is None or b is None:
        return None

    w1 = a.confidence
    w2 = b.confidence
    total = w1 + w2 + MERGE_EPS

    return TruthValue(
        strength=(w1 * a.strength + w2 * b.strength) / total,
        confidence=(w1 + w2) / (1.0 + w1 + w2),
        evidence=a.evidence + b.evidence,
        embedding=(w1 * a.embedding + w2 * b.embedding) / total,
    )


def revision(a: Optional[TruthValue], b: Optional[TruthValue]) -> Optional[TruthValue]:
    """
    Evidence-weighted revision of two independent observations.

    w_i = e_i / (e1 + e2)
    s = w1*s1 + w2*s2,  e = e1 + e2,  c = e / (e + 1)
    """
    if a is None or b is None:
        return None

    k = a.evidence + b.evidence
    if k > 0.0:
        w1 = a.evidence / k
        w2 = b.evidence / k
    else:
        # No evidence on either side: plain average
        w1 = w2 = 0.5

    return TruthValue(
        strength=w1 * a.strength + w2 * b.strength,
        confidence=k / (k + 1.0),
        evidence=k,
        embedding=w1 * a.embedding + w2 * b.embedding,
    )


def deduction(a: Optional[TruthValue], b: Optional[TruthValue]) -> Optional[TruthValue]:
    """
    Deduction: (A->B) and (B->C) => (A->C).

    s = s1*s2
    c = c1*c2*(s1*s2 + (1-s1)*(1-s2))
    e = min(e1, e2)
    emb = emb1 ⊙ emb2
    """
    if a is None or b is None:
        return None

    s1, s2 = a.strength, b.strength

    return TruthValue(
        strength=s1 * s2,
        confidence=a.confidence * b.confidence * (s1 * s2 + (1.0 - s1) * (1.0 - s2)),
        evidence=min(a.evidence, b.evidence),
        embedding=a.embedding * b.embedding,
    )


def induction(a: Optional[TruthValue], b: Optional[TruthValue]) -> Optional[TruthValue]:
    """
    Induction: (A->B) and (A->C) => (B->C).

    s = s2,  c = c1*c2*s1,  e = min(e1, e2)*s1
    emb = 0.5*(emb1 + emb2)*s1
    """
    if a is None or b is None:
        return None

    s1 = a.strength

    return TruthValue(
        strength=b.strength,
        confidence=a.confidence * b.confidence * s1,
        evidence=min(a.evidence, b.evidence) * s1,
        embedding=(a.embedding + b.embedding) * 0.5 * s1,
    )


def abduction(a: Optional[TruthValue], b: Optional[TruthValue]) -> Optional[TruthValue]:
    """
    Abduction: (A->B) and (C->B) => (A->C).

    s = s1,  c = c1*c2*s2,  e = min(e1, e2)*s2
    emb = emb1 * σ(emb1 · emb2)
    """
    if a is None or b is None:
        return None

    s2 = b.strength
    gate = sigmoid(torch.dot(a.embedding, b.embedding).item())

    return TruthValue(
        strength=a.strength,
        confidence=a.confidence * b.confidence * s2,
        evidence=min(a.evidence, b.evidence) * s2,
        embedding=a.embedding * gate,
    )
