"""
Weighted Inference Rules for Tensor Logic

A rule maps premise atoms P_1..P_n to a conclusion atom C:
    C <- w · (P_1, ..., P_n)

Application (soft modus ponens):
    s* = W * Σ_i w_i s(P_i)
    c* = ρ * Π_i c(P_i)
    s(C) <- (s(C) + s*) / 2
    c(C) <- (c(C) + c*) / 2
    emb(C) <- 0.9 emb(C) + 0.1 tanh(Σ_i w_i emb(P_i))

Where:
    - W is the learned rule weight, clamped to [0, 2]
    - w is the premise mixing distribution (Σ w_i = 1, w_i ≥ 0.01)
    - ρ is the rule confidence

Gradients are hand-derived for the squared strength loss; there is no
autodiff graph.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import torch

from ..config.constants import (
    CONCLUSION_EMBED_MIX,
    DEFAULT_RULE_CONFIDENCE,
    DEFAULT_RULE_WEIGHT,
    HIDDEN_DIM,
    MAX_PREMISES,
    PREMISE_WEIGHT_FLOOR,
    PREMISE_WEIGHT_STEP,
    RULE_WEIGHT_MAX,
    RULE_WEIGHT_MIN,
    RULE_WEIGHT_STEP,
)
from .atomspace import Atom, AtomSpace
from .functional import xavier_uniform

if TYPE_CHECKING:
    from ..training.optimizer import GradientContext

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Rule:
    """
    A weighted inference rule.

    Premises and conclusion are stored as atom ids and resolved through the
    store at application time. hidden_state is reserved for recurrent
    extensions; gradient holds the rule's hand-derived gradient.
    """

    name: str
    premise_ids: List[int]
    conclusion_id: int
    premise_weights: torch.Tensor
    hidden_state: torch.Tensor
    gradient: torch.Tensor
    weight: float = DEFAULT_RULE_WEIGHT
    confidence: float = DEFAULT_RULE_CONFIDENCE
    id: Optional[int] = None

    @classmethod
    def create(
        cls,
        name: Optional[str],
        premises: Optional[Sequence[Atom]],
        conclusion: Optional[Atom],
        hidden_dim: int = HIDDEN_DIM,
    ) -> Optional["Rule"]:
        """
        Build a rule with uniform premise weights.

        Args:
            name: Rule name
            premises: 1 to 16 premise atoms
            conclusion: Conclusion atom

        Returns:
            Rule, or None if any argument is missing or the premise count
            is out of range
        """
        if name is None or premises is None or conclusion is None:
            return None

        n = len(premises)
        if n == 0 or n > MAX_PREMISES:
            logger.warning("Rule %r rejected: %d premises (allowed 1..%d)", name, n, MAX_PREMISES)
            return None
        if any(p is None for p in premises):
            return None

        return cls(
            name=name,
            premise_ids=[p.id for p in premises],
            conclusion_id=conclusion.id,
            premise_weights=torch.full((n,), 1.0 / n),
            hidden_state=xavier_uniform(hidden_dim),
            gradient=torch.zeros(hidden_dim),
        )

    @property
    def num_premises(self) -> int:
        return len(self.premise_ids)

    def premises(self, store: AtomSpace) -> List[Optional[Atom]]:
        return [store.find_by_id(i) for i in self.premise_ids]

    def conclusion(self, store: AtomSpace) -> Optional[Atom]:
        return store.find_by_id(self.conclusion_id)

    def combine(self, store: AtomSpace) -> Tuple[float, float]:
        """
        Weighted premise strength and product of premise confidences.

        Missing premises are skipped.
        """
        strength = 0.0
        confidence = 1.0
        for w, premise in zip(self.premise_weights.tolist(), self.premises(store)):
            if premise is None:
                continue
            strength += w * premise.tv.strength
            confidence *= premise.tv.confidence
        return strength, confidence

    def apply(self, store: AtomSpace) -> float:
        """
        Apply the rule to its conclusion atom.

        Args:
            store: Store holding premises and conclusion

        Returns:
            The conclusion's new (blended) strength, 0.0 if it is missing
        """
        conclusion = self.conclusion(store)
        if conclusion is None:
            return 0.0

        combined_strength, combined_confidence = self.combine(store)

        new_strength = combined_strength * self.weight
        new_confidence = combined_confidence * self.confidence

        conclusion.tv.strength = (conclusion.tv.strength + new_strength) / 2.0
        conclusion.tv.confidence = (conclusion.tv.confidence + new_confidence) / 2.0

        # Neural transform of the premise mix
        mixed = torch.zeros_like(conclusion.embedding)
        for w, premise in zip(self.premise_weights.tolist(), self.premises(store)):
            if premise is None:
                continue
            mixed += w * premise.embedding

        store.update_atom_embedding(
            conclusion,
            (1.0 - CONCLUSION_EMBED_MIX) * conclusion.embedding
            + CONCLUSION_EMBED_MIX * torch.tanh(mixed),
        )

        return conclusion.tv.strength

    def compute_gradient(self, store: AtomSpace, error: float) -> torch.Tensor:
        """
        Gradient of (s_pred - s_target)² with respect to the rule.

        With d = s_pred - s_target and the 1/2 blend of apply():
            g[0]   = ∂L/∂W   = d * Σ_i w_i s(P_i)
            g[1+i] = ∂L/∂w_i = d * W * s(P_i)

        The result is stored in self.gradient and returned.
        """
        self.gradient.zero_()
        combined_strength, _ = self.combine(store)
        self.gradient[0] = error * combined_strength

        for i, premise in enumerate(self.premises(store)):
            if premise is None:
                continue
            self.gradient[1 + i] = error * self.weight * premise.tv.strength

        return self.gradient

    def update_weights(self, grad_ctx: "GradientContext"):
        """
        Gradient step on rule weight and premise weights.

        W -= 0.01 g[0], clamped to [0, 2]
        w_i -= 0.001 g[1+i], floored at 0.01, then renormalized
        """
        if grad_ctx is None:
            return

        g = grad_ctx.gradients
        self.weight -= g[0].item() * RULE_WEIGHT_STEP
        self.weight = min(max(self.weight, RULE_WEIGHT_MIN), RULE_WEIGHT_MAX)

        n = self.num_premises
        step = g[1 : 1 + n]
        if step.shape[0] < n:
            step = torch.cat([step, torch.zeros(n - step.shape[0])])

        weights = torch.clamp(self.premise_weights - step * PREMISE_WEIGHT_STEP, min=PREMISE_WEIGHT_FLOOR)
        self.premise_weights = weights / weights.sum()

    def __str__(self):
        body = ", ".join(f"#{i}" for i in self.premise_ids)
        return f"{self.name}: #{self.conclusion_id} <- {body} (W={self.weight:.3f})"
