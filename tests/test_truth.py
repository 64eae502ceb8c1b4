"""
Tests for the truth value algebra.

Covers construction, the five combinators, and their handling of
missing inputs.
"""

import math

import pytest
import torch

from tensor_logic_engine.core.functional import sigmoid
from tensor_logic_engine.core.truth import (
    TruthValue,
    abduction,
    deduction,
    evidence_from_confidence,
    induction,
    merge,
    phase_embedding,
    revision,
)


class TestCreate:
    """Tests for TruthValue.create."""

    @pytest.mark.parametrize("strength,confidence", [(0.0, 0.0), (0.3, 0.7), (1.0, 0.5), (0.9, 0.99)])
    def test_fields_round_trip(self, strength, confidence):
        tv = TruthValue.create(strength, confidence)

        assert tv.strength == strength
        assert tv.confidence == confidence
        assert tv.evidence >= 0.0

    def test_evidence_formula(self):
        tv = TruthValue.create(0.5, 0.8)
        assert tv.evidence == pytest.approx(0.8 / 0.2, rel=1e-6)

    def test_embedding_shape_and_gradient(self):
        tv = TruthValue.create(0.5, 0.5, dim=16)

        assert tv.dim == 16
        assert tv.gradient.shape == tv.embedding.shape
        assert torch.count_nonzero(tv.gradient) == 0

    def test_phase_embedding_components(self):
        emb = phase_embedding(0.7, 0.2, dim=8)

        assert emb[0].item() == pytest.approx(0.7)
        # i = D/2 puts the full weight on confidence
        assert emb[4].item() == pytest.approx(0.2, abs=1e-6)

    def test_clone_is_independent(self):
        tv = TruthValue.create(0.6, 0.4)
        copy = tv.clone()

        copy.strength = 0.1
        copy.embedding[0] = 99.0

        assert tv.strength == 0.6
        assert tv.embedding[0].item() != 99.0


class TestDeduction:
    """Tests for deduction (A->B), (B->C) => (A->C)."""

    def test_strength_is_product(self):
        result = deduction(TruthValue.create(0.9, 0.8), TruthValue.create(0.7, 0.6))
        assert result.strength == pytest.approx(0.63, abs=1e-4)

    def test_confidence(self):
        a = TruthValue.create(0.9, 0.8)
        b = TruthValue.create(0.7, 0.6)
        result = deduction(a, b)

        expected = 0.8 * 0.6 * (0.9 * 0.7 + 0.1 * 0.3)
        assert result.confidence == pytest.approx(expected)
        assert result.evidence == pytest.approx(min(a.evidence, b.evidence))

    def test_embedding_is_elementwise_product(self):
        a = TruthValue.create(0.9, 0.8)
        b = TruthValue.create(0.7, 0.6)
        result = deduction(a, b)

        assert torch.allclose(result.embedding, a.embedding * b.embedding)

    def test_returns_fresh_value(self):
        a = TruthValue.create(0.9, 0.8)
        b = TruthValue.create(0.7, 0.6)
        result = deduction(a, b)

        assert result is not a and result is not b
        assert a.strength == 0.9


class TestMerge:
    """Tests for confidence-weighted merge."""

    def test_agreeing_observations(self):
        a = TruthValue.create(0.8, 0.6)
        result = merge(a, TruthValue.create(0.8, 0.6))

        assert result.strength == pytest.approx(0.8, abs=1e-6)
        assert result.confidence == pytest.approx(1.2 / 2.2)
        assert result.evidence == pytest.approx(2 * a.evidence)

    def test_low_confidence_agreement_raises_confidence(self):
        result = merge(TruthValue.create(0.8, 0.3), TruthValue.create(0.8, 0.3))
        assert result.confidence > 0.3

    def test_weighted_by_confidence(self):
        result = merge(TruthValue.create(1.0, 0.75), TruthValue.create(0.0, 0.25))
        assert result.strength == pytest.approx(0.75, abs=1e-6)

    def test_symmetric(self):
        a = TruthValue.create(0.2, 0.4)
        b = TruthValue.create(0.9, 0.7)

        ab = merge(a, b)
        ba = merge(b, a)

        assert ab.strength == pytest.approx(ba.strength)
        assert ab.confidence == pytest.approx(ba.confidence)
        assert torch.allclose(ab.embedding, ba.embedding)


class TestRevision:
    """Tests for evidence-weighted revision."""

    def test_evidence_weighting(self):
        a = TruthValue.create(0.9, 0.5)
        b = TruthValue.create(0.3, 0.5)
        result = revision(a, b)

        k = a.evidence + b.evidence
        assert result.evidence == pytest.approx(k)
        assert result.confidence == pytest.approx(k / (k + 1.0))
        assert result.strength == pytest.approx(0.6)

    def test_zero_evidence_averages(self):
        result = revision(TruthValue.create(0.2, 0.0), TruthValue.create(0.6, 0.0))

        assert result.strength == pytest.approx(0.4)
        assert result.confidence == 0.0
        assert not math.isnan(result.strength)


class TestInductionAbduction:
    """Tests for induction and abduction."""

    def test_induction(self):
        a = TruthValue.create(0.5, 0.8)
        b = TruthValue.create(0.7, 0.6)
        result = induction(a, b)

        assert result.strength == pytest.approx(0.7)
        assert result.confidence == pytest.approx(0.8 * 0.6 * 0.5)
        assert torch.allclose(result.embedding, (a.embedding + b.embedding) * 0.25)

    def test_abduction(self):
        a = TruthValue.create(0.4, 0.8)
        b = TruthValue.create(0.5, 0.6)
        result = abduction(a, b)

        gate = sigmoid(torch.dot(a.embedding, b.embedding).item())
        assert result.strength == pytest.approx(0.4)
        assert result.confidence == pytest.approx(0.8 * 0.6 * 0.5)
        assert torch.allclose(result.embedding, a.embedding * gate)


@pytest.mark.parametrize("combinator", [merge, revision, deduction, induction, abduction])
def test_missing_input_returns_none(combinator):
    tv = TruthValue.create(0.5, 0.5)

    assert combinator(None, tv) is None
    assert combinator(tv, None) is None


def test_evidence_from_confidence_is_nonnegative():
    for c in [0.0, 0.1, 0.5, 0.9, 1.0]:
        assert evidence_from_confidence(c) >= 0.0
