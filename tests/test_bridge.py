"""
Tests for the host bridge.

Every call receives its engine explicitly; these tests exercise the
name-based helpers and the numeric state hooks.
"""

import pytest
import torch

from tensor_logic_engine.bridge import (
    add_rule_by_names,
    cognitive_update,
    engine_add_rule,
    engine_create,
    engine_destroy,
    engine_infer,
    engine_train_step,
    goal_gradient,
    infer_by_name,
    sync_atomspace,
    sync_back,
    sync_truth_value,
    train_by_name,
)
from tensor_logic_engine.core.truth import TruthValue
from tensor_logic_engine.errors import ConfigurationError
from tensor_logic_engine.utils.metrics import chain_confidences, compute_stats, format_stats


@pytest.fixture
def host_engine(settings):
    """Engine created the way a host creates one."""
    return engine_create(100, settings=settings)


class TestLifecycle:
    """Tests for engine creation and teardown."""

    @pytest.mark.parametrize("capacity", [0, -1, 4097])
    def test_capacity_limits(self, capacity):
        with pytest.raises(ConfigurationError):
            engine_create(capacity)

    def test_create(self, host_engine):
        assert host_engine.atomspace.capacity == 100
        assert host_engine.atomspace.count == 0
        assert host_engine.num_rules == 0

    def test_destroy(self, host_engine):
        add_rule_by_names(host_engine, "r", ["a"], "b")

        engine_destroy(host_engine)

        assert host_engine.num_rules == 0
        assert host_engine.atomspace.count == 0

    def test_destroy_missing(self):
        engine_destroy(None)

    def test_missing_engine(self):
        assert engine_add_rule(None, None) is False
        assert engine_infer(None, torch.zeros(64), 5) is None
        assert engine_train_step(None, torch.zeros(64), TruthValue.create(1.0, 1.0)) is None


class TestNamedRules:
    """Tests for rule and query helpers keyed by atom name."""

    def test_add_rule_by_names_creates_atoms(self, host_engine):
        rule = add_rule_by_names(host_engine, "man_mortal", ["man", "mortal_kind"], "mortal")
        store = host_engine.atomspace

        assert rule is not None
        assert rule.id == 1
        assert store.count == 3
        for name in ["man", "mortal_kind", "mortal"]:
            atom = store.find_by_name(name)
            assert atom.type == 0
            assert atom.tv.strength == 0.5
            assert atom.tv.confidence == 0.1

    def test_add_rule_by_names_reuses_atoms(self, host_engine):
        add_rule_by_names(host_engine, "r1", ["a"], "b")
        add_rule_by_names(host_engine, "r2", ["b"], "c")

        assert host_engine.atomspace.count == 3
        assert host_engine.num_rules == 2

    def test_add_rule_by_names_rejects_empty(self, host_engine):
        assert add_rule_by_names(host_engine, "r", [], "b") is None
        assert host_engine.num_rules == 0

    def test_infer_by_name(self, host_engine):
        add_rule_by_names(host_engine, "r", ["a"], "b")

        strength, confidence = infer_by_name(host_engine, "a")

        # (0.5 + 1.0 * 0.5) / 2 keeps the prior strength
        assert strength == pytest.approx(0.5)
        assert confidence < 0.1

    def test_infer_by_name_reports_first_conclusion(self, host_engine):
        add_rule_by_names(host_engine, "r1", ["a"], "b")
        add_rule_by_names(host_engine, "r2", ["b"], "c")

        result = infer_by_name(host_engine, "a")

        first = host_engine.inference_chain[0].conclusion
        assert result == (first.tv.strength, first.tv.confidence)

    def test_infer_by_name_creates_query(self, host_engine):
        assert infer_by_name(host_engine, "ghost") is None
        assert host_engine.atomspace.find_by_name("ghost") is not None

    def test_train_by_name(self, host_engine):
        add_rule_by_names(host_engine, "r", ["a"], "b")

        loss = train_by_name(host_engine, "a", 1.0, 0.9)

        assert loss == pytest.approx(0.25, abs=0.05)
        assert host_engine.atomspace.training_steps == 1

    def test_train_by_name_unknown(self, host_engine):
        assert train_by_name(host_engine, "ghost", 1.0, 0.9) is None
        assert host_engine.atomspace.count == 0

    def test_chain_confidences(self, host_engine):
        add_rule_by_names(host_engine, "r", ["a"], "b")
        chain = engine_infer(host_engine, host_engine.atomspace.find_by_name("a"), 2)

        assert chain_confidences(chain) == [node.confidence for node in chain]
        assert chain_confidences(None) == []


class TestSyncTruthValue:
    """Tests for sync_truth_value."""

    def test_creates_new_atom(self, host_engine):
        atom = sync_truth_value(host_engine, 2, "sky_is_blue", 0.9, 0.5)

        assert atom.type == 2
        assert atom.tv.strength == 0.9
        assert host_engine.atomspace.count == 1

    def test_merges_existing_atom(self, host_engine):
        sync_truth_value(host_engine, 0, "fact", 0.9, 0.5)
        atom = sync_truth_value(host_engine, 0, "fact", 0.5, 0.5)

        assert atom.tv.strength == pytest.approx(0.7)
        assert atom.tv.confidence == pytest.approx(0.5)
        assert host_engine.atomspace.count == 1


class TestSyncAtomspace:
    """Tests for batch sync to and from the host."""

    def test_sync_atomspace_counts_atoms(self, host_engine):
        synced = sync_atomspace(host_engine, [(0, "rain", 0.7, 0.6), (1, "wet", 0.4, 0.3)])

        store = host_engine.atomspace
        assert synced == 2
        assert store.count == 2
        assert store.find_by_name("wet").type == 1
        assert store.find_by_name("rain").tv.strength == pytest.approx(0.7)

    def test_sync_atomspace_merges_duplicates(self, host_engine):
        synced = sync_atomspace(host_engine, [(0, "fact", 0.9, 0.5), (0, "fact", 0.5, 0.5)])

        atom = host_engine.atomspace.find_by_name("fact")
        assert synced == 2
        assert host_engine.atomspace.count == 1
        assert atom.tv.strength == pytest.approx(0.7)

    def test_sync_atomspace_fills_relations(self, host_engine):
        sync_atomspace(host_engine, [(0, "a", 0.5, 0.5), (0, "b", 0.5, 0.5)])

        store = host_engine.atomspace
        a, b = store.find_by_name("a"), store.find_by_name("b")
        assert store.relation(a, b) == pytest.approx(store.similarity(a, b), abs=1e-6)
        assert store.relation(a, b) != 0.0

    def test_sync_atomspace_empty(self, host_engine):
        assert sync_atomspace(host_engine, []) == 0
        assert host_engine.atomspace.count == 0

    def test_sync_back(self, host_engine):
        sync_atomspace(host_engine, [(0, "rain", 0.7, 0.6), (0, "wet", 0.4, 0.3)])

        values = sync_back(host_engine, ["rain", "wet", "ghost"])

        assert set(values) == {"rain", "wet"}
        assert values["rain"] == pytest.approx((0.7, 0.6))
        assert values["wet"] == pytest.approx((0.4, 0.3))

    def test_sync_back_reflects_inference(self, host_engine):
        sync_atomspace(host_engine, [(0, "rain", 1.0, 0.9), (0, "wet", 0.0, 0.5)])
        add_rule_by_names(host_engine, "rain_wet", ["rain"], "wet")

        infer_by_name(host_engine, "rain")
        strength, _ = sync_back(host_engine, ["wet"])["wet"]

        assert strength > 0.0


class TestCognitiveHooks:
    """Tests for cognitive_update and goal_gradient."""

    def test_cognitive_update_without_rules(self, host_engine):
        state = torch.rand(64)

        updated = cognitive_update(host_engine, state)

        assert torch.equal(updated, state)
        assert updated is not state
        query_atom = host_engine.atomspace.find_by_name("cognitive_query")
        assert query_atom.tv.strength == 0.8
        assert torch.allclose(query_atom.embedding, state)

    def test_cognitive_update_blends_conclusion(self, host_engine):
        add_rule_by_names(host_engine, "r", ["a"], "b")
        state = host_engine.atomspace.find_by_name("a").embedding.clone()

        updated = cognitive_update(host_engine, state)

        conclusion = host_engine.atomspace.find_by_name("b")
        assert torch.allclose(updated, 0.8 * state + 0.2 * conclusion.embedding, atol=1e-6)

    def test_cognitive_update_keeps_extra_state(self, host_engine):
        add_rule_by_names(host_engine, "r", ["a"], "b")
        premise = host_engine.atomspace.find_by_name("a").embedding
        state = torch.cat([premise, torch.full((8,), 3.0)])

        updated = cognitive_update(host_engine, state)

        assert updated.shape == (72,)
        assert torch.equal(updated[64:], torch.full((8,), 3.0))

    def test_cognitive_update_short_state(self, host_engine):
        updated = cognitive_update(host_engine, torch.ones(10))
        assert updated.shape == (10,)

    def test_goal_gradient_empty_store(self, host_engine):
        grad = goal_gradient(host_engine, torch.rand(64))
        assert torch.count_nonzero(grad) == 0

    def test_goal_gradient(self, host_engine):
        for i in range(8):
            sync_truth_value(host_engine, 0, f"atom{i}", 0.1 * i, 0.5)
        goal = torch.rand(64)

        grad = goal_gradient(host_engine, goal)

        expected = torch.zeros(64)
        for atom in host_engine.atomspace.get_top_k(5):
            expected += (goal - atom.embedding) * atom.attention_weight
        assert torch.allclose(grad, expected)


class TestStats:
    """Tests for engine statistics."""

    def test_compute_stats(self, host_engine):
        add_rule_by_names(host_engine, "r", ["a", "b"], "c")
        host_engine.atomspace.compute_attention(torch.rand(64))

        stats = compute_stats(host_engine)

        assert stats["num_atoms"] == 3
        assert stats["num_rules"] == 1
        assert stats["training_steps"] == 0
        assert stats["avg_attention"] == pytest.approx(1.0 / 3, abs=1e-4)

    def test_empty_stats(self, host_engine):
        stats = compute_stats(host_engine)

        assert stats["avg_attention"] == 0.0
        assert "Atoms: 0" in format_stats(stats)
