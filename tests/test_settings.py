"""Tests for runtime settings."""

import pytest
from pydantic import ValidationError

from tensor_logic_engine.config.settings import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        s = Settings(_env_file=None)

        assert s.top_k == 10
        assert s.premise_match_threshold == 0.5
        assert s.unify_threshold == 0.7
        assert s.satisfaction_threshold == 0.9
        assert s.train_max_steps == 5
        assert s.max_rules == 512
        assert s.max_batch == 32
        assert s.recompute_attention is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("TENSOR_LOGIC_TOP_K", "3")
        monkeypatch.setenv("TENSOR_LOGIC_RECOMPUTE_ATTENTION", "true")

        s = Settings(_env_file=None)

        assert s.top_k == 3
        assert s.recompute_attention is True

    @pytest.mark.parametrize(
        "field,value",
        [("top_k", 0), ("temperature", 0.0), ("unify_threshold", 1.5), ("max_rules", 0)],
    )
    def test_validation(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_engine_uses_unify_threshold(self):
        from tensor_logic_engine.bridge import engine_create

        custom = Settings(_env_file=None, unify_threshold=0.2)
        assert engine_create(10, settings=custom).atomspace.unify_threshold == 0.2
