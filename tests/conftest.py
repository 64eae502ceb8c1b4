"""
Shared fixtures for engine tests.

Stores are small and generators are seeded so projections are reproducible.
"""

import pytest
import torch

from tensor_logic_engine.config.settings import Settings
from tensor_logic_engine.core.atomspace import AtomSpace
from tensor_logic_engine.core.rules import Rule
from tensor_logic_engine.core.truth import TruthValue
from tensor_logic_engine.models.engine import InferenceEngine


# =============================================================================
# Core Component Fixtures
# =============================================================================

@pytest.fixture
def embed_dim():
    """Standard embedding dimension."""
    return 64


@pytest.fixture
def store(embed_dim):
    """Create an AtomSpace with room for 100 atoms."""
    return AtomSpace(capacity=100, embed_dim=embed_dim)


@pytest.fixture
def generator():
    """Seeded generator for projection initialization."""
    return torch.Generator().manual_seed(1234)


@pytest.fixture
def settings():
    """Default settings, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def engine(store, settings, generator):
    """Create an InferenceEngine over an empty store."""
    return InferenceEngine(store, settings=settings, generator=generator)


# =============================================================================
# Knowledge Fixtures
# =============================================================================

@pytest.fixture
def premise(store, embed_dim):
    """Premise atom with strength 0.8."""
    return store.create_atom(0, "human", TruthValue.create(0.8, 0.9, embed_dim))


@pytest.fixture
def conclusion(store, embed_dim):
    """Conclusion atom with strength 0.5."""
    return store.create_atom(0, "mortal", TruthValue.create(0.5, 0.5, embed_dim))


@pytest.fixture
def rule(premise, conclusion):
    """Single-premise rule human -> mortal."""
    return Rule.create("human_mortal", [premise], conclusion)


@pytest.fixture
def loaded_engine(engine, rule):
    """Engine with the human -> mortal rule registered."""
    engine.add_rule(rule)
    return engine
