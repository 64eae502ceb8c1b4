"""
Host Bridge for the Tensor Logic Engine

Plain functions over an explicit engine handle, for host integrations that
pass names and numeric buffers. There is no module-level engine: every call
receives the engine it acts on.

Core host operations:
    engine_create(capacity)                         -> InferenceEngine
    engine_destroy(engine)
    engine_add_rule(engine, rule)                   -> bool
    engine_infer(engine, query, max_steps)          -> chain | None
    engine_train_step(engine, query, target)        -> loss | None

Name-based helpers create missing atoms with truth value (0.5, 0.1).
sync_atomspace / sync_back move batches of truth values between the host
and the store.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import torch

from .config.constants import DEFAULT_CONFIDENCE, DEFAULT_STRENGTH, MAX_ATOMS
from .config.settings import Settings, settings as default_settings
from .core.atomspace import Atom, AtomSpace
from .core.rules import Rule
from .core.truth import TruthValue, merge
from .errors import ConfigurationError
from .models.engine import InferenceEngine, InferenceNode

logger = logging.getLogger(__name__)

HOST_INFER_STEPS = 10
COGNITIVE_INFER_STEPS = 5
COGNITIVE_QUERY_NAME = "cognitive_query"
COGNITIVE_QUERY_TV = (0.8, 0.5)
COGNITIVE_BLEND = 0.2
GOAL_TOP_K = 5


def engine_create(capacity: int, settings: Optional[Settings] = None) -> InferenceEngine:
    """
    Create an engine over a fresh AtomSpace.

    Raises:
        ConfigurationError: capacity outside 1..MAX_ATOMS
    """
    if capacity <= 0 or capacity > MAX_ATOMS:
        raise ConfigurationError(f"Capacity must be in 1..{MAX_ATOMS}, got {capacity}")

    settings = settings or default_settings
    store = AtomSpace(capacity, unify_threshold=settings.unify_threshold)
    return InferenceEngine(store, settings=settings)


def engine_destroy(engine: Optional[InferenceEngine]):
    """Release rules, the inference chain and every atom of the store."""
    if engine is None:
        return
    engine.clear()
    engine.atomspace.clear()


def engine_add_rule(engine: Optional[InferenceEngine], rule: Optional[Rule]) -> bool:
    if engine is None:
        return False
    return engine.add_rule(rule)


def engine_infer(
    engine: Optional[InferenceEngine],
    query_embedding,
    max_steps: int,
) -> Optional[List[InferenceNode]]:
    if engine is None:
        return None
    return engine.infer(query_embedding, max_steps)


def engine_train_step(
    engine: Optional[InferenceEngine],
    query_embedding,
    target: Optional[TruthValue],
) -> Optional[float]:
    if engine is None:
        return None
    return engine.train_step(query_embedding, target)


def _get_or_create(store: AtomSpace, name: str, atom_type: int = 0) -> Optional[Atom]:
    atom = store.find_by_name(name)
    if atom is None:
        tv = TruthValue.create(DEFAULT_STRENGTH, DEFAULT_CONFIDENCE, store.embed_dim)
        atom = store.create_atom(atom_type, name, tv)
    return atom


def add_rule_by_names(
    engine: InferenceEngine,
    name: str,
    premise_names: Sequence[str],
    conclusion_name: str,
) -> Optional[Rule]:
    """
    Create and register a rule, creating missing atoms by name.

    Returns:
        The registered rule, or None on any failure
    """
    if not name or not premise_names or not conclusion_name:
        return None

    premises = []
    for premise_name in premise_names:
        atom = _get_or_create(engine.atomspace, premise_name)
        if atom is None:
            return None
        premises.append(atom)

    conclusion = _get_or_create(engine.atomspace, conclusion_name)
    if conclusion is None:
        return None

    rule = Rule.create(name, premises, conclusion, hidden_dim=engine.hidden_dim)
    if not engine.add_rule(rule):
        return None
    return rule


def infer_by_name(engine: InferenceEngine, query_name: str) -> Optional[Tuple[float, float]]:
    """
    Infer from a named query atom, creating it if needed.

    Returns:
        (strength, confidence) of the first conclusion reached, or None
    """
    query = _get_or_create(engine.atomspace, query_name)
    if query is None:
        return None

    chain = engine.infer(query.embedding, HOST_INFER_STEPS)
    if not chain:
        return None

    tv = chain[0].conclusion.tv
    return tv.strength, tv.confidence


def train_by_name(
    engine: InferenceEngine,
    query_name: str,
    target_strength: float,
    target_confidence: float,
) -> Optional[float]:
    """Train on an existing named query atom."""
    query = engine.atomspace.find_by_name(query_name)
    if query is None:
        return None

    target = TruthValue.create(target_strength, target_confidence, engine.atomspace.embed_dim)
    return engine.train_step(query.embedding, target)


def sync_truth_value(
    engine: InferenceEngine,
    atom_type: int,
    name: str,
    strength: float,
    confidence: float,
) -> Optional[Atom]:
    """
    Fold an externally held truth value into the store.

    An existing atom of that name is merged with the incoming value;
    otherwise a new atom is created.
    """
    store = engine.atomspace
    incoming = TruthValue.create(strength, confidence, store.embed_dim)

    atom = store.find_by_name(name)
    if atom is None:
        return store.create_atom(atom_type, name, incoming)

    merged = merge(atom.tv, incoming)
    if merged is not None:
        atom.tv = merged
        logger.debug("Synced %s", atom)
    return atom


def sync_atomspace(
    engine: InferenceEngine,
    atoms: Iterable[Tuple[int, str, float, float]],
) -> int:
    """
    Fold a batch of host atoms into the store.

    Each (type, name, strength, confidence) goes through sync_truth_value;
    the pairwise relation matrix is then recomputed once.

    Returns:
        Number of atoms synced
    """
    synced = 0
    for atom_type, name, strength, confidence in atoms:
        if sync_truth_value(engine, atom_type, name, strength, confidence) is not None:
            synced += 1

    engine.atomspace.update_embeddings()
    logger.info("Synced %d host atoms", synced)
    return synced


def sync_back(engine: InferenceEngine, names: Iterable[str]) -> Dict[str, Tuple[float, float]]:
    """
    Read truth values back out for the host.

    Names without an atom in the store are left out.
    """
    values = {}
    for name in names:
        atom = engine.atomspace.find_by_name(name)
        if atom is not None:
            values[name] = (atom.tv.strength, atom.tv.confidence)
    return values


def cognitive_update(engine: InferenceEngine, state: torch.Tensor) -> torch.Tensor:
    """
    Run inference from a numeric state vector and blend the result back.

    The first D components of state form the query; they are blended
    80/20 with the embedding of the first conclusion reached.

    Returns:
        Updated copy of state
    """
    store = engine.atomspace
    state = torch.as_tensor(state, dtype=torch.float32).clone()
    n = min(state.shape[0], store.embed_dim)

    query = torch.zeros(store.embed_dim)
    query[:n] = state[:n]

    query_atom = store.find_by_name(COGNITIVE_QUERY_NAME)
    if query_atom is None:
        query_atom = store.create_atom(
            0, COGNITIVE_QUERY_NAME, TruthValue.create(*COGNITIVE_QUERY_TV, store.embed_dim)
        )
    if query_atom is None:
        return state

    store.update_atom_embedding(query_atom, query)
    chain = engine.infer(query, COGNITIVE_INFER_STEPS)

    if chain:
        result = chain[0].conclusion.embedding
        state[:n] = (1.0 - COGNITIVE_BLEND) * state[:n] + COGNITIVE_BLEND * result[:n]

    return state


def goal_gradient(engine: InferenceEngine, goal_embedding: torch.Tensor) -> torch.Tensor:
    """
    Attention-weighted direction from the most relevant atoms toward a goal.

    g = Σ_{j ∈ top-5} a_j (goal - emb_j)
    """
    store = engine.atomspace
    goal = torch.as_tensor(goal_embedding, dtype=torch.float32)

    store.compute_attention(goal)
    gradient = torch.zeros(store.embed_dim)
    for atom in store.get_top_k(GOAL_TOP_K):
        gradient += (goal - atom.embedding) * atom.attention_weight

    return gradient
