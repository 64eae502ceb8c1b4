"""
Knowledge Store (AtomSpace) for Tensor Logic

Atoms are typed, named knowledge units:
    atom = (id, type, name, tv, emb ∈ R^D, attention, outgoing ids)

The store is a bounded hypergraph with dense neural views:
    E ∈ R^(C×D)   atom embeddings, row id-1
    S ∈ R^(C×C)   pairwise cosine similarity (computed on demand)
    a ∈ R^C       retrieval attention

Retrieval attention for a query q:
    a_i = softmax_i( q · emb_i / sqrt(D) )

Atoms live in an arena indexed by id; hash buckets (id mod C) hold id lists,
and hyperedges are stored as ids resolved through the store.

Not thread-safe: callers serialize access.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set, Tuple

import torch

from ..config.constants import (
    DEFAULT_CONFIDENCE,
    DEFAULT_STRENGTH,
    EMBED_DIM,
    STORE_LEARNING_RATE,
    STORE_MOMENTUM,
    UNIFY_MAX_DEPTH,
    UNIFY_THRESHOLD,
)
from ..errors import ConfigurationError
from .functional import cosine_similarity, hash_embedding, softmax
from .matching import PatternMatcher
from .truth import TruthValue

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Atom:
    """
    Neural-symbolic knowledge unit.

    The atom embedding is distinct from the truth value embedding: at creation
    it is a 50/50 blend of the name hash code and the truth value code.
    """

    id: int
    type: int
    name: str
    tv: TruthValue
    embedding: torch.Tensor
    attention_weight: float
    outgoing: List[int] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.outgoing)

    def __str__(self):
        return f"{self.name}#{self.id} {self.tv}"


class AtomSpace(PatternMatcher):
    """
    Bounded-capacity store of atoms with attention-weighted retrieval.

    Supports:
        - Atom creation and lookup by name or id
        - Directed hyperedges between atoms
        - Cosine similarity and approximate unification
        - Softmax retrieval attention and top-k selection
    """

    def __init__(
        self,
        capacity: int,
        embed_dim: int = EMBED_DIM,
        unify_threshold: float = UNIFY_THRESHOLD,
    ):
        if capacity <= 0:
            raise ConfigurationError(f"AtomSpace capacity must be positive, got {capacity}")
        if embed_dim <= 0:
            raise ConfigurationError(f"Embedding dimension must be positive, got {embed_dim}")

        self.capacity = capacity
        self.embed_dim = embed_dim
        self.unify_threshold = unify_threshold

        # Learning state
        self.learning_rate = STORE_LEARNING_RATE
        self.momentum = STORE_MOMENTUM
        self.training_steps = 0

        self._reset()

    def _reset(self):
        self._arena: List[Atom] = []
        self._buckets: List[List[int]] = [[] for _ in range(self.capacity)]
        self.next_id = 1

        # Dense views
        self.atom_embeddings = torch.zeros(self.capacity, self.embed_dim)
        self.attention_scores = torch.zeros(self.capacity)
        self._relation_matrix: Optional[torch.Tensor] = None

    @property
    def count(self) -> int:
        return len(self._arena)

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[Atom]:
        """Iterate atoms in id order."""
        return iter(self._arena)

    def clear(self):
        """Release every atom and reset counters and dense arrays."""
        logger.info("Clearing AtomSpace (%d atoms released)", self.count)
        self._reset()

    # ------------------------------------------------------------------
    # Atoms
    # ------------------------------------------------------------------

    def create_atom(
        self,
        atom_type: int,
        name: Optional[str],
        tv: Optional[TruthValue] = None,
    ) -> Optional[Atom]:
        """
        Create an atom and insert it into the store.

        Args:
            atom_type: Integer type tag
            name: Atom name (duplicates allowed)
            tv: Truth value to copy; defaults to (0.5, 0.1)

        Returns:
            The new atom, or None if name is missing or the store is full
        """
        if name is None:
            return None
        if self.count >= self.capacity:
            logger.warning("AtomSpace full (%d atoms), cannot create %r", self.capacity, name)
            return None

        if tv is None:
            tv = TruthValue.create(DEFAULT_STRENGTH, DEFAULT_CONFIDENCE, self.embed_dim)
        else:
            tv = tv.clone()

        atom_id = self.next_id
        self.next_id += 1

        embedding = 0.5 * tv.embedding + 0.5 * hash_embedding(name, self.embed_dim)

        atom = Atom(
            id=atom_id,
            type=atom_type,
            name=name,
            tv=tv,
            embedding=embedding,
            attention_weight=1.0 / self.capacity,
        )

        self._arena.append(atom)
        self._buckets[atom_id % self.capacity].insert(0, atom_id)
        self.atom_embeddings[atom_id - 1] = embedding

        logger.debug("Created atom %s (type %d)", atom, atom_type)
        return atom

    def find_by_name(self, name: Optional[str]) -> Optional[Atom]:
        """Linear scan over all buckets; first match wins."""
        if name is None:
            return None

        for bucket in self._buckets:
            for atom_id in bucket:
                atom = self._arena[atom_id - 1]
                if atom.name == name:
                    return atom

        return None

    def find_by_id(self, atom_id: int) -> Optional[Atom]:
        """Scan the bucket at id mod capacity."""
        if atom_id is None or atom_id <= 0:
            return None

        for candidate in self._buckets[atom_id % self.capacity]:
            if candidate == atom_id:
                return self._arena[atom_id - 1]

        return None

    def targets(self, atom: Atom) -> List[Optional[Atom]]:
        """Resolve the outgoing ids of an atom."""
        return [self.find_by_id(i) for i in atom.outgoing]

    def add_link(self, atom: Optional[Atom], target: Optional[Atom]):
        """
        Append a directed edge atom -> target.

        The parent embedding moves toward the target:
            emb = (emb * n + emb_target) / (n + 1),  n = new arity
        """
        if atom is None or target is None:
            return

        atom.outgoing.append(target.id)
        n = atom.arity
        atom.embedding = (atom.embedding * n + target.embedding) / (n + 1)
        self.atom_embeddings[atom.id - 1] = atom.embedding

    def update_atom_embedding(self, atom: Optional[Atom], embedding: Optional[torch.Tensor]):
        """Overwrite an atom embedding and mirror it into the dense matrix."""
        if atom is None or embedding is None:
            return

        atom.embedding = torch.as_tensor(embedding, dtype=torch.float32).clone()
        self.atom_embeddings[atom.id - 1] = atom.embedding

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def similarity(self, a: Optional[Atom], b: Optional[Atom]) -> float:
        """Cosine similarity of atom embeddings."""
        if a is None or b is None:
            return 0.0
        return cosine_similarity(a.embedding, b.embedding)

    def unify(self, pattern: Optional[Atom], target: Optional[Atom]) -> bool:
        """
        Approximate structural unification.

        Requires equal type, similarity strictly above the threshold, equal arity,
        and pairwise unification of outgoing atoms. No bindings are produced.
        A pair already being unified higher up the recursion is assumed to
        match, and recursion stops at a fixed depth.
        """
        return self._unify(pattern, target, 0, set())

    def _unify(
        self,
        pattern: Optional[Atom],
        target: Optional[Atom],
        depth: int,
        in_progress: Set[Tuple[int, int]],
    ) -> bool:
        if pattern is None or target is None:
            return False
        if pattern.type != target.type:
            return False
        if self.similarity(pattern, target) <= self.unify_threshold:
            return False
        if pattern.arity != target.arity:
            return False

        key = (pattern.id, target.id)
        if key in in_progress:
            return True
        if depth >= UNIFY_MAX_DEPTH:
            logger.debug("Unification depth limit reached at %s / %s", pattern, target)
            return False

        in_progress.add(key)
        try:
            for p_child, t_child in zip(self.targets(pattern), self.targets(target)):
                if not self._unify(p_child, t_child, depth + 1, in_progress):
                    return False
        finally:
            in_progress.discard(key)

        return True

    # ------------------------------------------------------------------
    # Dense views
    # ------------------------------------------------------------------

    def update_embeddings(self):
        """
        Recompute the pairwise similarity matrix for all atoms.

        O(n²); call after a batch of insertions.
        """
        if self._relation_matrix is None:
            self._relation_matrix = torch.zeros(self.capacity, self.capacity)

        atoms = self._arena
        for i in range(len(atoms)):
            for j in range(i + 1, len(atoms)):
                sim = self.similarity(atoms[i], atoms[j])
                self._relation_matrix[i, j] = sim
                self._relation_matrix[j, i] = sim

    def relation(self, a: Atom, b: Atom) -> float:
        """Stored pairwise similarity (0 until update_embeddings runs)."""
        if self._relation_matrix is None:
            return 0.0
        return self._relation_matrix[a.id - 1, b.id - 1].item()

    def compute_attention(self, query: Optional[torch.Tensor]):
        """
        Softmax retrieval attention of every atom against a query.

        Sets each atom's attention weight; weights sum to 1.
        """
        if query is None or self.count == 0:
            return

        query = torch.as_tensor(query, dtype=torch.float32)
        embeddings = torch.stack([atom.embedding for atom in self._arena])
        scores = softmax(embeddings @ query / math.sqrt(self.embed_dim))

        self.attention_scores[: self.count] = scores
        for atom, weight in zip(self._arena, scores.tolist()):
            atom.attention_weight = weight

    def get_top_k(self, k: int) -> List[Atom]:
        """
        Select the k atoms with highest attention weight.

        Repeated argmax, O(k·n). Returns min(k, count) distinct atoms in
        descending weight order; ties go to the lower id.
        """
        if k <= 0:
            return []

        k = min(k, self.count)
        selected: Set[int] = set()
        result = []

        for _ in range(k):
            best = None
            max_weight = -1.0
            for atom in self._arena:
                if atom.id in selected:
                    continue
                if atom.attention_weight > max_weight:
                    max_weight = atom.attention_weight
                    best = atom

            if best is None:
                break
            selected.add(best.id)
            result.append(best)

        return result
