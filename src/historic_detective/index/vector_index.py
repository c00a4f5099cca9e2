"""Exact nearest-neighbour search over precomputed embeddings.

Two metrics are supported:
- cosine similarity (text vectors): higher is better, sorted descending
- squared Euclidean distance (image vectors): lower is better, sorted ascending

Search is brute force over every stored vector. Results are deterministic for a
given snapshot and query, and ties keep insertion order (stable sort).

A ``VectorIndex`` is an immutable snapshot. ``IndexHandle`` owns the current
snapshot for a service and replaces it wholesale on ``reload()``, so a search
that already captured a snapshot never observes a half-updated index.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

import numpy as np

from historic_detective.errors import DimensionMismatch, InvalidInput
from historic_detective.models.enums import Metric, ToolStatus

logger = logging.getLogger(__name__)


class SearchHit(NamedTuple):
    """A single (id, score) pair. Score meaning depends on the metric."""

    id: str
    score: float


@dataclass
class VectorSearchResult:
    """Result of a nearest-neighbour search."""

    status: ToolStatus
    metric: Metric
    hits: list[SearchHit] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    error: DimensionMismatch | None = None

    def raise_for_status(self) -> None:
        """Re-raise the search error, if any."""
        if self.error is not None:
            raise self.error


class VectorIndex:
    """Immutable snapshot of (id, vector) pairs.

    Usage:
        index = VectorIndex(["a", "b"], [[0.1, 0.2], [0.3, 0.4]])
        result = index.search([0.1, 0.2], k=1, metric=Metric.SQUARED_L2)
        result.hits  # [SearchHit(id="a", score=0.0)]
    """

    def __init__(
        self,
        ids: Sequence[str],
        vectors: Sequence[Sequence[float]] | np.ndarray,
        *,
        dim: int | None = None,
    ) -> None:
        """Build a snapshot.

        Args:
            ids: Record ids, in insertion order. Must be unique.
            vectors: One vector per id.
            dim: Vector length. Required when the index is empty.

        Raises:
            ValueError: If the ids/vectors/dim invariants do not hold.
        """
        id_list = [str(i) for i in ids]
        if len(set(id_list)) != len(id_list):
            raise ValueError("index ids must be unique")

        if len(id_list) != len(vectors):
            raise ValueError(f"got {len(id_list)} ids for {len(vectors)} vectors")

        if len(id_list) == 0:
            if dim is None:
                raise ValueError("dim is required for an empty index")
            matrix = np.zeros((0, dim), dtype=np.float64)
        else:
            matrix = np.asarray(vectors, dtype=np.float64)
            if matrix.ndim != 2:
                raise ValueError("vectors must all have the same length")
            if dim is None:
                dim = int(matrix.shape[1])

        if matrix.shape != (len(id_list), dim):
            raise ValueError(
                f"expected {len(id_list)} vectors of length {dim}, got shape {matrix.shape}"
            )

        matrix.setflags(write=False)
        norms = np.linalg.norm(matrix, axis=1)
        norms.setflags(write=False)

        self._ids: tuple[str, ...] = tuple(id_list)
        self._matrix = matrix
        self._norms = norms
        self._dim = dim

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def ids(self) -> tuple[str, ...]:
        return self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def vector(self, record_id: str) -> list[float]:
        """Stored vector for an id (KeyError if absent)."""
        try:
            row = self._ids.index(record_id)
        except ValueError:
            raise KeyError(record_id) from None
        return self._matrix[row].tolist()

    def search(
        self,
        query_vector: Sequence[float] | np.ndarray,
        k: int,
        metric: Metric = Metric.COSINE,
    ) -> VectorSearchResult:
        """Return the k nearest stored vectors to ``query_vector``.

        Args:
            query_vector: Vector of length ``dim``.
            k: Maximum number of hits. Larger than the index returns everything.
            metric: COSINE (descending similarity) or SQUARED_L2 (ascending distance).

        Returns:
            EMPTY result for an empty index, ERROR result carrying a
            DimensionMismatch for a wrong-length query, OK otherwise.

        Raises:
            InvalidInput: If k is not positive.
        """
        if k <= 0:
            raise InvalidInput(f"k must be positive, got {k}")

        if len(self._ids) == 0:
            return VectorSearchResult(status=ToolStatus.EMPTY, metric=metric)

        query = np.asarray(query_vector, dtype=np.float64)
        if query.ndim != 1 or query.shape[0] != self._dim:
            return VectorSearchResult(
                status=ToolStatus.ERROR,
                metric=metric,
                error=DimensionMismatch(self._dim, int(query.size)),
            )

        if metric == Metric.COSINE:
            scores = self._cosine(query)
            order = np.argsort(-scores, kind="stable")
        else:
            scores = self._squared_l2(query)
            order = np.argsort(scores, kind="stable")

        hits = [SearchHit(self._ids[i], float(scores[i])) for i in order[:k]]
        return VectorSearchResult(status=ToolStatus.OK, metric=metric, hits=hits)

    def _cosine(self, query: np.ndarray) -> np.ndarray:
        # Zero-norm vectors on either side score 0.0 rather than NaN
        dots = self._matrix @ query
        denom = self._norms * float(np.linalg.norm(query))
        return np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0)

    def _squared_l2(self, query: np.ndarray) -> np.ndarray:
        diff = self._matrix - query
        return np.einsum("ij,ij->i", diff, diff)

    # ── Persistence ────────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: str | Path, *, dim: int) -> VectorIndex:
        """Load a snapshot from an ``.npz`` file with ``ids`` and ``vectors`` arrays.

        A missing file yields an empty index of the given dimension.
        """
        path = Path(path)
        if not path.exists():
            logger.warning("Embedding snapshot %s not found, using empty index", path)
            return cls([], [], dim=dim)

        with np.load(path, allow_pickle=False) as data:
            ids = [str(i) for i in data["ids"].tolist()]
            vectors = np.asarray(data["vectors"], dtype=np.float64)

        if len(ids) != len(vectors):
            raise ValueError(f"snapshot {path} has {len(ids)} ids for {len(vectors)} vectors")
        if len(ids) == 0:
            return cls([], [], dim=dim)
        index = cls(ids, vectors)
        if index.dim != dim:
            raise ValueError(f"snapshot {path} has dim {index.dim}, expected {dim}")
        return index

    def save(self, path: str | Path) -> None:
        """Write this snapshot as ``.npz``."""
        np.savez(
            Path(path),
            ids=np.array(self._ids, dtype=str),
            vectors=np.asarray(self._matrix),
        )


class IndexHandle:
    """Owner of the current ``VectorIndex`` snapshot for one embedding space.

    Readers call ``current`` (or ``search``) and keep the snapshot they got;
    ``reload()`` builds the replacement first and then swaps the reference.
    """

    def __init__(
        self,
        loader: Callable[[], VectorIndex],
        *,
        name: str,
        eager: bool = False,
    ) -> None:
        self._loader = loader
        self._name = name
        self._lock = threading.Lock()
        self._index: VectorIndex | None = None
        self._version = 0
        if eager:
            self.reload()

    @classmethod
    def from_path(cls, path: str | Path, *, dim: int, name: str) -> IndexHandle:
        return cls(lambda: VectorIndex.load(path, dim=dim), name=name)

    @classmethod
    def of(cls, index: VectorIndex, *, name: str) -> IndexHandle:
        """Handle over a fixed in-memory snapshot."""
        return cls(lambda: index, name=name, eager=True)

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> int:
        """Number of snapshots installed so far."""
        return self._version

    @property
    def current(self) -> VectorIndex:
        """The current snapshot, loading it on first access."""
        index = self._index
        if index is not None:
            return index
        with self._lock:
            if self._index is None:
                self._index = self._loader()
                self._version += 1
            return self._index

    def reload(self) -> VectorIndex:
        """Load a fresh snapshot and install it atomically."""
        fresh = self._loader()
        with self._lock:
            self._index = fresh
            self._version += 1
        logger.info(
            "Index %s reloaded: %d vectors, dim %d (version %d)",
            self._name, len(fresh), fresh.dim, self._version,
        )
        return fresh

    def search(
        self,
        query_vector: Sequence[float] | np.ndarray,
        k: int,
        metric: Metric = Metric.COSINE,
    ) -> VectorSearchResult:
        """Search one snapshot, loading it first if nothing is installed yet."""
        return self.current.search(query_vector, k, metric)
