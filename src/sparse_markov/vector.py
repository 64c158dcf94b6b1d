from __future__ import annotations

from typing import TYPE_CHECKING, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union
import numpy as np
import pandas as pd

from .ix_map import IxMap

if TYPE_CHECKING:
    from .matrix import Matrix

# vectors whose norm does not exceed this are treated as zero
RANK_EPS = 1e-10


class Vector:
    """Dense float vector indexed by the labels of an IxMap.

    `values[i]` is the entry for `ix_map.label_of(i)`. Vectors built with
    `from_assoc` use sorted label order, so two vectors over the same label
    set line up position by position.
    """

    __slots__ = ("_values", "_ix_map")

    def __init__(self, values: np.ndarray, ix_map: IxMap):
        values = np.array(values, dtype=np.float64)
        if values.ndim != 1 or values.shape[0] != len(ix_map):
            raise ValueError(
                f"Vector needs one value per label; got {values.shape} for {len(ix_map)} labels."
            )
        values.setflags(write=False)
        self._values = values
        self._ix_map = ix_map

    @classmethod
    def from_assoc(cls, assoc: Iterable[Tuple[Hashable, float]]) -> "Vector":
        """Build from (label, value) pairs; repeated labels are summed."""
        acc: dict = {}
        for x, v in assoc:
            acc[x] = acc.get(x, 0.0) + float(v)
        ix_map = IxMap.from_distinct_sorted(acc)
        values = np.fromiter((acc[x] for x in ix_map), dtype=np.float64, count=len(ix_map))
        return cls(values, ix_map)

    @classmethod
    def zeros(cls, ix_map: IxMap) -> "Vector":
        return cls(np.zeros(len(ix_map), dtype=np.float64), ix_map)

    # ------------------------------------------------------------------
    # access

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def ix_map(self) -> IxMap:
        return self._ix_map

    def __len__(self) -> int:
        return self._values.shape[0]

    def is_empty(self) -> bool:
        return self._values.shape[0] == 0

    def get(self, label: Hashable) -> Optional[float]:
        """Value at `label` if the label is known, otherwise None."""
        i = self._ix_map.index_of(label)
        if i is None:
            return None
        return float(self._values[i])

    def items(self) -> Iterator[Tuple[Hashable, float]]:
        """Iterate over (label, value) pairs."""
        for i, x in self._ix_map.items():
            yield x, float(self._values[i])

    enumerate = items

    def to_series(self, name: Optional[str] = None) -> pd.Series:
        return pd.Series(self._values.copy(), index=list(self._ix_map.labels), name=name)

    def aligned_to(self, ix_map: IxMap) -> np.ndarray:
        """Values re-laid out on `ix_map`; labels absent here read as 0."""
        if ix_map is self._ix_map:
            return self._values
        out = np.zeros(len(ix_map), dtype=np.float64)
        dst, src = ix_map.reindex_from(self._ix_map)
        out[dst] = self._values[src]
        return out

    # ------------------------------------------------------------------
    # algebra

    def norm(self) -> float:
        return float(np.sqrt(np.dot(self._values, self._values)))

    def normalized(self) -> "Vector":
        """Unit-length copy; a zero vector is returned unchanged."""
        n = self.norm()
        if n == 0.0:
            return self
        return Vector(self._values / n, self._ix_map)

    def map(self, f) -> "Vector":
        return Vector(f(self._values), self._ix_map)

    def dot(self, other: Union["Vector", "Matrix"]):
        """Vector · vector (float) or vector · matrix (Vector over columns).

        Operands are aligned by label, so differently built label spaces are
        fine as long as the labels themselves agree.
        """
        from .matrix import Matrix

        if isinstance(other, Matrix):
            x = self.aligned_to(other.x_ix_map)
            return Vector(other.values.T @ x, other.y_ix_map)
        if isinstance(other, Vector):
            return float(np.dot(self._values, other.aligned_to(self._ix_map)))
        return NotImplemented

    def _same_space(self, other: "Vector") -> np.ndarray:
        if other._ix_map != self._ix_map:
            raise ValueError("Vectors are indexed by different label spaces.")
        return other._values

    def __add__(self, other: "Vector") -> "Vector":
        return Vector(self._values + self._same_space(other), self._ix_map)

    def __sub__(self, other: "Vector") -> "Vector":
        return Vector(self._values - self._same_space(other), self._ix_map)

    def __mul__(self, other: Union["Vector", float]) -> "Vector":
        if isinstance(other, Vector):
            return Vector(self._values * self._same_space(other), self._ix_map)
        return Vector(self._values * float(other), self._ix_map)

    __rmul__ = __mul__

    def __truediv__(self, other: float) -> "Vector":
        return Vector(self._values / float(other), self._ix_map)

    def __neg__(self) -> "Vector":
        return Vector(-self._values, self._ix_map)

    def __repr__(self) -> str:
        body = ", ".join(f"{x!r}: {v:.6g}" for x, v in self.items())
        return f"Vector({{{body}}})"


def max_difference(v1: Vector, v2: Vector) -> float:
    """Maximum absolute componentwise difference (v2 aligned onto v1's labels)."""
    a = v1.values
    if a.size == 0:
        return 0.0
    return float(np.max(np.abs(a - v2.aligned_to(v1.ix_map))))


def _common_space(vectors: Sequence[Vector]) -> List[Vector]:
    first = vectors[0].ix_map
    if all(v.ix_map == first for v in vectors):
        return list(vectors)
    ix_map = IxMap.from_distinct_sorted(x for v in vectors for x in v.ix_map)
    return [Vector(v.aligned_to(ix_map), ix_map) for v in vectors]


def orthonormalize(vectors: Iterable[Vector]) -> List[Vector]:
    """Gram-Schmidt orthonormalization of `vectors`, in input order.

    Each vector has its projection on every basis vector produced so far
    removed, then is scaled to unit length. Linearly dependent inputs come
    out as zero vectors, so the output has the same length as the input.
    Vectors over different label sets are lifted to their sorted union first.
    """
    vectors = list(vectors)
    if not vectors:
        return []

    bases: List[Vector] = []
    for v in _common_space(vectors):
        r = v.values.copy()
        for b in bases:
            r = r - np.dot(r, b.values) * b.values
        n = float(np.sqrt(np.dot(r, r)))
        if n <= RANK_EPS:
            r = np.zeros_like(r)
        else:
            r = r / n
        bases.append(Vector(r, v.ix_map))
    return bases


def rank(vectors: Iterable[Vector]) -> int:
    """Dimension of the span of `vectors`."""
    return sum(1 for b in orthonormalize(vectors) if b.norm() > RANK_EPS)
