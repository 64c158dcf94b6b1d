from __future__ import annotations

from typing import Callable, Hashable, Iterable, Iterator, List, Optional, Tuple
import numpy as np
import pandas as pd
from scipy import sparse

from .ix_map import IxMap
from .vector import Vector


class Matrix:
    """Sparse float matrix with labeled rows (X) and columns (Y).

    Storage is CSC: column extraction and matrix · vector products are the
    common read paths. Labels are sorted when built with `from_assoc`.
    """

    __slots__ = ("_values", "x_ix_map", "y_ix_map")

    def __init__(self, values: sparse.spmatrix, x_ix_map: IxMap, y_ix_map: IxMap):
        values = sparse.csc_matrix(values, dtype=np.float64)
        if values.shape != (len(x_ix_map), len(y_ix_map)):
            raise ValueError(
                f"Matrix shape {values.shape} does not match labels "
                f"({len(x_ix_map)}, {len(y_ix_map)})."
            )
        values.sum_duplicates()
        values.sort_indices()
        self._values = values
        self.x_ix_map = x_ix_map
        self.y_ix_map = y_ix_map

    @classmethod
    def from_assoc(cls, assoc: Iterable[Tuple[Hashable, Hashable, float]]) -> "Matrix":
        """Build from (x, y, value) triples; repeated (x, y) entries are summed."""
        xs, ys, vs = [], [], []
        for x, y, v in assoc:
            xs.append(x)
            ys.append(y)
            vs.append(float(v))

        x_ix_map = IxMap.from_distinct_sorted(xs)
        y_ix_map = IxMap.from_distinct_sorted(ys)
        rows = np.fromiter((x_ix_map.index_of(x) for x in xs), dtype=np.int64, count=len(xs))
        cols = np.fromiter((y_ix_map.index_of(y) for y in ys), dtype=np.int64, count=len(ys))

        # coo -> csc sums duplicate coordinates
        coo = sparse.coo_matrix(
            (np.asarray(vs, dtype=np.float64), (rows, cols)),
            shape=(len(x_ix_map), len(y_ix_map)),
        )
        return cls(coo.tocsc(), x_ix_map, y_ix_map)

    # ------------------------------------------------------------------
    # access

    @property
    def values(self) -> sparse.csc_matrix:
        return self._values

    @property
    def shape(self) -> Tuple[int, int]:
        return self._values.shape

    @property
    def nnz(self) -> int:
        return int(self._values.nnz)

    def get(self, x: Hashable, y: Hashable) -> Optional[float]:
        """Stored value at (x, y); None for unknown labels, 0.0 for absent entries."""
        i = self.x_ix_map.index_of(x)
        j = self.y_ix_map.index_of(y)
        if i is None or j is None:
            return None
        return float(self._values[i, j])

    def _column(self, j: int) -> Vector:
        start, end = self._values.indptr[j], self._values.indptr[j + 1]
        out = np.zeros(len(self.x_ix_map), dtype=np.float64)
        out[self._values.indices[start:end]] = self._values.data[start:end]
        return Vector(out, self.x_ix_map)

    def get_column(self, y: Hashable) -> Optional[Vector]:
        """Column `y` as a dense Vector over the row labels."""
        j = self.y_ix_map.index_of(y)
        if j is None:
            return None
        return self._column(j)

    def get_columns(self) -> List[Vector]:
        return [self._column(j) for j in range(len(self.y_ix_map))]

    def get_row_sums(self) -> Vector:
        sums = np.asarray(self._values.sum(axis=1), dtype=np.float64).ravel()
        return Vector(sums, self.x_ix_map)

    def enumerate(self) -> Iterator[Tuple[Hashable, Hashable, float]]:
        """Iterate over stored (x, y, value) triples, column by column."""
        m = self._values
        for j, y in self.y_ix_map.items():
            for k in range(m.indptr[j], m.indptr[j + 1]):
                yield self.x_ix_map.label_of(int(m.indices[k])), y, float(m.data[k])

    def to_frame(self, value_name: str = "value") -> pd.DataFrame:
        return pd.DataFrame(list(self.enumerate()), columns=["row", "col", value_name])

    def to_dense(self) -> np.ndarray:
        return self._values.toarray()

    # ------------------------------------------------------------------
    # algebra

    def map_rows(self, vector: Vector, f: Callable[[float, float], float]) -> "Matrix":
        """Apply ``f(m_ij, v_i)`` to every stored entry.

        `f` is called per entry with two floats, the stored value and the
        value of `vector` at that entry's row, e.g. ``lambda m, v: m / v``.
        """
        v = vector.aligned_to(self.x_ix_map)
        m = self._values.copy()
        m.data = _elementwise(f, m.data, v[m.indices])
        return Matrix(m, self.x_ix_map, self.y_ix_map)

    def transpose(self) -> "Matrix":
        return Matrix(self._values.T.tocsc(), self.y_ix_map, self.x_ix_map)

    @property
    def T(self) -> "Matrix":
        return self.transpose()

    def _aligned(self, other: "Matrix") -> sparse.csc_matrix:
        if other.x_ix_map == self.x_ix_map and other.y_ix_map == self.y_ix_map:
            return other._values
        dst_x, src_x = self.x_ix_map.reindex_from(other.x_ix_map)
        dst_y, src_y = self.y_ix_map.reindex_from(other.y_ix_map)
        if len(src_x) != len(other.x_ix_map) or len(src_y) != len(other.y_ix_map):
            raise ValueError("binop requires both matrices to share row and column labels.")
        coo = other._values.tocoo()
        row_map = np.empty(len(other.x_ix_map), dtype=np.int64)
        row_map[src_x] = dst_x
        col_map = np.empty(len(other.y_ix_map), dtype=np.int64)
        col_map[src_y] = dst_y
        return sparse.csc_matrix(
            (coo.data, (row_map[coo.row], col_map[coo.col])), shape=self.shape
        )

    def binop(self, other: "Matrix", f: Callable[[float, float], float]) -> "Matrix":
        """Combine two same-shaped matrices entry by entry with ``f(a, b)``.

        `f` is called per entry with two floats. It is evaluated on the union
        of stored entries; an entry stored in only one operand reads as 0 in
        the other. Labels are matched by value, so `other` may come from a
        separate build.
        """
        a = self._values
        b = self._aligned(other)
        pattern = (abs(a) + abs(b)).tocoo()
        if pattern.nnz == 0:
            return Matrix(sparse.csc_matrix(self.shape, dtype=np.float64), self.x_ix_map, self.y_ix_map)
        rows, cols = pattern.row, pattern.col
        av = np.asarray(a.tocsr()[rows, cols], dtype=np.float64).ravel()
        bv = np.asarray(b.tocsr()[rows, cols], dtype=np.float64).ravel()
        out = sparse.csc_matrix((_elementwise(f, av, bv), (rows, cols)), shape=self.shape)
        return Matrix(out, self.x_ix_map, self.y_ix_map)

    def dot(self, vector: Vector) -> Vector:
        """Matrix · vector: `vector` over column labels, result over row labels."""
        y = vector.aligned_to(self.y_ix_map)
        return Vector(self._values @ y, self.x_ix_map)

    def __matmul__(self, vector: Vector) -> Vector:
        return self.dot(vector)

    def __repr__(self) -> str:
        return f"Matrix(shape={self.shape}, nnz={self.nnz})"


def _elementwise(f: Callable[[float, float], float], a: np.ndarray, b: np.ndarray) -> np.ndarray:
    if a.size == 0:
        return np.zeros(0, dtype=np.float64)
    return np.vectorize(f, otypes=[np.float64])(a, b)
