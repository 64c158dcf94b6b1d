from __future__ import annotations

from typing import Dict, Hashable, Iterable, Iterator, List, Optional, Tuple
import numpy as np
import pandas as pd
from scipy import sparse

from .errors import EmptyMatrix, EmptyRow, NonPositive, SizeMismatch
from .ix_map import IxMap
from .matrix import Matrix
from .prob import Prob
from .vector import Vector


class Markov:
    """Row-stochastic sparse matrix over row labels A and column labels B.

    Every row is a probability distribution over the column labels. The
    resident storage is CSC (see `Matrix`); `row_as_pairs` builds a row-major
    view on demand.
    """

    __slots__ = ("matrix",)

    def __init__(self, matrix: Matrix):
        # callers guarantee row-stochasticity; use the builders
        self.matrix = matrix

    # ------------------------------------------------------------------
    # builders

    @classmethod
    def from_assoc(
        cls,
        expected_row_count: int,
        expected_col_count: int,
        triples: Iterable[Tuple[Hashable, Hashable, float]],
        *,
        row_labels: Optional[Iterable[Hashable]] = None,
        col_labels: Optional[Iterable[Hashable]] = None,
    ) -> "Markov":
        """Build a row-stochastic matrix from (row, col, weight) triples.

        Weights of repeated (row, col) pairs are summed, then every row is
        divided by its total.

        Parameters
        ----------
        expected_row_count, expected_col_count:
            Number of distinct row / column labels the caller expects.
        triples:
            (row label, column label, weight) with strictly positive weights.
        row_labels, col_labels:
            Optional labels to declare up front. They take the first indices
            in the order given, even if no triple mentions them.

        Raises
        ------
        EmptyMatrix
            An expected count is 0.
        NonPositive
            Some weight is <= 0 or not finite, or a row total overflows.
        SizeMismatch
            The distinct row (then column) count differs from the expected one.
        EmptyRow
            A declared row label has no outgoing weight.
        """
        if int(expected_row_count) == 0 or int(expected_col_count) == 0:
            raise EmptyMatrix()

        row_index: Dict[Hashable, int] = dict.fromkeys(row_labels or ())
        col_index: Dict[Hashable, int] = dict.fromkeys(col_labels or ())
        for i, x in enumerate(row_index):
            row_index[x] = i
        for j, y in enumerate(col_index):
            col_index[y] = j

        acc: Dict[Tuple[int, int], float] = {}
        for a, b, w in triples:
            w = float(w)
            if not (w > 0.0 and np.isfinite(w)):
                raise NonPositive(f"weight for ({a!r}, {b!r}) is not a positive finite number: {w}")
            i = row_index.setdefault(a, len(row_index))
            j = col_index.setdefault(b, len(col_index))
            acc[(i, j)] = acc.get((i, j), 0.0) + w

        row_ix_map = IxMap(row_index)
        col_ix_map = IxMap(col_index)
        if len(row_ix_map) != int(expected_row_count):
            raise SizeMismatch(expected_row_count, len(row_ix_map))
        if len(col_ix_map) != int(expected_col_count):
            raise SizeMismatch(expected_col_count, len(col_ix_map))

        n = len(acc)
        rows = np.fromiter((i for i, _ in acc), dtype=np.int64, count=n)
        cols = np.fromiter((j for _, j in acc), dtype=np.int64, count=n)
        data = np.fromiter(acc.values(), dtype=np.float64, count=n)

        totals = np.bincount(rows, weights=data, minlength=len(row_ix_map))
        empty = np.flatnonzero(~(totals > 0.0))
        if empty.size:
            raise EmptyRow(row_ix_map.label_of(int(empty[0])))
        overflow = np.flatnonzero(~np.isfinite(totals))
        if overflow.size:
            label = row_ix_map.label_of(int(overflow[0]))
            raise NonPositive(f"total weight of row {label!r} is not finite")

        data = data / totals[rows]
        csr = sparse.csr_matrix((data, (rows, cols)), shape=(len(row_ix_map), len(col_ix_map)))
        return cls(Matrix(csr.tocsc(), row_ix_map, col_ix_map))

    @classmethod
    def from_matrix(cls, matrix: Matrix) -> "Markov":
        """Row-normalize a non-negative generic Matrix."""
        nrows, ncols = matrix.shape
        if nrows == 0 or ncols == 0:
            raise EmptyMatrix()
        if np.any(matrix.values.data < 0.0) or not np.all(np.isfinite(matrix.values.data)):
            raise NonPositive("negative or non-finite value encountered")

        row_sums = matrix.get_row_sums()
        empty = np.flatnonzero(~(row_sums.values > 0.0))
        if empty.size:
            raise EmptyRow(matrix.x_ix_map.label_of(int(empty[0])))

        return cls(matrix.map_rows(row_sums, lambda v, s: v / s))

    # ------------------------------------------------------------------
    # shape and labels

    @property
    def values(self) -> sparse.csc_matrix:
        return self.matrix.values

    @property
    def row_ix_map(self) -> IxMap:
        return self.matrix.x_ix_map

    @property
    def col_ix_map(self) -> IxMap:
        return self.matrix.y_ix_map

    @property
    def shape(self) -> Tuple[int, int]:
        return self.matrix.shape

    @property
    def nnz(self) -> int:
        return self.matrix.nnz

    def row_index_of(self, a: Hashable) -> Optional[int]:
        return self.row_ix_map.index_of(a)

    def col_index_of(self, b: Hashable) -> Optional[int]:
        return self.col_ix_map.index_of(b)

    def row_label_of(self, i: int) -> Optional[Hashable]:
        return self.row_ix_map.label_of(i)

    def col_label_of(self, j: int) -> Optional[Hashable]:
        return self.col_ix_map.label_of(j)

    def to_matrix(self) -> Matrix:
        return self.matrix

    # ------------------------------------------------------------------
    # queries

    def p(self, a: Hashable, b: Hashable) -> Optional[float]:
        """P(b | a), or None if a label is unknown or the entry is not stored."""
        i = self.row_index_of(a)
        j = self.col_index_of(b)
        if i is None or j is None:
            return None
        m = self.values
        start, end = m.indptr[j], m.indptr[j + 1]
        # row indices are sorted within each column
        k = start + int(np.searchsorted(m.indices[start:end], i))
        if k < end and m.indices[k] == i:
            return float(m.data[k])
        return None

    def p_or_zero(self, a: Hashable, b: Hashable) -> float:
        p = self.p(a, b)
        return 0.0 if p is None else p

    def row_as_pairs(self, row_index: int) -> List[Tuple[int, float]]:
        """Stored (column index, probability) pairs of one row.

        This converts the whole CSC storage to CSR on every call, an O(nnz)
        cost. Cache the result if rows are read repeatedly.
        """
        nrows = self.shape[0]
        if not 0 <= row_index < nrows:
            raise IndexError(f"row index {row_index} out of range for {nrows} rows")
        csr = self.values.tocsr()
        csr.sort_indices()
        start, end = csr.indptr[row_index], csr.indptr[row_index + 1]
        return [(int(j), float(v)) for j, v in zip(csr.indices[start:end], csr.data[start:end])]

    def enumerate(self) -> Iterator[Tuple[Hashable, Hashable, float]]:
        """Iterate over (row label, column label, probability) triples."""
        return self.matrix.enumerate()

    def to_frame(self) -> pd.DataFrame:
        return self.matrix.to_frame(value_name="p")

    # ------------------------------------------------------------------
    # products

    def dot(self, prob: Prob) -> Prob:
        """Matrix · vector: ``r[a] = sum_b M[a, b] * prob[b]``, renormalized.

        `prob` is a distribution over the column labels; the result is a
        distribution over the row labels.
        """
        x = prob.aligned_to(self.col_ix_map)
        return Prob.from_vector(Vector(self.values @ x, self.row_ix_map))

    def propagate(self, prob: Prob) -> Prob:
        """One step of the chain: ``q[b] = sum_a prob[a] * M[a, b]``.

        `prob` is a distribution over the row labels; the result is over the
        column labels. Mass on labels that are not rows of this matrix is
        dropped and the result renormalized.
        """
        x = prob.aligned_to(self.row_ix_map)
        return Prob.from_vector(Vector(self.values.T @ x, self.col_ix_map))

    def __matmul__(self, prob: Prob) -> Prob:
        return self.dot(prob)

    # ------------------------------------------------------------------
    # chain diagnostics (square chains)

    def is_square(self) -> bool:
        rows, cols = self.row_ix_map, self.col_ix_map
        return len(rows) == len(cols) and all(x in rows for x in cols)

    def _require_square(self) -> None:
        if not self.is_square():
            raise ValueError("operation requires rows and columns over the same labels.")

    def compute_equilibrium(self, initial: Prob, tolerance: float, max_iterations: int, **kwargs) -> Prob:
        from .equilibrium import compute_equilibrium

        return compute_equilibrium(self, initial, tolerance, max_iterations, **kwargs)

    def entropy_rate(self, stationary: Prob) -> float:
        """Entropy rate ``-sum_i pi_i sum_j P_ij ln P_ij`` in nats."""
        self._require_square()
        pi = stationary.aligned_to(self.row_ix_map)
        coo = self.values.tocoo()
        keep = (coo.data > 0.0) & (pi[coo.row] > 0.0)
        p = coo.data[keep]
        return float(-np.sum(pi[coo.row[keep]] * p * np.log(p)))

    def detailed_balance_deviation(self, stationary: Prob) -> Matrix:
        """Matrix of probability flows ``pi_i P_ij - pi_j P_ji``.

        All zero exactly when the chain is reversible with respect to
        `stationary`.
        """
        self._require_square()
        flow = self.matrix.map_rows(stationary.vector, lambda v, p: v * p)
        return flow.binop(flow.transpose(), lambda x, y: x - y)

    def detailed_balance_deviation_sum(self, stationary: Prob) -> float:
        """``(1/2) sum_ij |pi_i P_ij - pi_j P_ji|``."""
        deviation = self.detailed_balance_deviation(stationary)
        return float(np.sum(np.abs(deviation.values.data)) / 2.0)

    def __repr__(self) -> str:
        return f"Markov(shape={self.shape}, nnz={self.nnz})"
