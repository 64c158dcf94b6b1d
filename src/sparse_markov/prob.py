from __future__ import annotations

from typing import TYPE_CHECKING, Hashable, Iterable, Iterator, Optional, Tuple, Union
import numpy as np
import pandas as pd

from .errors import NonPositive, SizeMismatch
from .ix_map import IxMap
from .vector import Vector

if TYPE_CHECKING:
    from .markov import Markov


class Prob:
    """Probability distribution over labels: entries >= 0, summing to 1.

    Backed by a dense array of length `size`. When fewer than `size` distinct
    labels were supplied, the trailing unlabeled slots hold 0.
    """

    __slots__ = ("_values", "_ix_map")

    def __init__(self, values: np.ndarray, ix_map: IxMap):
        # callers hand over an already normalized array
        values = np.array(values, dtype=np.float64)
        if values.ndim != 1 or values.shape[0] < len(ix_map):
            raise ValueError("Prob needs at least one slot per label.")
        values.setflags(write=False)
        self._values = values
        self._ix_map = ix_map

    @classmethod
    def from_assoc(cls, size: int, assoc: Iterable[Tuple[Hashable, float]]) -> "Prob":
        """Build from (label, weight) pairs; repeated labels are summed.

        Parameters
        ----------
        size:
            Length of the distribution. May exceed the number of distinct
            labels; the extra slots are left at 0.
        assoc:
            (label, weight) pairs with strictly positive weights.

        Raises
        ------
        NonPositive
            A weight is <= 0 or not finite, or the total mass is not a
            positive finite number.
        SizeMismatch
            More distinct labels than `size`.

        Notes
        -----
        Indices follow the first-seen order of labels in `assoc`. Feeding the
        same weights in another order gives another index assignment.
        """
        acc: dict = {}
        for x, w in assoc:
            w = float(w)
            if not (w > 0.0 and np.isfinite(w)):
                raise NonPositive(f"weight for {x!r} is not a positive finite number: {w}")
            acc[x] = acc.get(x, 0.0) + w

        ix_map = IxMap.from_distinct_first_seen(acc)
        if len(ix_map) > int(size):
            raise SizeMismatch(size, len(ix_map))

        values = np.zeros(int(size), dtype=np.float64)
        for i, x in ix_map.items():
            values[i] = acc[x]

        total = float(values.sum())
        if not (total > 0.0 and np.isfinite(total)):
            raise NonPositive(f"total weight is not a positive finite number: {total}")
        return cls(values / total, ix_map)

    @classmethod
    def from_vector(cls, vector: Vector) -> "Prob":
        """Normalize a non-negative Vector, keeping its label space."""
        values = vector.values
        if values.size == 0:
            raise NonPositive("vector is empty")
        if np.any(values < 0.0) or not np.all(np.isfinite(values)):
            raise NonPositive("negative or non-finite value encountered")
        total = float(values.sum())
        if not (total > 0.0 and np.isfinite(total)):
            raise NonPositive("vector sum is not a positive finite number")
        return cls(values / total, vector.ix_map)

    @classmethod
    def uniform(cls, ix_map: IxMap) -> "Prob":
        n = len(ix_map)
        if n == 0:
            raise NonPositive("cannot spread mass over zero labels")
        return cls(np.full(n, 1.0 / n, dtype=np.float64), ix_map)

    # ------------------------------------------------------------------
    # access

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def ix_map(self) -> IxMap:
        return self._ix_map

    @property
    def size(self) -> int:
        return self._values.shape[0]

    def __len__(self) -> int:
        return self._values.shape[0]

    def __getitem__(self, index: int) -> float:
        return float(self._values[index])

    def at(self, index: int) -> Optional[float]:
        """Probability stored at `index`, or None when out of range."""
        if 0 <= index < self._values.shape[0]:
            return float(self._values[index])
        return None

    def index_of(self, label: Hashable) -> Optional[int]:
        return self._ix_map.index_of(label)

    def label_of(self, index: int) -> Optional[Hashable]:
        return self._ix_map.label_of(index)

    def probability_of(self, label: Hashable) -> Optional[float]:
        """P[X = label] if `label` is known, otherwise None."""
        i = self._ix_map.index_of(label)
        if i is None:
            return None
        return float(self._values[i])

    prob = probability_of

    def probability_or_zero(self, label: Hashable) -> float:
        p = self.probability_of(label)
        return 0.0 if p is None else p

    def items(self) -> Iterator[Tuple[Hashable, float]]:
        """Iterate over (label, probability) for the labeled slots."""
        for i, x in self._ix_map.items():
            yield x, float(self._values[i])

    enumerate = items

    @property
    def vector(self) -> Vector:
        """The labeled slots as a generic Vector sharing this label space."""
        return Vector(self._values[: len(self._ix_map)], self._ix_map)

    def to_series(self, name: Optional[str] = "p") -> pd.Series:
        return self.vector.to_series(name=name)

    def aligned_to(self, ix_map: IxMap) -> np.ndarray:
        return self.vector.aligned_to(ix_map)

    # ------------------------------------------------------------------
    # statistics

    def entropy(self) -> float:
        """Shannon entropy in nats (0 ln 0 taken as 0)."""
        p = self._values[self._values > 0.0]
        return float(-np.sum(p * np.log(p)))

    def effective_states(self) -> float:
        """exp(entropy): the number of equally likely states with the same entropy."""
        return float(np.exp(self.entropy()))

    def max_difference(self, other: "Prob") -> float:
        a = self._values[: len(self._ix_map)]
        if a.size == 0:
            return 0.0
        return float(np.max(np.abs(a - other.aligned_to(self._ix_map))))

    def dot(self, other: Union["Prob", "Markov"]):
        """Prob · Prob gives the inner product; Prob · Markov propagates one step.

        With a Markov matrix over (A, B) and this distribution over A, the
        result is the distribution over B: ``q[b] = sum_a p[a] * M[a, b]``.
        """
        from .markov import Markov

        if isinstance(other, Markov):
            return other.propagate(self)
        if isinstance(other, Prob):
            return float(np.dot(self.vector.values, other.aligned_to(self._ix_map)))
        return NotImplemented

    def __matmul__(self, other):
        return self.dot(other)

    def __repr__(self) -> str:
        body = ", ".join(f"{x!r}: {p:.6g}" for x, p in self.items())
        return f"Prob({{{body}}})"
