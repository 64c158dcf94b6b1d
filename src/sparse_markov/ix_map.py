from __future__ import annotations

from typing import Dict, Hashable, Iterable, Iterator, Optional, Tuple
import numpy as np


class IxMap:
    """Bidirectional map between labels and dense indices [0..n-1].

    Instances are immutable once built. Vectors and matrices derived from the
    same label space hold a reference to one shared instance.
    """

    __slots__ = ("_labels", "_index")

    def __init__(self, labels: Iterable[Hashable] = ()):
        # callers pass distinct labels; the builders below guarantee it
        self._labels: Tuple[Hashable, ...] = tuple(labels)
        self._index: Dict[Hashable, int] = {x: i for i, x in enumerate(self._labels)}
        if len(self._index) != len(self._labels):
            raise ValueError("IxMap labels must be distinct.")

    @classmethod
    def from_distinct_first_seen(cls, labels: Iterable[Hashable]) -> "IxMap":
        """Index labels in the order they are first encountered."""
        return cls(dict.fromkeys(labels))

    @classmethod
    def from_distinct_sorted(cls, labels: Iterable[Hashable]) -> "IxMap":
        """Index labels in sorted order (labels must be totally ordered)."""
        return cls(sorted(dict.fromkeys(labels)))

    @property
    def size(self) -> int:
        return len(self._labels)

    @property
    def labels(self) -> Tuple[Hashable, ...]:
        return self._labels

    def index_of(self, label: Hashable) -> Optional[int]:
        return self._index.get(label)

    def label_of(self, index: int) -> Optional[Hashable]:
        if 0 <= index < len(self._labels):
            return self._labels[index]
        return None

    def items(self) -> Iterator[Tuple[int, Hashable]]:
        """Iterate over (index, label) pairs."""
        return enumerate(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._labels)

    def __contains__(self, label: object) -> bool:
        try:
            return label in self._index
        except TypeError:
            return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IxMap):
            return NotImplemented
        return self is other or self._labels == other._labels

    def __hash__(self) -> int:
        return hash(self._labels)

    def __repr__(self) -> str:
        return f"IxMap({list(self._labels)!r})"

    def reindex_from(self, source: "IxMap") -> Tuple[np.ndarray, np.ndarray]:
        """Positions to copy values from `source` into this label space.

        Returns ``(dst, src)`` integer arrays such that
        ``out[dst] = values_in_source[src]`` moves every shared label.
        Labels missing from either side are skipped.
        """
        if source is self or source._labels == self._labels:
            ix = np.arange(len(self._labels), dtype=np.int64)
            return ix, ix
        dst, src = [], []
        for i, x in enumerate(self._labels):
            j = source._index.get(x)
            if j is not None:
                dst.append(i)
                src.append(j)
        return np.asarray(dst, dtype=np.int64), np.asarray(src, dtype=np.int64)
