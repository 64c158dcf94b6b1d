"""Labeled sparse Markov chains.

This package provides a small implementation of:
- bidirectional label <-> index maps,
- row-stochastic sparse matrices built from weighted (row, col) relations,
- probability vectors over arbitrary labels,
- stationary distributions by bounded power iteration,
- labeled vectors/matrices with Gram-Schmidt orthonormalization and rank.
"""

from .ix_map import IxMap
from .errors import BuildError, SizeMismatch, NonPositive, EmptyRow, EmptyMatrix
from .vector import Vector, max_difference, orthonormalize, rank
from .matrix import Matrix
from .prob import Prob
from .markov import Markov
from .equilibrium import EquilibriumResult, compute_equilibrium, solve_equilibrium
from .statistics import ChainStatistics, compute_statistics

__all__ = [
    "IxMap",
    "BuildError",
    "SizeMismatch",
    "NonPositive",
    "EmptyRow",
    "EmptyMatrix",
    "Vector",
    "max_difference",
    "orthonormalize",
    "rank",
    "Matrix",
    "Prob",
    "Markov",
    "EquilibriumResult",
    "compute_equilibrium",
    "solve_equilibrium",
    "ChainStatistics",
    "compute_statistics",
]
