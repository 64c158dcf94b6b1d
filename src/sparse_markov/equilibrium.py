from __future__ import annotations

from dataclasses import dataclass
import time
import numpy as np

from .markov import Markov
from .prob import Prob

# Solver defaults
TOLERANCE = 1e-10
MAX_ITERATIONS = 1000
LAZINESS = 0.5


@dataclass(frozen=True)
class EquilibriumResult:
    distribution: Prob  # over the chain's row labels
    iterations: int     # lazy steps applied to reach `distribution`
    converged: bool
    residual: float     # max |pi · M - pi| measured at the last check


def solve_equilibrium(
    markov: Markov,
    initial: Prob,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
    *,
    laziness: float = LAZINESS,
    progress_every: int = 0,
) -> EquilibriumResult:
    """Stationary distribution of a square chain by power iteration.

    Each step applies the lazy kernel ``(1 - laziness) * M + laziness * I``:

        pi_{k+1} = (1 - laziness) * (pi_k · M) + laziness * pi_k

    which has the same stationary distributions as M but no periodicity, so
    cycles converge as well. ``laziness=0`` is plain power iteration.

    Parameters
    ----------
    markov:
        Chain whose row and column labels are the same set.
    initial:
        Starting distribution; aligned onto the chain's row labels by label.
    tolerance:
        Stop once the iterate pi satisfies max |pi · M - pi| < tolerance;
        that iterate is returned. The test is on M itself, so it means the
        same thing for every `laziness`.
    max_iterations:
        Iteration budget. Running out is not an error.
    laziness:
        Holding probability in [0, 1).
    progress_every:
        If > 0, print a progress line every that many iterations.

    Returns
    -------
    EquilibriumResult
        The last iterate, with how it was reached.
    """
    if not markov.is_square():
        raise ValueError("Equilibrium requires rows and columns over the same labels.")
    laziness = float(laziness)
    if not 0.0 <= laziness < 1.0:
        raise ValueError("laziness must be in [0, 1).")

    rows = markov.row_ix_map
    # column j of M feeds row slot perm[j]
    perm = np.fromiter((rows.index_of(y) for y in markov.col_ix_map), dtype=np.int64, count=len(rows))
    mt = markov.values.T.tocsr()

    p = np.array(initial.aligned_to(rows), dtype=np.float64)
    s = float(p.sum())
    if s > 0:
        p /= s
    else:
        # no mass on the chain's labels: start from uniform
        p = np.full(len(rows), 1.0 / len(rows), dtype=np.float64)

    residual = float("inf")
    t0 = time.time()
    for k in range(int(max_iterations)):
        step = np.zeros_like(p)
        step[perm] = mt @ p

        # stationarity defect of the current iterate, independent of laziness
        residual = float(np.max(np.abs(step - p))) if p.size else 0.0
        if residual < float(tolerance):
            return EquilibriumResult(Prob(p, rows), k, True, residual)

        new = (1.0 - laziness) * step + laziness * p

        # guard against floating drift over many iterations
        s = float(new.sum())
        if s > 0:
            new /= s
        p = new

        if progress_every and (k + 1) % int(progress_every) == 0:
            elapsed = time.time() - t0
            print(f"  equilibrium iteration {k+1}/{max_iterations}: residual {residual:.3e} (elapsed {elapsed:.1f}s)")

    return EquilibriumResult(Prob(p, rows), int(max_iterations), False, residual)


def compute_equilibrium(
    markov: Markov,
    initial: Prob,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
    *,
    laziness: float = LAZINESS,
    progress_every: int = 0,
) -> Prob:
    """Best-effort stationary distribution; never fails on non-convergence.

    See `solve_equilibrium` for the iteration. Returns the last computed
    distribution whether or not the tolerance was reached.
    """
    return solve_equilibrium(
        markov,
        initial,
        tolerance,
        max_iterations,
        laziness=laziness,
        progress_every=progress_every,
    ).distribution
