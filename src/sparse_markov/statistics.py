from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, List, Sequence, Tuple
import pandas as pd

from .equilibrium import MAX_ITERATIONS, TOLERANCE, solve_equilibrium
from .errors import EmptyMatrix
from .markov import Markov
from .prob import Prob


@dataclass
class ChainStatistics:
    """Distributions derived from a state chain and its observation kernel."""

    state_prob: Prob                 # weights of the states
    state_markov: Markov             # state -> state
    observable_markov: Markov        # state -> observable
    observed_prob: Prob              # state_prob · observable_markov
    equilibrium: Prob                # stationary distribution of state_markov
    observed_equilibrium: Prob       # equilibrium · observable_markov
    converged: bool
    iterations: int
    entropy_rate: float
    detailed_balance_deviation: float

    def summary(self) -> pd.DataFrame:
        """One row per label: its kind and each distribution it belongs to."""
        states = pd.DataFrame({
            "kind": "state",
            "weight": self.state_prob.to_series(),
            "equilibrium": self.equilibrium.to_series(),
        })
        observables = pd.DataFrame({
            "kind": "observable",
            "weight": self.observed_prob.to_series(),
            "equilibrium": self.observed_equilibrium.to_series(),
        })
        out = pd.concat([states, observables])
        out.index.name = "label"
        return out.reset_index()


def compute_statistics(
    state_weights: Sequence[Tuple[Hashable, float]],
    state_edges: Sequence[Tuple[Hashable, Hashable, float]],
    observable_edges: Sequence[Tuple[Hashable, Hashable, float]],
    observable_count: int,
    *,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
) -> ChainStatistics:
    """Build the state chain, the observation kernel and what follows from them.

    Parameters
    ----------
    state_weights:
        (state, weight) for every state; weights must be positive.
    state_edges:
        (state, state, weight) transitions. Every state needs an outgoing edge.
    observable_edges:
        (state, observable, weight) emissions. Every state needs one.
    observable_count:
        Number of distinct observables expected in `observable_edges`.
    """
    if not state_weights:
        raise EmptyMatrix("state chain is empty")

    states: List[Hashable] = [x for x, _ in state_weights]
    n = len(dict.fromkeys(states))

    state_prob = Prob.from_assoc(n, state_weights)
    state_markov = Markov.from_assoc(n, n, state_edges, row_labels=states, col_labels=states)
    observable_markov = Markov.from_assoc(n, observable_count, observable_edges, row_labels=states)

    result = solve_equilibrium(state_markov, state_prob, tolerance, max_iterations)
    equilibrium = result.distribution

    return ChainStatistics(
        state_prob=state_prob,
        state_markov=state_markov,
        observable_markov=observable_markov,
        observed_prob=state_prob.dot(observable_markov),
        equilibrium=equilibrium,
        observed_equilibrium=equilibrium.dot(observable_markov),
        converged=result.converged,
        iterations=result.iterations,
        entropy_rate=state_markov.entropy_rate(equilibrium),
        detailed_balance_deviation=state_markov.detailed_balance_deviation_sum(equilibrium),
    )
