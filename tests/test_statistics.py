import pytest

from sparse_markov import EmptyMatrix, EmptyRow, compute_statistics


def _inputs():
    state_weights = [("s0", 1.0), ("s1", 1.0), ("s2", 2.0)]
    state_edges = [("s0", "s1", 1.0), ("s1", "s2", 1.0), ("s2", "s0", 1.0)]
    observable_edges = [("s0", "lo", 1.0), ("s1", "lo", 1.0), ("s2", "hi", 1.0)]
    return state_weights, state_edges, observable_edges


def test_observed_and_equilibrium_distributions() -> None:
    weights, edges, observable = _inputs()
    stats = compute_statistics(weights, edges, observable, 2, tolerance=1e-10, max_iterations=1000)

    assert stats.state_prob.probability_of("s2") == pytest.approx(0.5)
    assert stats.observed_prob.probability_of("lo") == pytest.approx(0.5)
    assert stats.observed_prob.probability_of("hi") == pytest.approx(0.5)

    assert stats.converged
    for s in ("s0", "s1", "s2"):
        assert stats.equilibrium.probability_of(s) == pytest.approx(1.0 / 3.0, abs=1e-8)
    assert stats.observed_equilibrium.probability_of("lo") == pytest.approx(2.0 / 3.0, abs=1e-8)
    assert stats.entropy_rate == pytest.approx(0.0, abs=1e-12)
    assert stats.detailed_balance_deviation == pytest.approx(1.0, abs=1e-8)


def test_summary_frame() -> None:
    weights, edges, observable = _inputs()
    df = compute_statistics(weights, edges, observable, 2).summary()
    assert list(df.columns) == ["label", "kind", "weight", "equilibrium"]
    assert len(df) == 5
    assert df.loc[df["kind"] == "state", "weight"].sum() == pytest.approx(1.0)
    assert df.loc[df["kind"] == "observable", "equilibrium"].sum() == pytest.approx(1.0)


def test_state_without_transition() -> None:
    weights, edges, observable = _inputs()
    with pytest.raises(EmptyRow) as info:
        compute_statistics(weights, edges[:2], observable, 2)
    assert info.value.label == "s2"


def test_empty_state_chain() -> None:
    with pytest.raises(EmptyMatrix):
        compute_statistics([], [], [], 0)
