import math
import numpy as np
import pytest

from sparse_markov import IxMap, Matrix, Vector, max_difference, orthonormalize, rank


def test_vector_from_assoc_sums_duplicates_sorted() -> None:
    v = Vector.from_assoc([("b", 1.0), ("a", 2.0), ("b", 0.5)])
    assert v.ix_map.labels == ("a", "b")
    assert list(v.values) == [2.0, 1.5]
    assert v.get("b") == 1.5
    assert v.get("c") is None


def test_vector_arithmetic() -> None:
    v = Vector.from_assoc([(0, 3.0), (1, 4.0)])
    w = Vector.from_assoc([(1, 1.0), (0, 1.0)])
    assert v.norm() == pytest.approx(5.0)
    assert v.normalized().values == pytest.approx([0.6, 0.8])
    assert (v + w).values == pytest.approx([4.0, 5.0])
    assert (v - w).values == pytest.approx([2.0, 3.0])
    assert (v * w).values == pytest.approx([3.0, 4.0])
    assert (v * 2).values == pytest.approx([6.0, 8.0])
    assert (v / 2).values == pytest.approx([1.5, 2.0])
    assert v.dot(w) == pytest.approx(7.0)


def test_dot_aligns_labels() -> None:
    v = Vector(np.array([1.0, 2.0]), IxMap(["a", "b"]))
    w = Vector(np.array([10.0, 1.0]), IxMap(["b", "a"]))
    assert v.dot(w) == pytest.approx(1.0 * 1.0 + 2.0 * 10.0)
    with pytest.raises(ValueError):
        v + w


def test_orthonormalize_full_rank() -> None:
    v1 = Vector.from_assoc([(0, 5.0), (1, 0.0)])
    v2 = Vector.from_assoc([(0, 4.0), (1, 3.0)])
    result = orthonormalize([v1, v2])
    assert max_difference(result[0], Vector.from_assoc([(0, 1.0), (1, 0.0)])) < 1e-10
    assert max_difference(result[1], Vector.from_assoc([(0, 0.0), (1, 1.0)])) < 1e-10
    assert rank(result) == 2
    assert rank([v1, v2]) == 2


def test_orthonormalize_parallel() -> None:
    v1 = Vector.from_assoc([(0, 5.0), (1, 0.0)])
    v2 = Vector.from_assoc([(0, 4.0), (1, 0.0)])
    result = orthonormalize([v1, v2])
    assert max_difference(result[0], Vector.from_assoc([(0, 1.0), (1, 0.0)])) < 1e-10
    assert max_difference(result[1], Vector.from_assoc([(0, 0.0), (1, 0.0)])) < 1e-10
    assert rank([v1, v2]) == 1


def test_orthonormal_basis_properties() -> None:
    rng = np.random.default_rng(7)
    vectors = [Vector.from_assoc(zip(range(5), rng.normal(size=5))) for _ in range(3)]
    vectors.append(vectors[0] * 2.0 - vectors[1])
    basis = orthonormalize(vectors)
    assert len(basis) == 4
    for i in range(3):
        assert basis[i].norm() == pytest.approx(1.0)
        for j in range(i):
            assert basis[i].dot(basis[j]) == pytest.approx(0.0, abs=1e-10)
    assert basis[3].norm() == 0.0
    assert rank(vectors) == 3


def test_rank_over_different_label_sets() -> None:
    v1 = Vector.from_assoc([("a", 1.0)])
    v2 = Vector.from_assoc([("b", 1.0)])
    v3 = Vector.from_assoc([("a", 1.0), ("b", 1.0)])
    assert rank([v1, v2, v3]) == 2
    assert rank([]) == 0


def test_matrix_from_assoc_and_columns() -> None:
    m = Matrix.from_assoc([("y", 2, 1.0), ("x", 1, 2.0), ("x", 1, 1.0), ("y", 1, 4.0)])
    assert m.shape == (2, 2)
    assert m.x_ix_map.labels == ("x", "y")
    assert m.get("x", 1) == 3.0
    assert m.get("x", 2) == 0.0
    assert m.get("z", 1) is None

    col = m.get_column(1)
    assert col.values == pytest.approx([3.0, 4.0])
    assert m.get_column(9) is None
    assert [c.values.tolist() for c in m.get_columns()] == [[3.0, 4.0], [0.0, 1.0]]
    assert m.get_row_sums().values == pytest.approx([3.0, 5.0])


def test_map_rows_and_transpose() -> None:
    m = Matrix.from_assoc([("a", "p", 2.0), ("a", "q", 2.0), ("b", "q", 3.0)])
    scaled = m.map_rows(m.get_row_sums(), lambda v, s: v / s)
    assert scaled.get("a", "p") == pytest.approx(0.5)
    assert scaled.get("b", "q") == pytest.approx(1.0)

    t = m.transpose()
    assert t.shape == (2, 2)
    assert t.x_ix_map is m.y_ix_map
    assert t.get("q", "b") == 3.0
    assert t.get("p", "b") == 0.0


def test_binop_uses_union_of_entries() -> None:
    a = Matrix.from_assoc([(0, 0, 1.0), (0, 1, 2.0), (1, 1, 1.0)])
    b = Matrix.from_assoc([(1, 0, 5.0), (1, 1, 1.0), (0, 0, 0.5)])
    diff = a.binop(b, lambda x, y: x - y)
    assert diff.to_dense() == pytest.approx(np.array([[0.5, 2.0], [-5.0, 0.0]]))


def test_products() -> None:
    m = Matrix.from_assoc([("a", "p", 1.0), ("a", "q", 2.0), ("b", "q", 3.0)])
    x = Vector.from_assoc([("p", 1.0), ("q", 1.0)])
    r = m.dot(x)
    assert r.ix_map is m.x_ix_map
    assert r.values == pytest.approx([3.0, 3.0])

    y = Vector.from_assoc([("a", 1.0), ("b", 2.0)])
    s = y.dot(m)
    assert s.ix_map is m.y_ix_map
    assert s.values == pytest.approx([1.0, 8.0])


def test_to_frame() -> None:
    m = Matrix.from_assoc([("a", "p", 1.0), ("b", "q", 3.0)])
    df = m.to_frame()
    assert list(df.columns) == ["row", "col", "value"]
    assert len(df) == 2


def test_binop_on_matrices_without_nonzeros() -> None:
    m = Matrix.from_assoc([("a", "x", 0.0)])
    diff = m.binop(m, lambda x, y: x - y)
    assert diff.shape == (1, 1)
    assert diff.nnz == 0
    assert diff.get("a", "x") == 0.0

    cancelled = Matrix.from_assoc([("a", "x", 1.0), ("a", "x", -1.0)])
    assert cancelled.binop(m, lambda x, y: x + y).to_dense() == pytest.approx(np.zeros((1, 1)))


def test_scalar_callables() -> None:
    m = Matrix.from_assoc([("a", "p", np.e), ("a", "q", 1.0), ("b", "q", np.e ** 2)])
    logs = m.map_rows(Vector.from_assoc([("a", 1.0), ("b", 2.0)]), lambda v, s: math.log(v) / s)
    assert logs.get("a", "p") == pytest.approx(1.0)
    assert logs.get("a", "q") == pytest.approx(0.0)
    assert logs.get("b", "q") == pytest.approx(1.0)

    larger = m.binop(m.map_rows(m.get_row_sums(), lambda v, s: v / s), lambda x, y: max(x, y))
    assert larger.get("a", "p") == pytest.approx(np.e)
    assert larger.get("b", "q") == pytest.approx(np.e ** 2)
