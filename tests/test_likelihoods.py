import math
import numpy as np
import pytest

from strslip.likelihoods import AlleleLikelihoods, genotype_allele_indices, log10_sum_log10


def test_log10_sum_log10():
    assert log10_sum_log10(np.array([0.0, 0.0])) == pytest.approx(math.log10(2.0))
    assert log10_sum_log10(np.array([-1.0, -np.inf])) == pytest.approx(-1.0)
    assert log10_sum_log10(np.array([[-1.0, -2.0], [0.0, 0.0]]), axis=1) == pytest.approx(
        [math.log10(0.1 + 0.01), math.log10(2.0)])


def test_genotype_allele_indices():
    assert genotype_allele_indices(3, 2) == ((0, 0), (0, 1), (1, 1), (0, 2), (1, 2), (2, 2))
    assert genotype_allele_indices(2, 1) == ((0,), (1,))
    assert len(genotype_allele_indices(3, 3)) == 10


def _likelihoods() -> AlleleLikelihoods[str]:
    return AlleleLikelihoods(
        ("a", "b", "c"),
        ("s1", "s2"),
        [
            np.array([[-1.0, -2.0, -3.0], [-0.5, -0.1, -4.0]]),
            np.array([[-2.0, -2.0, -0.2]]),
        ],
    )


def test_likelihoods_basics():
    lk = _likelihoods()
    assert lk.alleles == ("a", "b", "c")
    assert lk.samples == ("s1", "s2")
    assert lk.allele_count() == 3
    assert lk.allele_index("c") == 2
    assert lk.sample_matrix("s2").shape == (1, 3)
    assert lk.sample_matrix(0).shape == (2, 3)

    with pytest.raises(ValueError):
        AlleleLikelihoods(("a", "a"), ("s1",), [np.zeros((1, 2))])
    with pytest.raises(ValueError):
        AlleleLikelihoods(("a", "b"), ("s1", "s2"), [np.zeros((1, 2))])


def test_marginalize():
    lk = _likelihoods().marginalize({"x": ["a", "c"], "y": ["b"], "z": []})
    assert lk.alleles == ("x", "y", "z")
    np.testing.assert_allclose(lk.sample_matrix("s1")[:, :2], [[-1.0, -2.0], [-0.5, -0.1]])
    assert np.all(np.isneginf(lk.sample_matrix("s1")[:, 2]))
    np.testing.assert_allclose(lk.sample_matrix("s2")[:, :2], [[-0.2, -2.0]])


def test_transform():
    lk = _likelihoods()

    identity = np.full((3, 3), -np.inf)
    np.fill_diagonal(identity, 0.0)
    res = lk.transform(("A", "B", "C"), identity)
    assert res.alleles == ("A", "B", "C")
    np.testing.assert_allclose(res.sample_matrix("s1"), lk.sample_matrix("s1"))
    np.testing.assert_allclose(res.sample_matrix("s2"), lk.sample_matrix("s2"))

    with np.errstate(divide="ignore"):
        m = np.log10(np.array([
            [0.8, 0.2, 0.0],
            [0.1, 0.8, 0.1],
            [0.0, 0.3, 0.7],
        ]))
    res = lk.transform(("A", "B", "C"), m)
    v = 10.0 ** lk.sample_matrix("s1")[0]
    expected = np.log10([0.8 * v[0] + 0.2 * v[1], 0.1 * v[0] + 0.8 * v[1] + 0.1 * v[2], 0.3 * v[1] + 0.7 * v[2]])
    np.testing.assert_allclose(res.sample_matrix("s1")[0], expected)

    with pytest.raises(ValueError):
        lk.transform(("A", "B"), m)
    with pytest.raises(ValueError):
        lk.transform(("A", "B", "C"), m[:2, :2])


def test_genotype_log10_likelihoods():
    lk = AlleleLikelihoods(("a", "b"), ("s1",), [np.array([[0.0, -np.inf], [0.0, -np.inf]])])
    gls = lk.genotype_log10_likelihoods("s1")
    # 0/0, 0/1, 1/1
    assert gls[0] == pytest.approx(0.0)
    assert gls[1] == pytest.approx(2 * math.log10(0.5))
    assert np.isneginf(gls[2])
