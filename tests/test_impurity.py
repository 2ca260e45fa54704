import numpy as np
import pytest

from impurity import average, create_count_vector, gini, hist, total_sum_of_squares


def test_gini_is_zero_for_a_pure_node():
    assert gini(np.array([0, 7, 0]), 7) == 0.0


@pytest.mark.parametrize("n_classes", [2, 3, 5])
def test_gini_of_uniform_distribution(n_classes):
    counts = np.full(n_classes, 4, dtype=np.int64)
    assert np.isclose(gini(counts, 4 * n_classes), 1.0 - 1.0 / n_classes)


def test_gini_of_empty_node_is_one():
    assert gini(np.zeros(3, dtype=np.int64), 0) == 1.0


def test_total_sum_of_squares_matches_direct_computation():
    labels = np.array([[1.0, 0.0], [3.0, 2.0], [5.0, 4.0], [7.0, 6.0]])
    segment = labels[1:4]
    expected = float(np.sum((segment - segment.mean(axis=0)) ** 2))

    result = total_sum_of_squares(labels, 1, 3, segment.sum(axis=0))

    assert np.isclose(result, expected)


def test_total_sum_of_squares_rejects_empty_range():
    labels = np.ones((3, 1))
    with pytest.raises(ValueError):
        total_sum_of_squares(labels, 0, 0, np.zeros(1))


def test_total_sum_of_squares_rejects_range_past_the_end():
    labels = np.ones((3, 1))
    with pytest.raises(ValueError):
        total_sum_of_squares(labels, 2, 2, np.full(1, 2.0))


def test_average_of_single_vector_is_that_vector():
    v = np.array([[1.5, -2.0, 3.0]])
    np.testing.assert_array_equal(average(v), v[0])


def test_average_of_identical_vectors():
    v = np.array([0.25, 4.0])
    np.testing.assert_allclose(average(np.tile(v, (6, 1))), v)


def test_hist_normalizes_counts():
    np.testing.assert_allclose(hist(np.array([1, 3, 0])), [0.25, 0.75, 0.0])


def test_create_count_vector_has_one_slot_per_class():
    counts = create_count_vector(np.array([2, 0, 2, 2]), n_classes=4)
    np.testing.assert_array_equal(counts, [1, 0, 3, 0])
