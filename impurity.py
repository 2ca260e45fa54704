import numpy as np


def gini(counts: np.ndarray, n: int) -> float:
    """Gini impurity ``1 - sum_j (count_j / n)^2`` of a class count vector.

    An empty node (``n == 0``) is maximally impure and returns 1.0.
    """
    if n == 0:
        return 1.0
    counts = np.asarray(counts, dtype=np.float64)
    return float(1.0 - np.sum(counts * counts) / float(n * n))


def total_sum_of_squares(
    labels: np.ndarray,
    start: int,
    length: int,
    sum_label: np.ndarray,
) -> float:
    """Sum of squared distances of ``labels[start:start + length]`` to their mean.

    The mean is taken from the precomputed ``sum_label`` of that range.
    """
    if length < 1:
        raise ValueError("total_sum_of_squares: length < 1")
    if start + length > len(labels):
        raise ValueError("total_sum_of_squares: start + length > len(labels)")

    label_avg = np.asarray(sum_label, dtype=np.float64) / float(length)
    diff = labels[start:start + length] - label_avg
    return float(np.sum(diff * diff))


def average(labels: np.ndarray) -> np.ndarray:
    labels = np.asarray(labels, dtype=np.float64)
    if labels.shape[0] == 0:
        raise ValueError("average of an empty label set is undefined")
    return labels.sum(axis=0) / float(labels.shape[0])


def hist(counts: np.ndarray) -> np.ndarray:
    """Normalize a class count vector into a histogram summing to one."""
    counts = np.asarray(counts, dtype=np.float64)
    return counts / counts.sum()


def create_count_vector(labels: np.ndarray, n_classes: int) -> np.ndarray:
    return np.bincount(np.asarray(labels, dtype=np.int64), minlength=n_classes).astype(np.int64)
