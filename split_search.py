from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from impurity import gini, total_sum_of_squares


@dataclass(frozen=True)
class SplitPoint:
    feature: int
    position: int
    threshold: float


@dataclass
class SplitSearchMetrics:
    features_scanned: int = 0
    boundaries_evaluated: int = 0


@dataclass
class SplitSearchResult:
    split: SplitPoint | None
    impurity: float
    left_aggregate: np.ndarray | None = None
    right_aggregate: np.ndarray | None = None
    metrics: SplitSearchMetrics = field(default_factory=SplitSearchMetrics)


def generate_random_table_indices(
    rng: np.random.Generator,
    m_try: int,
    input_dimension: int,
) -> np.ndarray:
    """Draw ``m_try`` distinct feature ids, returned in ascending order."""
    if input_dimension <= 0:
        raise ValueError("input_dimension must be positive")
    m_try = min(m_try, input_dimension)

    indices: set[int] = set()
    while len(indices) < m_try:
        indices.add(int(rng.integers(input_dimension)))
    return np.array(sorted(indices), dtype=np.int64)


def _boundaries(values: np.ndarray) -> np.ndarray:
    # Positions i where a split between i-1 and i separates distinct values.
    return np.flatnonzero(values[:-1] != values[1:]) + 1


def find_classification_split(
    tables: list[np.ndarray],
    labels: np.ndarray,
    counts: np.ndarray,
    candidate_features: np.ndarray,
) -> SplitSearchResult:
    """Find the split with the lowest size-weighted Gini impurity.

    ``labels`` maps row ids to class ids and ``counts`` is the class count
    vector of the node. The left/right aggregates of the result are the
    class count vectors of the two children.
    """
    metrics = SplitSearchMetrics()
    n = int(tables[0].size)
    n_classes = int(counts.size)

    # n + 1 is larger than any weighted impurity and marks "no split yet".
    best_impurity = n + 1.0
    best_split: SplitPoint | None = None
    best_below: np.ndarray | None = None
    best_above: np.ndarray | None = None

    for feature in candidate_features:
        table = tables[int(feature)]
        values = table["value"]
        sorted_labels = labels[table["row_id"]]
        metrics.features_scanned += 1

        one_hot = np.zeros((n, n_classes), dtype=np.int64)
        one_hot[np.arange(n), sorted_labels] = 1
        below_prefix = np.cumsum(one_hot, axis=0)

        for i in _boundaries(values):
            n1 = int(i)
            n2 = n - n1
            counts_below = below_prefix[n1 - 1]
            counts_above = counts - counts_below

            impurity = n1 * gini(counts_below, n1) + n2 * gini(counts_above, n2)
            metrics.boundaries_evaluated += 1
            if impurity < best_impurity:
                best_impurity = impurity
                best_split = SplitPoint(
                    feature=int(feature),
                    position=n1 - 1,
                    threshold=float(values[n1 - 1]),
                )
                best_below = counts_below.copy()
                best_above = counts_above.copy()

    return SplitSearchResult(best_split, best_impurity, best_below, best_above, metrics)


def find_regression_split(
    tables: list[np.ndarray],
    labels: np.ndarray,
    candidate_features: np.ndarray,
) -> SplitSearchResult:
    """Find the split with the lowest size-weighted sum of squares.

    ``labels`` is a ``(n_rows, label_dim)`` array indexed by row id. The
    left/right aggregates of the result are the label rows of each child.
    """
    metrics = SplitSearchMetrics()
    n = int(tables[0].size)

    # Sums of squares are non-negative, so -1 marks "no split yet".
    best_impurity = -1.0
    best_split: SplitPoint | None = None
    best_left: np.ndarray | None = None
    best_right: np.ndarray | None = None

    for feature in candidate_features:
        table = tables[int(feature)]
        values = table["value"]
        sorted_labels = labels[table["row_id"]]
        metrics.features_scanned += 1

        sum_prefix = np.cumsum(sorted_labels, axis=0)
        sum_total = sum_prefix[-1]

        for i in _boundaries(values):
            n1 = int(i)
            n2 = n - n1
            sum_below = sum_prefix[n1 - 1]
            sum_above = sum_total - sum_below

            impurity = (
                n1 * total_sum_of_squares(sorted_labels, 0, n1, sum_below)
                + n2 * total_sum_of_squares(sorted_labels, n1, n2, sum_above)
            ) / float(n)
            metrics.boundaries_evaluated += 1
            if impurity < best_impurity or best_impurity < 0:
                best_impurity = impurity
                best_split = SplitPoint(
                    feature=int(feature),
                    position=n1 - 1,
                    threshold=float(values[n1 - 1]),
                )
                best_left = sorted_labels[:n1]
                best_right = sorted_labels[n1:]

    return SplitSearchResult(best_split, best_impurity, best_left, best_right, metrics)
