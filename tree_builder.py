from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np

from attribute_tables import split_attribute_tables
from impurity import average, gini, hist
from split_search import (
    SplitSearchResult,
    find_classification_split,
    find_regression_split,
    generate_random_table_indices,
)

logger = logging.getLogger(__name__)


@dataclass
class NodeInfo:
    """One node of a flattened tree.

    Ids follow heap numbering: the root is 0 and the children of ``node_id``
    are ``2 * node_id + 1`` and ``2 * node_id + 2``. Leaves keep both child
    ids at 0, so a node is a leaf exactly when its child ids are equal.
    """

    node_id: int
    attribute_index: int = 0
    attribute_value: float = 0.0
    left_node_id: int = 0
    right_node_id: int = 0
    label: np.ndarray | None = None
    misclass_prop: float = 0.0
    r: int = 0
    g: float = 0.0

    @property
    def is_leaf(self) -> bool:
        return self.left_node_id == self.right_node_id


@dataclass
class TreeBuildMetrics:
    nodes_visited: int = 0
    nodes_split: int = 0
    leaves: int = 0
    max_depth: int = 0
    features_scanned: int = 0
    boundaries_evaluated: int = 0


@dataclass
class TreeBuilderParams:
    m_try: int
    node_size: int = 1
    random_state: int = 0

    def __post_init__(self) -> None:
        if self.m_try <= 0:
            raise ValueError("m_try must be positive")
        if self.node_size <= 0:
            raise ValueError("node_size must be positive")


class TreeBuilder:
    """Grows one unpruned CART tree from presorted attribute tables.

    Nodes are emitted in preorder (node, left subtree, right subtree). Growth
    uses an explicit stack with the right child pushed before the left one,
    which yields exactly that order without recursion.
    """

    def __init__(
        self,
        params: TreeBuilderParams,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng(params.random_state)
        self.metrics = TreeBuildMetrics()

    def build_classification_tree(
        self,
        tables: list[np.ndarray],
        labels: np.ndarray,
        counts: np.ndarray,
    ) -> list[NodeInfo]:
        """Grow a classification tree; ``tables`` is consumed and left empty."""
        labels = np.asarray(labels, dtype=np.int64)

        def is_leaf(node_counts: np.ndarray, n: int) -> bool:
            return gini(node_counts, n) == 0 or n <= self.params.node_size

        def search(node_tables: list[np.ndarray], candidates: np.ndarray, node_counts: np.ndarray):
            return find_classification_split(node_tables, labels, node_counts, candidates)

        return self._grow(
            _take_tables(tables),
            np.asarray(counts, dtype=np.int64),
            n_rows=labels.shape[0],
            is_leaf=is_leaf,
            search=search,
            leaf_label=hist,
            inner_label=None,
        )

    def build_regression_tree(
        self,
        tables: list[np.ndarray],
        labels: np.ndarray,
    ) -> list[NodeInfo]:
        """Grow a regression tree; ``tables`` is consumed and left empty."""
        labels = np.asarray(labels, dtype=np.float64)
        if labels.ndim == 1:
            labels = labels.reshape(-1, 1)

        def is_leaf(_node_labels: np.ndarray, n: int) -> bool:
            return n <= self.params.node_size

        def search(node_tables: list[np.ndarray], candidates: np.ndarray, _node_labels: np.ndarray):
            return find_regression_split(node_tables, labels, candidates)

        stack = _take_tables(tables)
        # The root aggregate is the label set of every row in the tables.
        root_labels = labels[stack[0][0]["row_id"]]
        return self._grow(
            stack,
            root_labels,
            n_rows=labels.shape[0],
            is_leaf=is_leaf,
            search=search,
            leaf_label=average,
            inner_label=average,
        )

    def _grow(
        self,
        root: list[list[np.ndarray]],
        aggregate: np.ndarray,
        n_rows: int,
        is_leaf: Callable[[np.ndarray, int], bool],
        search: Callable[[list[np.ndarray], np.ndarray, np.ndarray], SplitSearchResult],
        leaf_label: Callable[[np.ndarray], np.ndarray],
        inner_label: Callable[[np.ndarray], np.ndarray] | None,
    ) -> list[NodeInfo]:
        # root holds the only reference to the root tables; popping it hands
        # them to the stack frame that is released after the root split.
        input_dimension = len(root[0])
        tree: list[NodeInfo] = []
        stack = [(root.pop(), aggregate, 0, 0)]

        while stack:
            node_tables, node_aggregate, node_id, depth = stack.pop()
            self.metrics.nodes_visited += 1
            self.metrics.max_depth = max(self.metrics.max_depth, depth)

            node = NodeInfo(node_id=node_id)
            n = int(node_tables[0].size)

            result = None
            if not is_leaf(node_aggregate, n):
                candidates = generate_random_table_indices(
                    self.rng, self.params.m_try, input_dimension
                )
                result = search(node_tables, candidates, node_aggregate)
                self.metrics.features_scanned += result.metrics.features_scanned
                self.metrics.boundaries_evaluated += result.metrics.boundaries_evaluated

            if result is None or result.split is None:
                node.label = leaf_label(node_aggregate)
                tree.append(node)
                self.metrics.leaves += 1
                continue

            split = result.split
            left_tables, right_tables = split_attribute_tables(
                node_tables, split.feature, split.position, n_rows=n_rows
            )
            # The child tables supersede the parent's.
            del node_tables

            node.attribute_index = split.feature
            node.attribute_value = split.threshold
            node.left_node_id = 2 * node_id + 1
            node.right_node_id = 2 * node_id + 2
            if inner_label is not None:
                node.label = inner_label(node_aggregate)
            tree.append(node)
            self.metrics.nodes_split += 1

            stack.append((right_tables, result.right_aggregate, node.right_node_id, depth + 1))
            stack.append((left_tables, result.left_aggregate, node.left_node_id, depth + 1))

        logger.debug(
            "Built tree: %d nodes, %d leaves, depth %d",
            len(tree),
            self.metrics.leaves,
            self.metrics.max_depth,
        )
        return tree


def build_node_index(tree: list[NodeInfo]) -> dict[int, int]:
    """Map node ids to their positions in a flattened tree."""
    return {node.node_id: position for position, node in enumerate(tree)}


def _take_tables(tables: list[np.ndarray]) -> list[list[np.ndarray]]:
    """Move the arrays out of ``tables`` so the caller keeps no reference."""
    if len(tables) == 0:
        raise ValueError("at least one attribute table is required")
    owned = list(tables)
    tables.clear()
    return [owned]
