from __future__ import annotations

import numpy as np

from labeled_data import LabeledDataset
from tree_builder import NodeInfo, build_node_index


class CARTTree:
    """A single forest member backed by a flattened preorder tree."""

    def __init__(self, tree: list[NodeInfo], input_dimension: int) -> None:
        if len(tree) == 0:
            raise ValueError("tree must contain at least one node")

        self.tree = tree
        self.input_dimension = input_dimension
        self._index = build_node_index(tree)

        self.oob_error: float | None = None
        self.feature_importances: np.ndarray | None = None

    def predict_row(self, x: np.ndarray) -> np.ndarray:
        node = self.tree[0]
        while not node.is_leaf:
            if x[node.attribute_index] <= node.attribute_value:
                node = self.tree[self._index[node.left_node_id]]
            else:
                node = self.tree[self._index[node.right_node_id]]

        assert node.label is not None
        return node.label

    def predict(self, X: np.ndarray) -> np.ndarray:
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2 or X.shape[1] != self.input_dimension:
            raise ValueError("X must be 2D with input_dimension columns")
        return np.stack([self.predict_row(X[i]) for i in range(X.shape[0])])

    def _error(self, inputs: np.ndarray, dataset: LabeledDataset) -> float:
        outputs = self.predict(inputs)
        if dataset.is_classification:
            return float(np.mean(np.argmax(outputs, axis=1) != dataset.labels))
        diff = outputs - dataset.labels
        return float(np.mean(np.sum(diff * diff, axis=1)))

    def compute_oob_error(self, dataset: LabeledDataset) -> float:
        """Misclassification rate (classification) or mean squared error
        (regression) on the out-of-bag rows."""
        if dataset.number_of_elements() == 0:
            self.oob_error = 0.0
            return self.oob_error

        self.oob_error = self._error(dataset.inputs, dataset)
        return self.oob_error

    def compute_feature_importances(
        self,
        dataset: LabeledDataset,
        rng: np.random.Generator | None = None,
    ) -> np.ndarray:
        """Permutation importances on the out-of-bag rows.

        The importance of a feature is the increase of the OOB error after
        shuffling that feature's column. Also sets ``oob_error``.
        """
        rng = rng if rng is not None else np.random.default_rng(0)
        oob_error = self.compute_oob_error(dataset)

        importances = np.zeros(self.input_dimension, dtype=np.float64)
        if dataset.number_of_elements() == 0:
            self.feature_importances = importances
            return importances

        for feature_idx in range(self.input_dimension):
            permuted = dataset.inputs.copy()
            permuted[:, feature_idx] = rng.permutation(permuted[:, feature_idx])
            importances[feature_idx] = self._error(permuted, dataset) - oob_error

        self.feature_importances = importances
        return importances
