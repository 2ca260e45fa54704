from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class LabeledDataset:
    """Row-aligned inputs and labels for classification or regression.

    ``is_classification`` states the task. When it is left as ``None`` the
    task is inferred: integer 1-D labels make a classification dataset,
    anything else regression. Regression labels are stored as a
    ``(n, label_dim)`` float array.
    """

    inputs: np.ndarray
    labels: np.ndarray
    n_classes: int | None = None
    is_classification: bool | None = None

    def __post_init__(self) -> None:
        self.inputs = np.ascontiguousarray(np.asarray(self.inputs, dtype=np.float64))
        if self.inputs.ndim != 2:
            raise ValueError("inputs must be a 2D array")

        labels = np.asarray(self.labels)
        if labels.shape[0] != self.inputs.shape[0]:
            raise ValueError("labels must have the same number of rows as inputs")

        if self.is_classification is None:
            self.is_classification = labels.ndim == 1 and labels.dtype.kind in {"i", "u"}

        if self.is_classification:
            if labels.ndim != 1:
                raise ValueError("class labels must be a 1D array")
            if labels.size > 0 and not np.array_equal(labels, np.round(labels)):
                raise ValueError("class labels must be integers")
            if labels.size > 0 and labels.min() < 0:
                raise ValueError("class labels must be non-negative")
            self.labels = labels.astype(np.int64)
            if self.n_classes is None:
                self.n_classes = int(self.labels.max()) + 1 if labels.size > 0 else 0
            elif labels.size > 0 and self.labels.max() >= self.n_classes:
                raise ValueError("class labels must be smaller than n_classes")
        else:
            labels = labels.astype(np.float64)
            self.labels = labels.reshape(labels.shape[0], -1)

    def number_of_elements(self) -> int:
        return int(self.inputs.shape[0])

    @property
    def input_dimension(self) -> int:
        return int(self.inputs.shape[1])

    @property
    def label_dimension(self) -> int:
        if self.is_classification:
            return self.number_of_classes()
        return int(self.labels.shape[1])

    def number_of_classes(self) -> int:
        if not self.is_classification:
            raise ValueError("number_of_classes is only defined for classification data")
        assert self.n_classes is not None
        return self.n_classes

    def element(self, idx: int) -> tuple[np.ndarray, np.ndarray | int]:
        if self.is_classification:
            return self.inputs[idx], int(self.labels[idx])
        return self.inputs[idx], self.labels[idx]

    def subset(self, indices: np.ndarray) -> LabeledDataset:
        # Fancy indexing copies, so a subset never aliases rows of its parent.
        indices = np.asarray(indices, dtype=np.int64)
        return LabeledDataset(
            inputs=self.inputs[indices],
            labels=self.labels[indices],
            n_classes=self.n_classes,
            is_classification=self.is_classification,
        )
