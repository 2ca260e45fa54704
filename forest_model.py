from __future__ import annotations

import numpy as np

from cart_tree import CARTTree


class RandomForestModel:
    """Ensemble of ``CARTTree`` members.

    Classification members output class histograms and the ensemble votes by
    averaging them; regression members output label vectors that are
    averaged.
    """

    def __init__(self, is_classification: bool = True) -> None:
        self.is_classification = is_classification
        self.input_dimension = 0
        self.label_dimension = 0
        self.members: list[CARTTree] = []

        self.oob_error: float | None = None
        self.feature_importances: np.ndarray | None = None

    def set_input_dimension(self, input_dimension: int) -> None:
        self.input_dimension = input_dimension

    def set_label_dimension(self, label_dimension: int) -> None:
        self.label_dimension = label_dimension

    def clear_members(self) -> None:
        self.members = []
        self.oob_error = None
        self.feature_importances = None

    def add_member(self, member: CARTTree) -> None:
        self.members.append(member)

    def number_of_members(self) -> int:
        return len(self.members)

    def compute_oob_error(self) -> float:
        errors = [m.oob_error for m in self.members]
        if len(errors) == 0 or any(e is None for e in errors):
            raise RuntimeError("Every member must have an OOB error before aggregation")

        self.oob_error = float(np.mean(errors))
        return self.oob_error

    def compute_feature_importances(self) -> np.ndarray:
        importances = [m.feature_importances for m in self.members]
        if len(importances) == 0 or any(imp is None for imp in importances):
            raise RuntimeError("Every member must have feature importances before aggregation")

        self.feature_importances = np.mean(np.stack(importances), axis=0)
        return self.feature_importances

    def predict_raw(self, X: np.ndarray) -> np.ndarray:
        if len(self.members) == 0:
            raise RuntimeError("Model must be trained before prediction")

        X = np.asarray(X, dtype=np.float64)
        out = self.members[0].predict(X)
        for member in self.members[1:]:
            out = out + member.predict(X)
        return out / float(len(self.members))

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        if not self.is_classification:
            raise RuntimeError("predict_proba is only available for classification")
        return self.predict_raw(X)

    def predict(self, X: np.ndarray) -> np.ndarray:
        raw = self.predict_raw(X)
        if self.is_classification:
            return np.argmax(raw, axis=1)
        return raw
