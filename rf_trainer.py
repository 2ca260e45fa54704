from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass

import numpy as np
from joblib import Parallel, delayed

from attribute_tables import create_attribute_tables
from cart_tree import CARTTree
from forest_model import RandomForestModel
from impurity import create_count_vector
from labeled_data import LabeledDataset
from tree_builder import TreeBuilder, TreeBuilderParams

logger = logging.getLogger(__name__)


@dataclass
class RFTrainerParams:
    # Zero means "unset"; set_defaults fills these in before each run.
    m_try: int = 0
    n_trees: int = 0
    node_size: int = 0
    oob_ratio: float = 0.0

    compute_feature_importances: bool = False
    compute_oob_error: bool = False

    random_state: int = 0
    n_jobs: int = 1

    def __post_init__(self) -> None:
        if self.m_try < 0:
            raise ValueError("m_try must be >= 0")
        if self.n_trees < 0:
            raise ValueError("n_trees must be >= 0")
        if self.node_size < 0:
            raise ValueError("node_size must be >= 0")
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be non-zero")


def split_bag(
    rng: np.random.Generator,
    n: int,
    subset_size: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Split row ids 0..n-1 into a training bag and an out-of-bag sample.

    The bag is the first ``subset_size`` entries of a random permutation, so
    rows are drawn without replacement.
    """
    if not 0 <= subset_size <= n:
        raise ValueError("subset_size must be in [0, n]")
    indices = rng.permutation(n)
    return indices[:subset_size], indices[subset_size:]


class RFTrainer:
    """Random Forest trainer growing unpruned CART trees with SPRINT tables.

    Each tree is grown on a random subset of ``floor(n * oob_ratio)`` rows
    drawn without replacement; the remaining rows form its out-of-bag
    sample. At each node only ``m_try`` random features are searched for the
    best split (Gini impurity for classification, sum of squares for
    regression).
    """

    def __init__(self, params: RFTrainerParams | None = None) -> None:
        self.params = params or RFTrainerParams()

        self.input_dimension = 0
        self.label_dimension = 0
        self.regression_learner = False
        self.metrics: dict = {}

    def set_m_try(self, m_try: int) -> None:
        self.params.m_try = m_try

    def set_n_trees(self, n_trees: int) -> None:
        self.params.n_trees = n_trees

    def set_node_size(self, node_size: int) -> None:
        self.params.node_size = node_size

    def set_oob_ratio(self, ratio: float) -> None:
        self.params.oob_ratio = ratio

    def set_defaults(self) -> None:
        """Fill unset parameters from the input dimension and task type."""
        if not self.params.m_try:
            if self.regression_learner:
                self.set_m_try(int(np.ceil(self.input_dimension / 3.0)))
            else:
                self.set_m_try(int(np.ceil(np.sqrt(self.input_dimension))))

        if not self.params.n_trees:
            self.set_n_trees(100)

        if not self.params.node_size:
            self.set_node_size(5 if self.regression_learner else 1)

        if self.params.oob_ratio <= 0 or self.params.oob_ratio > 1:
            self.set_oob_ratio(0.66)

    def train(self, model: RandomForestModel, dataset: LabeledDataset) -> RandomForestModel:
        model.clear_members()

        self.input_dimension = dataset.input_dimension
        self.label_dimension = dataset.label_dimension
        self.regression_learner = not dataset.is_classification

        model.is_classification = dataset.is_classification
        model.set_input_dimension(self.input_dimension)
        model.set_label_dimension(self.label_dimension)

        self.set_defaults()

        n = dataset.number_of_elements()
        subset_size = int(n * self.params.oob_ratio)
        if subset_size < 1:
            raise ValueError("training bag is empty; dataset too small for oob_ratio")

        self.metrics = {
            "params": asdict(self.params),
            "subset_size": subset_size,
            "oob_size": n - subset_size,
            "nodes_visited": 0,
            "nodes_split": 0,
            "tree_metrics": [],
        }
        logger.info(
            "Training %d %s trees on %d rows (bag %d, m_try %d, node_size %d)",
            self.params.n_trees,
            "regression" if self.regression_learner else "classification",
            n,
            subset_size,
            self.params.m_try,
            self.params.node_size,
        )

        # One independent stream per tree, derived from the master seed.
        seeds = np.random.SeedSequence(self.params.random_state).spawn(self.params.n_trees)
        lock = threading.Lock()
        Parallel(n_jobs=self.params.n_jobs, prefer="threads", require="sharedmem")(
            delayed(self._build_member)(
                tree_idx, model, dataset, subset_size, np.random.default_rng(seed), lock
            )
            for tree_idx, seed in enumerate(seeds)
        )

        if self.params.compute_oob_error:
            oob_error = model.compute_oob_error()
            logger.info("Ensemble OOB error: %.6f", oob_error)

        if self.params.compute_feature_importances:
            model.compute_feature_importances()

        return model

    def _build_member(
        self,
        tree_idx: int,
        model: RandomForestModel,
        dataset: LabeledDataset,
        subset_size: int,
        rng: np.random.Generator,
        lock: threading.Lock,
    ) -> None:
        bag_indices, oob_indices = split_bag(rng, dataset.number_of_elements(), subset_size)

        data_train = dataset.subset(bag_indices)

        builder = TreeBuilder(
            TreeBuilderParams(m_try=self.params.m_try, node_size=self.params.node_size),
            rng=rng,
        )
        # The builder owns the attribute tables and frees them node by node.
        if self.regression_learner:
            tree = builder.build_regression_tree(
                create_attribute_tables(data_train.inputs), data_train.labels
            )
        else:
            counts = create_count_vector(data_train.labels, dataset.number_of_classes())
            tree = builder.build_classification_tree(
                create_attribute_tables(data_train.inputs), data_train.labels, counts
            )

        cart = CARTTree(tree, self.input_dimension)

        if self.params.compute_oob_error or self.params.compute_feature_importances:
            data_oob = dataset.subset(oob_indices)
            # Importances compute the OOB error on the way.
            if self.params.compute_feature_importances:
                cart.compute_feature_importances(data_oob, rng)
            else:
                cart.compute_oob_error(data_oob)

        with lock:
            model.add_member(cart)
            self.metrics["nodes_visited"] += builder.metrics.nodes_visited
            self.metrics["nodes_split"] += builder.metrics.nodes_split
            self.metrics["tree_metrics"].append(
                {
                    "tree_idx": tree_idx,
                    "nodes_visited": builder.metrics.nodes_visited,
                    "nodes_split": builder.metrics.nodes_split,
                    "leaves": builder.metrics.leaves,
                    "max_depth": builder.metrics.max_depth,
                    "oob_error": cart.oob_error,
                }
            )
