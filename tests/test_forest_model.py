import numpy as np
import pytest

from attribute_tables import create_attribute_tables
from cart_tree import CARTTree
from forest_model import RandomForestModel
from impurity import create_count_vector
from labeled_data import LabeledDataset
from tree_builder import NodeInfo, TreeBuilder, TreeBuilderParams


def _stump():
    # x[0] <= 0.5 -> class 0, otherwise class 1
    return [
        NodeInfo(node_id=0, attribute_index=0, attribute_value=0.5, left_node_id=1, right_node_id=2),
        NodeInfo(node_id=1, label=np.array([1.0, 0.0])),
        NodeInfo(node_id=2, label=np.array([0.0, 1.0])),
    ]


def test_cart_tree_follows_preorder_ids():
    cart = CARTTree(_stump(), input_dimension=2)

    preds = cart.predict(np.array([[0.2, 9.0], [0.5, -1.0], [0.9, 0.0]]))

    np.testing.assert_array_equal(preds, [[1.0, 0.0], [1.0, 0.0], [0.0, 1.0]])


def test_cart_tree_oob_error_counts_misclassified_rows():
    cart = CARTTree(_stump(), input_dimension=2)
    oob = LabeledDataset(np.array([[0.1, 0.0], [0.7, 0.0], [0.8, 0.0], [0.3, 0.0]]), np.array([0, 1, 0, 0]))

    assert cart.compute_oob_error(oob) == 0.25


def test_unused_feature_has_zero_importance():
    cart = CARTTree(_stump(), input_dimension=2)
    rng = np.random.default_rng(0)
    X = rng.uniform(size=(40, 2))
    oob = LabeledDataset(X, (X[:, 0] > 0.5).astype(np.int64))

    importances = cart.compute_feature_importances(oob, rng)

    assert cart.oob_error == 0.0
    assert importances[1] == 0.0
    assert importances[0] > 0.0


def test_regression_member_reports_mean_squared_error():
    X = np.array([[1.0], [2.0], [3.0], [4.0]])
    y = np.array([1.0, 1.0, 5.0, 5.0])
    builder = TreeBuilder(TreeBuilderParams(m_try=1, node_size=1), rng=np.random.default_rng(0))
    cart = CARTTree(builder.build_regression_tree(create_attribute_tables(X), y), input_dimension=1)

    oob = LabeledDataset(np.array([[1.5], [3.5]]), np.array([2.0, 5.0]))

    assert np.isclose(cart.compute_oob_error(oob), 0.5)


def test_model_averages_member_statistics():
    model = RandomForestModel()
    for error, importances in [(0.1, [0.2, 0.0]), (0.3, [0.4, 0.2])]:
        member = CARTTree(_stump(), input_dimension=2)
        member.oob_error = error
        member.feature_importances = np.array(importances)
        model.add_member(member)

    assert np.isclose(model.compute_oob_error(), 0.2)
    np.testing.assert_allclose(model.compute_feature_importances(), [0.3, 0.1])


def test_model_prediction_votes_over_members():
    X = np.array([[0.0], [0.1], [0.9], [1.0]])
    y = np.array([0, 0, 1, 1])
    model = RandomForestModel()
    for seed in range(3):
        builder = TreeBuilder(TreeBuilderParams(m_try=1), rng=np.random.default_rng(seed))
        tree = builder.build_classification_tree(create_attribute_tables(X), y, create_count_vector(y, 2))
        model.add_member(CARTTree(tree, input_dimension=1))

    np.testing.assert_array_equal(model.predict(X), y)
    np.testing.assert_allclose(model.predict_proba(X).sum(axis=1), 1.0)


def test_model_requires_members_and_statistics():
    model = RandomForestModel()
    with pytest.raises(RuntimeError):
        model.predict(np.zeros((1, 2)))
    with pytest.raises(RuntimeError):
        model.compute_oob_error()

    model.add_member(CARTTree(_stump(), input_dimension=2))
    with pytest.raises(RuntimeError):
        model.compute_feature_importances()


def test_labeled_dataset_detects_task_and_subsets():
    clf = LabeledDataset(np.arange(8, dtype=np.float64).reshape(4, 2), np.array([0, 2, 1, 2]))
    reg = LabeledDataset(np.zeros((3, 1)), np.array([0.5, 1.5, 2.5]))

    assert clf.is_classification and clf.number_of_classes() == 3
    assert not reg.is_classification and reg.label_dimension == 1

    sub = clf.subset(np.array([3, 1]))
    assert sub.number_of_elements() == 2
    assert sub.number_of_classes() == 3
    x, label = sub.element(0)
    np.testing.assert_array_equal(x, [6.0, 7.0])
    assert label == 2

    with pytest.raises(ValueError):
        LabeledDataset(np.zeros((3, 1)), np.array([0, 1]))


def test_labeled_dataset_keeps_an_explicit_task():
    reg = LabeledDataset(np.zeros((4, 1)), np.array([1, 1, 5, 5]), is_classification=False)

    assert not reg.is_classification
    assert reg.labels.dtype == np.float64
    assert reg.labels.shape == (4, 1)
    assert not reg.subset(np.array([0, 2])).is_classification

    clf = LabeledDataset(np.zeros((3, 1)), np.array([0.0, 1.0, 1.0]), is_classification=True)
    assert clf.is_classification
    assert clf.number_of_classes() == 2
    assert clf.subset(np.array([1])).is_classification


def test_labeled_dataset_rejects_labels_outside_n_classes():
    with pytest.raises(ValueError):
        LabeledDataset(np.zeros((3, 1)), np.array([0, 1, 2]), n_classes=2)

    data = LabeledDataset(np.zeros((3, 1)), np.array([0, 1, 1]), n_classes=4)
    assert data.number_of_classes() == 4
