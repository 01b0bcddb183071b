"""Tests for lsh_is/dataset.py."""

import numpy as np
import pytest

from lsh_is.dataset import FeatureVector, LabeledDataset, remove_duplicates
from lsh_is.errors import ConfigurationError


class TestLabeledDataset:
    """Tests for LabeledDataset class."""

    def test_default_weights(self):
        dataset = LabeledDataset.from_arrays([[1.0, 2.0], [3.0, 4.0]], [0, 1])
        assert dataset.weights.tolist() == [1.0, 1.0]

    def test_from_arrays_class_range(self):
        dataset = LabeledDataset.from_arrays([[0.0], [1.0]], [0, 2])
        assert dataset.num_classes == 3
        assert dataset.class_names == ["0", "1", "2"]

    def test_from_arrays_explicit_num_classes(self):
        dataset = LabeledDataset.from_arrays([[0.0]], [0], num_classes=4)
        assert dataset.num_classes == 4

    def test_shape_properties(self, sample_dataset):
        assert len(sample_dataset) == 200
        assert sample_dataset.dimensions == 4
        assert sample_dataset.feature_names == ["x0", "x1", "x2", "x3"]

    def test_getitem_returns_feature_vector(self):
        dataset = LabeledDataset.from_arrays([[1.0, 2.0]], [1], weights=[0.5])
        row = dataset[0]

        assert isinstance(row, FeatureVector)
        assert row.values.tolist() == [1.0, 2.0]
        assert row.label == 1
        assert row.weight == 0.5

    def test_missing_labels_raise(self):
        with pytest.raises(ConfigurationError, match="no class attribute"):
            LabeledDataset(features=np.zeros((2, 2)), labels=None, class_names=["a"])

    def test_nan_labels_raise(self):
        with pytest.raises(ConfigurationError, match="missing class value"):
            LabeledDataset(
                features=np.zeros((2, 2)),
                labels=np.array([0.0, np.nan]),
                class_names=["a"],
            )

    def test_label_count_mismatch_raises(self):
        with pytest.raises(ConfigurationError):
            LabeledDataset(features=np.zeros((3, 2)), labels=np.array([0, 0]), class_names=["a"])

    def test_weight_count_mismatch_raises(self):
        with pytest.raises(ConfigurationError):
            LabeledDataset.from_arrays([[0.0], [1.0]], [0, 0], weights=[1.0])

    def test_feature_names_mismatch_raises(self):
        with pytest.raises(ConfigurationError):
            LabeledDataset(
                features=np.zeros((1, 2)),
                labels=np.array([0]),
                class_names=["a"],
                feature_names=["only_one"],
            )

    def test_one_dimensional_features_raise(self):
        with pytest.raises(ConfigurationError):
            LabeledDataset(features=np.zeros(3), labels=np.zeros(3), class_names=["a"])

    def test_subset_order_and_copy(self, sample_dataset):
        subset = sample_dataset.subset([5, 2, 9])

        assert len(subset) == 3
        assert np.array_equal(subset.features, sample_dataset.features[[5, 2, 9]])
        assert np.array_equal(subset.labels, sample_dataset.labels[[5, 2, 9]])
        assert subset.class_names == sample_dataset.class_names

    def test_subset_empty(self, sample_dataset):
        subset = sample_dataset.subset([])
        assert len(subset) == 0
        assert subset.dimensions == 4

    def test_to_dataframe(self):
        dataset = LabeledDataset(
            features=np.array([[1.0, 2.0], [3.0, 4.0]]),
            labels=np.array([1, 0]),
            class_names=["no", "yes"],
            feature_names=["a", "b"],
            label_name="play",
        )
        df = dataset.to_dataframe()

        assert list(df.columns) == ["a", "b", "play", "weight"]
        assert df["play"].tolist() == ["yes", "no"]

    def test_to_dataframe_without_weight(self, sample_dataset):
        df = sample_dataset.to_dataframe(include_weight=False)
        assert "weight" not in df.columns
        assert len(df) == 200


class TestRemoveDuplicates:
    """Tests for remove_duplicates function."""

    def test_identical_records_collapse(self):
        dataset = LabeledDataset.from_arrays([[1.0, 2.0], [1.0, 2.0]], [0, 0])
        assert remove_duplicates(dataset, [0, 1]) == [0]

    def test_repeated_index_collapse(self):
        dataset = LabeledDataset.from_arrays([[1.0], [2.0]], [0, 0])
        assert remove_duplicates(dataset, [1, 0, 1, 0]) == [1, 0]

    def test_idempotent(self, sample_dataset):
        once = remove_duplicates(sample_dataset, list(range(50)) * 2)
        twice = remove_duplicates(sample_dataset, once)
        assert once == twice == list(range(50))

    def test_different_weight_not_duplicate(self):
        dataset = LabeledDataset.from_arrays([[1.0], [1.0]], [0, 0], weights=[1.0, 2.0])
        assert remove_duplicates(dataset, [0, 1]) == [0, 1]

    def test_different_label_not_duplicate(self):
        dataset = LabeledDataset.from_arrays([[1.0], [1.0]], [0, 1])
        assert remove_duplicates(dataset, [0, 1]) == [0, 1]

    def test_missing_values_match(self):
        dataset = LabeledDataset.from_arrays([[np.nan, 1.0], [np.nan, 1.0]], [0, 0])
        assert remove_duplicates(dataset, [0, 1]) == [0]

    def test_missing_does_not_match_value(self):
        dataset = LabeledDataset.from_arrays([[np.nan, 1.0], [0.0, 1.0]], [0, 0])
        assert remove_duplicates(dataset, [0, 1]) == [0, 1]

    def test_signed_zero_match(self):
        dataset = LabeledDataset.from_arrays([[0.0], [-0.0]], [0, 0])
        assert remove_duplicates(dataset, [0, 1]) == [0]

    def test_empty(self, sample_dataset):
        assert remove_duplicates(sample_dataset, []) == []
