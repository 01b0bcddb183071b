"""Labeled dataset container and duplicate removal.

The dataset owns the feature storage. Hash tables and selection results
refer to rows by integer index only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from lsh_is.errors import ConfigurationError

WEIGHT_COLUMN = "weight"


class FeatureVector(NamedTuple):
    """Read-only view of one dataset row."""

    values: NDArray[np.floating]
    label: int
    weight: float


@dataclass
class LabeledDataset:
    """Feature matrix with integer class labels and instance weights.

    Labels index into ``class_names``; its length is the class range.
    Missing attribute values are stored as NaN.
    """

    features: NDArray[np.floating]
    labels: NDArray[np.integer]
    class_names: list[str]
    weights: NDArray[np.floating] | None = None
    feature_names: list[str] | None = None
    label_name: str = "class"

    def __post_init__(self) -> None:
        features = np.asarray(self.features, dtype=np.float64)
        if features.ndim == 1 and features.size == 0:
            features = features.reshape(0, 0)
        if features.ndim != 2:
            raise ConfigurationError(
                f"features must be 2-dimensional, got shape {features.shape}"
            )
        self.features = features

        if self.labels is None:
            raise ConfigurationError("dataset has no class attribute")
        labels = np.asarray(self.labels)
        if labels.shape != (len(features),):
            raise ConfigurationError(
                f"expected {len(features)} labels, got shape {labels.shape}"
            )
        if labels.dtype.kind == "f" and np.isnan(labels).any():
            raise ConfigurationError("dataset has instances with a missing class value")
        self.labels = labels.astype(np.int64)

        if self.weights is None:
            self.weights = np.ones(len(features), dtype=np.float64)
        else:
            weights = np.asarray(self.weights, dtype=np.float64)
            if weights.shape != (len(features),):
                raise ConfigurationError(
                    f"expected {len(features)} weights, got shape {weights.shape}"
                )
            self.weights = weights

        self.class_names = [str(name) for name in self.class_names]
        if self.feature_names is None:
            self.feature_names = [f"x{i}" for i in range(features.shape[1])]
        elif len(self.feature_names) != features.shape[1]:
            raise ConfigurationError(
                f"{len(self.feature_names)} feature names for "
                f"{features.shape[1]} features"
            )

    @classmethod
    def from_arrays(
        cls,
        features: Sequence[Sequence[float]] | NDArray,
        labels: Sequence[int] | NDArray,
        weights: Sequence[float] | NDArray | None = None,
        num_classes: int | None = None,
    ) -> LabeledDataset:
        """Build a dataset from plain arrays with integer labels.

        Args:
            features: Array-like of shape (n, d).
            labels: Integer class indices of length n.
            weights: Optional instance weights (default 1.0).
            num_classes: Size of the label alphabet (default max label + 1).

        Returns:
            LabeledDataset with class names "0", "1", ...
        """
        labels = np.asarray(labels, dtype=np.int64)
        if num_classes is None:
            num_classes = int(labels.max()) + 1 if labels.size else 0
        return cls(
            features=np.asarray(features, dtype=np.float64),
            labels=labels,
            class_names=[str(c) for c in range(num_classes)],
            weights=weights,
        )

    @property
    def num_classes(self) -> int:
        return len(self.class_names)

    @property
    def dimensions(self) -> int:
        return self.features.shape[1]

    def __len__(self) -> int:
        return len(self.features)

    def __getitem__(self, index: int) -> FeatureVector:
        return FeatureVector(
            values=self.features[index],
            label=int(self.labels[index]),
            weight=float(self.weights[index]),
        )

    def subset(self, indices: Sequence[int]) -> LabeledDataset:
        """Return a new dataset holding the given rows, in the given order."""
        idx = np.asarray(indices, dtype=np.int64)
        return LabeledDataset(
            features=self.features[idx].reshape(len(idx), self.dimensions),
            labels=self.labels[idx],
            class_names=list(self.class_names),
            weights=self.weights[idx],
            feature_names=list(self.feature_names),
            label_name=self.label_name,
        )

    def to_dataframe(self, include_weight: bool = True) -> pd.DataFrame:
        """Render the dataset with decoded class names.

        Args:
            include_weight: Add a weight column.

        Returns:
            DataFrame with feature columns, the class column and weights.
        """
        df = pd.DataFrame(self.features, columns=self.feature_names)
        names = np.asarray(self.class_names, dtype=object)
        df[self.label_name] = names[self.labels] if len(self) else []
        if include_weight:
            df[WEIGHT_COLUMN] = self.weights
        return df


def remove_duplicates(
    dataset: LabeledDataset, indices: Sequence[int]
) -> list[int]:
    """Drop indices whose records duplicate an earlier one.

    Two records are duplicates when weight, class and every attribute
    value agree; two missing values agree with each other.

    Args:
        dataset: Dataset the indices refer to.
        indices: Row indices, possibly repeated.

    Returns:
        Indices with duplicates removed, first occurrence kept, order preserved.
    """
    if len(indices) == 0:
        return []

    idx = np.asarray(indices, dtype=np.int64)
    # x + 0.0 maps -0.0 to 0.0
    records = pd.DataFrame(dataset.features[idx] + 0.0)
    records["__label"] = dataset.labels[idx]
    records["__weight"] = dataset.weights[idx] + 0.0

    keep = ~records.duplicated(keep="first").to_numpy()
    return [int(i) for i in idx[keep]]
