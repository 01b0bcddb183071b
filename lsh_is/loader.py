"""Adapters from tabular data to LabeledDataset."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd
from scipy.io import arff

from lsh_is.dataset import LabeledDataset
from lsh_is.errors import ConfigurationError

# ARFF marks missing values with "?"
ARFF_MISSING = "?"


def load_arff(path: Path | str) -> pd.DataFrame:
    """Load an ARFF file into a DataFrame.

    Nominal values are decoded from bytes; "?" becomes NaN.

    Args:
        path: Path to the .arff file.

    Returns:
        DataFrame with one column per attribute, in file order.
    """
    data, _meta = arff.loadarff(str(path))
    df = pd.DataFrame(data)

    for col in df.columns:
        if df[col].dtype == object:
            df[col] = df[col].str.decode("utf-8").replace(ARFF_MISSING, np.nan)

    return df


def _encode_labels(
    column: pd.Series, class_names: Sequence[str] | None
) -> tuple[np.ndarray, list[str]]:
    """Map label values to indices into the class alphabet."""
    if column.isna().any():
        raise ConfigurationError(
            f"Class column {column.name!r} has {int(column.isna().sum())} missing values"
        )

    values = column.astype(str)
    if class_names is None:
        class_names = [str(v) for v in sorted(column.unique())]
    else:
        class_names = [str(c) for c in class_names]
        unknown = set(values.unique()) - set(class_names)
        if unknown:
            raise ConfigurationError(
                f"Class values {sorted(unknown)} not in class alphabet {class_names}"
            )

    codes = pd.Categorical(values, categories=class_names).codes
    return codes.astype(np.int64), list(class_names)


def _encode_features(df: pd.DataFrame) -> np.ndarray:
    """Numeric columns as float, other columns as category codes (NaN if missing)."""
    columns = []
    for col in df.columns:
        series = df[col]
        if pd.api.types.is_bool_dtype(series) or pd.api.types.is_numeric_dtype(series):
            columns.append(series.astype(np.float64).to_numpy())
        else:
            codes = pd.Categorical(series).codes.astype(np.float64)
            codes[codes < 0] = np.nan
            columns.append(codes)

    if not columns:
        return np.empty((len(df), 0), dtype=np.float64)
    return np.column_stack(columns)


def dataset_from_dataframe(
    df: pd.DataFrame,
    label_column: str | None = None,
    feature_columns: Sequence[str] | None = None,
    weight_column: str | None = None,
    class_names: Sequence[str] | None = None,
) -> LabeledDataset:
    """Build a LabeledDataset from a DataFrame.

    Args:
        df: Source data.
        label_column: Class column (default: last column).
        feature_columns: Attribute columns (default: every other column).
        weight_column: Optional instance weight column.
        class_names: Fixed class alphabet (default: sorted distinct labels).

    Returns:
        LabeledDataset.

    Raises:
        ConfigurationError: Missing class column or missing class values.
    """
    if label_column is None:
        if len(df.columns) == 0:
            raise ConfigurationError("DataFrame has no columns, cannot find class attribute")
        label_column = df.columns[-1]
    if label_column not in df.columns:
        raise ConfigurationError(f"Class column {label_column!r} not found")
    if weight_column is not None and weight_column not in df.columns:
        raise ConfigurationError(f"Weight column {weight_column!r} not found")

    if feature_columns is None:
        excluded = {label_column, weight_column}
        feature_columns = [c for c in df.columns if c not in excluded]
    else:
        missing = [c for c in feature_columns if c not in df.columns]
        if missing:
            raise ConfigurationError(f"Feature columns not found: {missing}")

    labels, names = _encode_labels(df[label_column], class_names)
    weights = None
    if weight_column is not None:
        weights = df[weight_column].astype(np.float64).to_numpy()

    return LabeledDataset(
        features=_encode_features(df[list(feature_columns)]),
        labels=labels,
        class_names=names,
        weights=weights,
        feature_names=[str(c) for c in feature_columns],
        label_name=str(label_column),
    )


def load_dataset(
    path: Path | str,
    label_column: str | None = None,
    weight_column: str | None = None,
) -> LabeledDataset:
    """Load a CSV, Parquet or ARFF file as a LabeledDataset.

    Args:
        path: Input file.
        label_column: Class column (default: last column).
        weight_column: Optional instance weight column.

    Returns:
        LabeledDataset.
    """
    from lsh_is.db import DatasetStore

    with DatasetStore(in_memory=True) as store:
        df = store.read_file(path)

    return dataset_from_dataframe(
        df, label_column=label_column, weight_column=weight_column
    )
