#!/usr/bin/env python3
"""Experiment runner for LSH-IS: reduction rate vs 1-NN accuracy."""

from __future__ import annotations

import argparse
import statistics
from pathlib import Path

import numpy as np
from sklearn.datasets import make_classification
from sklearn.model_selection import StratifiedKFold
from sklearn.neighbors import KNeighborsClassifier
from sklearn.preprocessing import MinMaxScaler

from lsh_is.dataset import LabeledDataset
from lsh_is.e2lsh import compute_e2lsh_collision_prob
from lsh_is.loader import load_dataset
from lsh_is.selector import LSHInstanceSelector, LSHISParams, SelectionPolicy

# Experiment parameters
NUM_FOLDS = 5
TABLE_CONFIGS = [(1, 10), (4, 10), (10, 10), (4, 4)]  # (L, K)
WIDTHS = [1.0]


def run_experiment(
    dataset: LabeledDataset,
    num_folds: int = NUM_FOLDS,
    widths: list[float] | None = None,
    seed: int = 1,
) -> dict:
    """Run every configuration on every fold.

    Features are scaled to [0, 1] on each training fold, matching the
    default bucket width.

    Returns:
        Dict mapping configuration name to a list of per-fold records.
    """
    widths = widths or WIDTHS
    results: dict[str, list[dict]] = {"full": []}

    folds = StratifiedKFold(n_splits=num_folds, shuffle=True, random_state=seed)
    X, y = dataset.features, dataset.labels

    for fold, (train_idx, test_idx) in enumerate(folds.split(X, y)):
        scaler = MinMaxScaler().fit(X[train_idx])
        X_train = np.nan_to_num(scaler.transform(X[train_idx]))
        X_test = np.nan_to_num(scaler.transform(X[test_idx]))
        y_train, y_test = y[train_idx], y[test_idx]

        baseline = evaluate_accuracy(X_train, y_train, X_test, y_test)
        results["full"].append({"fold": fold, "accuracy": baseline, "reduction": 0.0})

        train = LabeledDataset(
            features=X_train,
            labels=y_train,
            class_names=dataset.class_names,
            weights=dataset.weights[train_idx],
        )

        for policy in SelectionPolicy:
            for num_tables, num_hashes in TABLE_CONFIGS:
                for w in widths:
                    key = f"{policy.value} L={num_tables} K={num_hashes} w={w}"
                    params = LSHISParams(
                        num_tables=num_tables,
                        num_hashes=num_hashes,
                        w=w,
                        seed=seed,
                        policy=policy,
                    )
                    result = LSHInstanceSelector(params).select(train)
                    reduced = result.dataset
                    accuracy = evaluate_accuracy(
                        reduced.features, reduced.labels, X_test, y_test
                    )
                    results.setdefault(key, []).append(
                        {
                            "fold": fold,
                            "accuracy": accuracy,
                            "reduction": result.reduction_rate,
                            "cpu_ms": result.cpu_time_ms,
                            "wall_ms": result.wall_time_ms,
                        }
                    )

    return results


def evaluate_accuracy(
    X_train: np.ndarray,
    y_train: np.ndarray,
    X_test: np.ndarray,
    y_test: np.ndarray,
) -> float:
    """1-NN test accuracy of a (possibly reduced) training set."""
    if len(X_train) == 0 or len(X_test) == 0:
        return 0.0
    knn = KNeighborsClassifier(n_neighbors=1)
    knn.fit(X_train, y_train)
    return float((knn.predict(X_test) == y_test).mean())


def synthetic_dataset(
    num_samples: int = 5000,
    num_features: int = 10,
    num_classes: int = 3,
    seed: int = 1,
) -> LabeledDataset:
    """Generate a classification dataset with some label noise."""
    X, y = make_classification(
        n_samples=num_samples,
        n_features=num_features,
        n_informative=max(2, num_features // 2),
        n_redundant=0,
        n_clusters_per_class=1,
        n_classes=num_classes,
        flip_y=0.05,
        random_state=seed,
    )
    return LabeledDataset.from_arrays(X, y, num_classes=num_classes)


def print_results(results: dict, total: int, widths: list[float]) -> None:
    """Print formatted experiment results."""
    print("=" * 60)
    print("Results")
    print("=" * 60)
    print(f"Total instances: {total}")
    print()

    for key, data in results.items():
        accuracies = [r["accuracy"] for r in data]
        reductions = [r["reduction"] for r in data]

        print(f"--- {key} ---")
        print(f"  1-NN Accuracy: {statistics.mean(accuracies):.4f}")
        print(f"  Reduction Rate: {statistics.mean(reductions) * 100:.1f}%")
        if "wall_ms" in data[0]:
            print(f"  Avg CPU time: {statistics.mean(r['cpu_ms'] for r in data):.1f} ms")
            print(f"  Avg Wall time: {statistics.mean(r['wall_ms'] for r in data):.1f} ms")
        print()

    print("--- Single-hash collision probability by distance ---")
    for w in widths:
        probs = ", ".join(
            f"d={d}: {compute_e2lsh_collision_prob(d, w):.2f}" for d in (0.1, 0.25, 0.5, 1.0)
        )
        print(f"  w={w}: {probs}")


def main() -> None:
    """Entry point."""
    parser = argparse.ArgumentParser(
        description="LSH-IS reduction vs 1-NN accuracy experiment"
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=None,
        help="Dataset file (.csv, .parquet or .arff); synthetic data if omitted",
    )
    parser.add_argument(
        "--label-column",
        type=str,
        default=None,
        help="Class column (default: last column)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=5000,
        help="Number of synthetic samples (default: 5000)",
    )
    parser.add_argument(
        "--folds",
        type=int,
        default=NUM_FOLDS,
        help=f"Number of cross-validation folds (default: {NUM_FOLDS})",
    )
    parser.add_argument(
        "--widths",
        type=float,
        nargs="+",
        default=WIDTHS,
        help="Bucket widths to try (default: 1.0)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=1,
        help="Random seed for reproducibility (default: 1)",
    )
    args = parser.parse_args()

    if args.data is not None:
        dataset = load_dataset(args.data, label_column=args.label_column)
    else:
        dataset = synthetic_dataset(num_samples=args.samples, seed=args.seed)

    results = run_experiment(
        dataset, num_folds=args.folds, widths=args.widths, seed=args.seed
    )
    print_results(results, len(dataset), args.widths)


if __name__ == "__main__":
    main()
