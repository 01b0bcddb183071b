"""Instance selection with LSH families (AND - OR).

LSH-IS reduces a labeled dataset in near-linear time. L hash tables, each
ANDing K Euclidean hashes, act as an approximate neighbor index; an
instance is redundant when its buckets already hold instances of its class.

Reference: Arnaiz-González, Á., Díez-Pastor, J. F., Rodríguez, J. J.,
García-Osorio, C. (2016). Instance selection of linear complexity for big
data. Knowledge-Based Systems.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from lsh_is.dataset import LabeledDataset, remove_duplicates
from lsh_is.e2lsh import BucketKey, EuclideanHashTable, build_tables
from lsh_is.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SelectionPolicy(Enum):
    """Instance retention strategy."""

    # Keep an instance while some table's bucket lacks its class
    ONE_OF_EACH_CLASS = "one_of_each_class"
    # Index everything, then keep one per pure bucket and drop lone
    # instances of a class in mixed buckets
    FILTER_LONE_CLASS = "filter_lone_class"


@dataclass
class LSHISParams:
    """Parameters for one selection run."""

    num_tables: int = 4  # OR tables (L)
    num_hashes: int = 10  # AND hashes per table (K)
    w: float = 1.0  # Bucket width, suited to features normalized to [0, 1]
    seed: int = 1
    policy: SelectionPolicy | str = SelectionPolicy.ONE_OF_EACH_CLASS
    dimensions: int | None = None  # Expected feature count, checked if set

    def __post_init__(self) -> None:
        if isinstance(self.policy, str):
            try:
                self.policy = SelectionPolicy(self.policy)
            except ValueError:
                choices = ", ".join(p.value for p in SelectionPolicy)
                raise ConfigurationError(
                    f"Unknown policy {self.policy!r} (expected one of: {choices})"
                ) from None

        if self.num_tables < 1:
            raise ConfigurationError(f"num_tables must be >= 1, got {self.num_tables}")
        if self.num_hashes < 1:
            raise ConfigurationError(f"num_hashes must be >= 1, got {self.num_hashes}")
        if not self.w > 0:
            raise ConfigurationError(f"Bucket width w must be positive, got {self.w}")
        if self.seed < 0:
            raise ConfigurationError(f"seed must be non-negative, got {self.seed}")
        if self.dimensions is not None and self.dimensions < 0:
            raise ConfigurationError(f"dimensions must be >= 0, got {self.dimensions}")


@dataclass
class SelectionResult:
    """Reduced dataset plus timing statistics."""

    indices: list[int]  # Rows of the input, in output order
    dataset: LabeledDataset
    input_size: int
    cpu_time_ms: float = 0.0
    wall_time_ms: float = 0.0
    cpu_time_available: bool = True
    policy: SelectionPolicy = SelectionPolicy.ONE_OF_EACH_CLASS
    raw_selected: int = 0  # Selections before duplicate removal

    @property
    def num_selected(self) -> int:
        return len(self.indices)

    @property
    def reduction_rate(self) -> float:
        """Fraction of input instances discarded."""
        if self.input_size == 0:
            return 0.0
        return 1.0 - self.num_selected / self.input_size


@dataclass
class _Clock:
    """CPU (thread) and wall clock stopwatch in milliseconds."""

    cpu_available: bool = True
    _cpu_start: float = 0.0
    _wall_start: float = field(default_factory=time.perf_counter)

    def __post_init__(self) -> None:
        try:
            self._cpu_start = time.thread_time()
        except (AttributeError, OSError):
            logger.debug("Thread CPU time unavailable on this platform")
            self.cpu_available = False

    def elapsed(self) -> tuple[float, float]:
        wall_ms = (time.perf_counter() - self._wall_start) * 1000
        cpu_ms = 0.0
        if self.cpu_available:
            cpu_ms = (time.thread_time() - self._cpu_start) * 1000
        return cpu_ms, wall_ms


class LSHInstanceSelector:
    """LSH-based instance selection (LSH-IS).

    Builds L hash tables of K Euclidean hashes each and applies one of two
    policies:

    - ONE_OF_EACH_CLASS: single pass in dataset order. An instance is kept
      if, in at least one table, its bucket holds no kept instance of its
      class. Kept instances are then added to every table.
    - FILTER_LONE_CLASS: every instance is added to every table, then each
      bucket of each table contributes its first instance if the bucket is
      pure, or, if mixed, the first instance of each class with more than
      one member in the bucket.

    Duplicate records are removed from the result.
    """

    def __init__(self, params: LSHISParams | None = None, **kwargs) -> None:
        """Initialize the selector.

        Args:
            params: Run parameters. Keyword arguments build an LSHISParams
                when params is None.
        """
        if params is not None and kwargs:
            raise TypeError("Pass either params or keyword arguments, not both")
        self.params = params if params is not None else LSHISParams(**kwargs)
        self.tables: list[EuclideanHashTable] = []

    def validate(self, dataset: LabeledDataset) -> None:
        """Check the dataset against the parameters.

        Raises:
            ConfigurationError: Dimensionality mismatch, an empty class
                alphabet, non-finite weights or a label outside the class
                range.
        """
        dims = self.params.dimensions
        if dims is not None and dataset.dimensions != dims:
            raise ConfigurationError(
                f"Expected {dims} features per instance, dataset has {dataset.dimensions}"
            )

        if len(dataset) == 0:
            return

        if dataset.num_classes == 0:
            raise ConfigurationError("Dataset has an empty class alphabet")

        if not np.isfinite(dataset.weights).all():
            raise ConfigurationError("Instance weights must be finite")

        labels = dataset.labels
        out_of_range = (labels < 0) | (labels >= dataset.num_classes)
        if out_of_range.any():
            bad = int(labels[np.argmax(out_of_range)])
            raise ConfigurationError(
                f"Label {bad} outside class range [0, {dataset.num_classes})"
            )

    def select(self, dataset: LabeledDataset) -> SelectionResult:
        """Run instance selection.

        Args:
            dataset: Labeled dataset to reduce.

        Returns:
            SelectionResult with the kept rows.

        Raises:
            ConfigurationError: If the dataset does not fit the parameters.
        """
        self.validate(dataset)
        policy = self.params.policy
        n = len(dataset)

        if n == 0:
            self.tables = []
            return SelectionResult(
                indices=[],
                dataset=dataset.subset([]),
                input_size=0,
                policy=policy,
            )

        clock = _Clock()

        self.tables = build_tables(
            self.params.num_tables,
            self.params.num_hashes,
            dataset.dimensions,
            self.params.w,
            self.params.seed,
        )
        keys = [table.hash_batch(dataset.features) for table in self.tables]

        if policy is SelectionPolicy.ONE_OF_EACH_CLASS:
            selected = self._one_of_each_class(dataset, keys)
        else:
            selected = self._filter_lone_class(dataset, keys)

        indices = remove_duplicates(dataset, selected)
        cpu_ms, wall_ms = clock.elapsed()

        logger.info(
            "LSH-IS (%s): kept %d of %d instances (%d before duplicate removal) "
            "in %.1f ms",
            policy.value, len(indices), n, len(selected), wall_ms,
        )

        return SelectionResult(
            indices=indices,
            dataset=dataset.subset(indices),
            input_size=n,
            cpu_time_ms=cpu_ms,
            wall_time_ms=wall_ms,
            cpu_time_available=clock.cpu_available,
            policy=policy,
            raw_selected=len(selected),
        )

    def _one_of_each_class(
        self, dataset: LabeledDataset, keys: list[list[BucketKey]]
    ) -> list[int]:
        """Single pass; later instances are judged against kept ones only."""
        labels = dataset.labels
        selected = [0]
        for t, table in enumerate(self.tables):
            table.insert(keys[t][0], 0)

        for i in range(1, len(dataset)):
            label = labels[i]
            # Check every table before inserting i anywhere
            keep = False
            for t, table in enumerate(self.tables):
                bucket = table.bucket(keys[t][i])
                if not any(labels[j] == label for j in bucket):
                    keep = True
                    break

            if keep:
                for t, table in enumerate(self.tables):
                    table.insert(keys[t][i], i)
                selected.append(i)

        return selected

    def _filter_lone_class(
        self, dataset: LabeledDataset, keys: list[list[BucketKey]]
    ) -> list[int]:
        """Index everything, then pick representatives bucket by bucket."""
        labels = dataset.labels
        n = len(dataset)

        for t, table in enumerate(self.tables):
            for i in range(n):
                table.insert(keys[t][i], i)

        counts = np.zeros(dataset.num_classes, dtype=np.int64)
        selected = []
        for table in self.tables:
            for bucket in table.buckets.values():
                if _count_per_class(labels[bucket], counts) == 1:
                    selected.append(bucket[0])
                    continue

                # Mixed bucket: a class seen once here is noise. Only the
                # first instance of each repeated class is emitted, since
                # its counter is cleared once used.
                for j in bucket:
                    c = labels[j]
                    if counts[c] > 1:
                        selected.append(j)
                        counts[c] = 0

        return selected


def _count_per_class(bucket_labels: np.ndarray, counts: np.ndarray) -> int:
    """Fill counts with per-class totals; return the number of classes present."""
    counts[:] = 0
    np.add.at(counts, bucket_labels, 1)
    return int(np.count_nonzero(counts))


def select_instances(dataset: LabeledDataset, **kwargs) -> SelectionResult:
    """Reduce a dataset with LSH-IS.

    Args:
        dataset: Labeled dataset.
        **kwargs: LSHISParams fields.

    Returns:
        SelectionResult.
    """
    return LSHInstanceSelector(**kwargs).select(dataset)
