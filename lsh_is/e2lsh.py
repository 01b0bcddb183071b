"""E2LSH (Euclidean LSH) hash functions and hash tables.

Each hash function projects a vector onto a random Gaussian direction:

    h(v) = round((a·v + b) / w)

- a: random vector from Gaussian N(0, 1)
- b: random offset in [0, w)
- w: bucket width

The probability that two vectors share a bucket decreases with their
Euclidean distance. A hash table ANDs K such functions: two vectors share
a bucket only if all K projections agree.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

MAX_SEED = 2**63 - 1

# Combined AND key: the K per-function bucket ids, in hash-function order
BucketKey = tuple[int, ...]


def derive_seeds(seed: int, count: int) -> list[int]:
    """Draw sub-seeds from one seeded generator, in index order.

    Args:
        seed: Master seed.
        count: Number of sub-seeds.

    Returns:
        List of count non-negative integer seeds.
    """
    rng = np.random.default_rng(seed)
    return [int(s) for s in rng.integers(0, MAX_SEED, size=count)]


def round_half_up(values: NDArray[np.floating]) -> NDArray[np.int64]:
    """Round to the nearest integer, ties towards +infinity.

    NaN (a projection over a missing value) rounds to 0.
    """
    rounded = np.floor(np.asarray(values, dtype=np.float64) + 0.5)
    rounded[np.isnan(rounded)] = 0.0
    return rounded.astype(np.int64)


class EuclideanHash:
    """Single projection hash for Euclidean distance.

    Two instances built from the same (dim, w, seed) are identical.
    """

    def __init__(self, dim: int, w: float = 1.0, seed: int = 1) -> None:
        """Initialize the hash function.

        The offset is drawn before the coefficients. Widths below 1.0 get
        an offset quantized to tenths, wider buckets an integer offset.

        Args:
            dim: Dimension of input vectors.
            w: Bucket width.
            seed: Random seed.
        """
        if w <= 0:
            raise ValueError(f"Bucket width must be positive, got {w}")

        self.dim = dim
        self.w = float(w)
        self.seed = seed

        rng = np.random.default_rng(seed)

        if w < 1.0:
            self.offset = int(rng.integers(max(int(w * 10), 1))) / 10.0
        else:
            self.offset = float(rng.integers(int(w)))

        self.coefficients = rng.standard_normal(dim)

    def hash(self, vector: NDArray[np.floating]) -> int:
        """Compute the bucket id of a vector along this direction.

        Args:
            vector: Array of at least dim values; extra trailing values
                are ignored.

        Returns:
            Signed integer bucket id.
        """
        values = np.asarray(vector, dtype=np.float64)[: self.dim]
        projection = float(self.coefficients @ values)
        value = (projection + self.offset) / self.w
        if math.isnan(value):
            return 0
        return math.floor(value + 0.5)

    def hash_batch(self, vectors: NDArray[np.floating]) -> NDArray[np.int64]:
        """Compute bucket ids for rows of a (n, dim) array."""
        projections = np.asarray(vectors, dtype=np.float64)[:, : self.dim] @ self.coefficients
        return round_half_up((projections + self.offset) / self.w)


class EuclideanHashTable:
    """Hash table combining K Euclidean hashes (AND construction).

    Buckets hold integer handles (row indices) in insertion order. The
    table never copies or owns the vectors themselves.
    """

    def __init__(self, num_hashes: int, dim: int, w: float = 1.0, seed: int = 1) -> None:
        """Initialize the table.

        Args:
            num_hashes: Number of hash functions (K).
            dim: Dimension of input vectors.
            w: Bucket width.
            seed: Seed for the generator that seeds each hash function.
        """
        self.num_hashes = num_hashes
        self.dim = dim
        self.w = w
        self.seed = seed

        self.hash_functions = [
            EuclideanHash(dim, w, s) for s in derive_seeds(seed, num_hashes)
        ]
        # Stacked for batch hashing: (K, dim) and (K,)
        self._projections = np.array(
            [h.coefficients for h in self.hash_functions], dtype=np.float64
        ).reshape(num_hashes, dim)
        self._offsets = np.array(
            [h.offset for h in self.hash_functions], dtype=np.float64
        )

        self._buckets: dict[BucketKey, list[int]] = {}

    def bucket_ids(self, vector: NDArray[np.floating]) -> BucketKey:
        """Per-function bucket ids of a vector, in hash-function order."""
        return tuple(h.hash(vector) for h in self.hash_functions)

    def hash(self, vector: NDArray[np.floating]) -> BucketKey:
        """Compute the combined bucket key of a vector.

        Args:
            vector: Input vector of shape (dim,).

        Returns:
            Tuple of the K bucket ids; two vectors share a bucket only
            if every id agrees.
        """
        return self.bucket_ids(vector)

    def hash_batch(self, vectors: NDArray[np.floating]) -> list[BucketKey]:
        """Compute combined keys for rows of a (n, dim) array.

        Uses one matrix product for all K functions. Keys for a given run
        must come from the same method for both insertion and lookup.

        Args:
            vectors: Input vectors of shape (n, dim).

        Returns:
            List of n combined keys.
        """
        vectors = np.asarray(vectors, dtype=np.float64)
        if len(vectors) == 0:
            return []

        # (n, dim) @ (dim, K) = (n, K)
        proj = vectors[:, : self.dim] @ self._projections.T
        ids = round_half_up((proj + self._offsets) / self.w)

        return [tuple(row) for row in ids.tolist()]

    def add(self, vector: NDArray[np.floating], handle: int) -> BucketKey:
        """Store a handle in the bucket of vector.

        Args:
            vector: Vector used to compute the bucket key.
            handle: Row index of the vector in its dataset.

        Returns:
            The bucket key.
        """
        key = self.hash(vector)
        self.insert(key, handle)
        return key

    def insert(self, key: BucketKey, handle: int) -> None:
        """Append a handle to the bucket with the given key."""
        bucket = self._buckets.get(key)
        if bucket is None:
            self._buckets[key] = [handle]
        else:
            bucket.append(handle)

    def add_batch(
        self, vectors: NDArray[np.floating], handles: Iterable[int] | None = None
    ) -> list[BucketKey]:
        """Store many handles, hashing all vectors at once.

        Args:
            vectors: Input vectors of shape (n, dim).
            handles: Row indices (default 0..n-1).

        Returns:
            The n bucket keys.
        """
        keys = self.hash_batch(vectors)
        if handles is None:
            handles = range(len(keys))
        for key, handle in zip(keys, handles):
            self.insert(key, handle)
        return keys

    def query(self, vector: NDArray[np.floating]) -> list[int]:
        """Return the handles in the bucket of vector.

        Args:
            vector: Query vector of shape (dim,).

        Returns:
            Handles in insertion order; empty list if the bucket is empty.
        """
        return self.bucket(self.hash(vector))

    def bucket(self, key: BucketKey) -> list[int]:
        """Return the handles stored under key (empty list if none)."""
        return self._buckets.get(key, [])

    @property
    def buckets(self) -> dict[BucketKey, list[int]]:
        """Full bucket mapping: key -> handles in insertion order."""
        return self._buckets

    def __len__(self) -> int:
        return len(self._buckets)

    def __repr__(self) -> str:
        return (
            f"EuclideanHashTable(num_hashes={self.num_hashes}, dim={self.dim}, "
            f"w={self.w}, seed={self.seed}, buckets={len(self._buckets)})"
        )


def build_tables(
    num_tables: int, num_hashes: int, dim: int, w: float = 1.0, seed: int = 1
) -> list[EuclideanHashTable]:
    """Build L independent hash tables (OR construction).

    Args:
        num_tables: Number of tables (L).
        num_hashes: Hash functions per table (K).
        dim: Dimension of input vectors.
        w: Bucket width.
        seed: Master seed; each table gets a sub-seed in table order.

    Returns:
        List of num_tables empty tables.
    """
    tables = [
        EuclideanHashTable(num_hashes, dim, w, s)
        for s in derive_seeds(seed, num_tables)
    ]
    logger.debug(
        "Built %d tables x %d hashes (dim=%d, w=%s, seed=%s)",
        num_tables, num_hashes, dim, w, seed,
    )
    return tables


def compute_e2lsh_collision_prob(distance: float, w: float) -> float:
    """Collision probability of one Gaussian projection hash.

    For two vectors at Euclidean distance d, with c = d / w:

        P = 1 - 2*Phi(-1/c) - (2 / sqrt(2*pi)) * c * (1 - exp(-1 / (2*c^2)))

    where Phi is the standard normal CDF. P is non-decreasing in w.

    Args:
        distance: Euclidean distance between vectors.
        w: Bucket width.

    Returns:
        Collision probability in [0, 1].
    """
    if distance <= 0:
        return 1.0
    c = distance / w
    phi = 0.5 * (1.0 + math.erf((-1.0 / c) / math.sqrt(2.0)))
    prob = 1.0 - 2.0 * phi - (2.0 / math.sqrt(2.0 * math.pi)) * c * (
        1.0 - math.exp(-1.0 / (2.0 * c * c))
    )
    return min(max(prob, 0.0), 1.0)
