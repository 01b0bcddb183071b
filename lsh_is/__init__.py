"""LSH-IS - instance selection of linear complexity with locality-sensitive hashing."""

__version__ = "0.1.0"

from .dataset import FeatureVector, LabeledDataset, remove_duplicates
from .e2lsh import EuclideanHash, EuclideanHashTable, build_tables
from .errors import ConfigurationError
from .selector import (
    LSHInstanceSelector,
    LSHISParams,
    SelectionPolicy,
    SelectionResult,
    select_instances,
)

__all__ = [
    'ConfigurationError',
    'EuclideanHash',
    'EuclideanHashTable',
    'FeatureVector',
    'LabeledDataset',
    'LSHInstanceSelector',
    'LSHISParams',
    'SelectionPolicy',
    'SelectionResult',
    'build_tables',
    'remove_duplicates',
    'select_instances',
]
