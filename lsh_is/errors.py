"""Exceptions raised by instance selection."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Selection cannot run with the given parameters or dataset.

    Raised eagerly, before any hash table is built.
    """
