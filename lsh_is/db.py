"""Dataset storage using DuckDB.

Reads CSV, Parquet and ARFF inputs into tables and exports reduced
datasets. Only datasets are stored; hash tables are rebuilt per run.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import duckdb
import pandas as pd

from lsh_is.loader import load_arff

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data/datasets.duckdb")
SUPPORTED_SUFFIXES = (".csv", ".parquet", ".arff")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


class DatasetStore:
    """DuckDB-backed storage for labeled datasets."""

    def __init__(
        self,
        db_path: Path | str | None = None,
        in_memory: bool = False,
    ) -> None:
        """Initialize database connection.

        Args:
            db_path: Path to database file (uses default if None).
            in_memory: If True, use in-memory database.
        """
        if in_memory:
            self.db_path = None
            self.conn = duckdb.connect(":memory:")
        else:
            self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = duckdb.connect(str(self.db_path))

    def read_file(self, path: Path | str) -> pd.DataFrame:
        """Read a CSV, Parquet or ARFF file without storing it.

        Args:
            path: Input file; the format is chosen by suffix.

        Returns:
            DataFrame with the file contents.
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == ".csv":
            return self.conn.read_csv(str(path)).df()
        if suffix == ".parquet":
            return self.conn.read_parquet(str(path)).df()
        if suffix == ".arff":
            return load_arff(path)

        raise ValueError(
            f"Unsupported file type {suffix!r} (expected one of {SUPPORTED_SUFFIXES})"
        )

    def load_file(self, path: Path | str, table: str) -> int:
        """Load a file into a table, replacing any existing table.

        Args:
            path: CSV, Parquet or ARFF file.
            table: Target table name.

        Returns:
            Number of loaded rows.
        """
        df = self.read_file(path)
        self.save_dataframe(df, table)
        logger.debug("Loaded %d rows from %s into %s", len(df), path, table)
        return len(df)

    def save_dataframe(self, df: pd.DataFrame, table: str) -> int:
        """Store a DataFrame as a table, replacing any existing table.

        Args:
            df: Data to store.
            table: Target table name.

        Returns:
            Number of stored rows.
        """
        table = _check_identifier(table)
        self.conn.register("_incoming", df)
        try:
            self.conn.execute(f"CREATE OR REPLACE TABLE {table} AS SELECT * FROM _incoming")
        finally:
            self.conn.unregister("_incoming")
        return len(df)

    def fetch(self, table: str) -> pd.DataFrame:
        """Get all rows of a table.

        Returns:
            DataFrame with the table contents.
        """
        table = _check_identifier(table)
        return self.conn.execute(f"SELECT * FROM {table}").fetchdf()

    def export(self, table: str, path: Path | str) -> Path:
        """Write a table to CSV or Parquet, chosen by suffix.

        Args:
            table: Source table name.
            path: Output file.

        Returns:
            The output path.
        """
        table = _check_identifier(table)
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == ".csv":
            options = "FORMAT CSV, HEADER"
        elif suffix == ".parquet":
            options = "FORMAT PARQUET"
        else:
            raise ValueError(f"Unsupported output type {suffix!r} (expected .csv or .parquet)")

        path.parent.mkdir(parents=True, exist_ok=True)
        escaped = str(path).replace("'", "''")
        self.conn.execute(f"COPY {table} TO '{escaped}' ({options})")
        return path

    def tables(self) -> list[str]:
        """Get names of stored tables."""
        rows = self.conn.execute(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_type = 'BASE TABLE' ORDER BY table_name"
        ).fetchall()
        return [r[0] for r in rows]

    def count(self, table: str) -> int:
        """Get the number of rows in a table."""
        table = _check_identifier(table)
        result = self.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
        return result[0] if result else 0

    def drop(self, table: str) -> None:
        """Delete a table if it exists."""
        table = _check_identifier(table)
        self.conn.execute(f"DROP TABLE IF EXISTS {table}")

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()

    def __enter__(self) -> DatasetStore:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
