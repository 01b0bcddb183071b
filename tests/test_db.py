"""Tests for lsh_is/db.py."""

import pandas as pd
import pytest

from lsh_is.db import DatasetStore


@pytest.fixture
def in_memory_store():
    """Create an in-memory DatasetStore."""
    store = DatasetStore(in_memory=True)
    yield store
    store.close()


@pytest.fixture
def sample_frame():
    return pd.DataFrame(
        {"x": [0.1, 0.2, 0.3], "y": [0.4, 0.5, 0.6], "cls": ["a", "b", "a"]}
    )


class TestDatasetStore:
    """Tests for DatasetStore class."""

    def test_save_and_count(self, in_memory_store, sample_frame):
        inserted = in_memory_store.save_dataframe(sample_frame, "train")
        assert inserted == 3
        assert in_memory_store.count("train") == 3

    def test_fetch_round_trip(self, in_memory_store, sample_frame):
        in_memory_store.save_dataframe(sample_frame, "train")
        df = in_memory_store.fetch("train")

        assert list(df.columns) == ["x", "y", "cls"]
        assert df["cls"].tolist() == ["a", "b", "a"]

    def test_save_replaces_table(self, in_memory_store, sample_frame):
        in_memory_store.save_dataframe(sample_frame, "train")
        in_memory_store.save_dataframe(sample_frame.head(1), "train")
        assert in_memory_store.count("train") == 1

    def test_tables_and_drop(self, in_memory_store, sample_frame):
        in_memory_store.save_dataframe(sample_frame, "train")
        in_memory_store.save_dataframe(sample_frame, "selected")
        assert in_memory_store.tables() == ["selected", "train"]

        in_memory_store.drop("train")
        assert in_memory_store.tables() == ["selected"]

    def test_invalid_table_name(self, in_memory_store, sample_frame):
        with pytest.raises(ValueError, match="Invalid table name"):
            in_memory_store.save_dataframe(sample_frame, "train; DROP TABLE x")

    @pytest.mark.parametrize("suffix", [".csv", ".parquet"])
    def test_export_and_load(self, in_memory_store, sample_frame, tmp_path, suffix):
        in_memory_store.save_dataframe(sample_frame, "train")
        path = in_memory_store.export("train", tmp_path / "out" / f"train{suffix}")

        assert path.exists()
        loaded = in_memory_store.load_file(path, "reloaded")
        assert loaded == 3
        assert in_memory_store.fetch("reloaded")["cls"].tolist() == ["a", "b", "a"]

    def test_export_unsupported_suffix(self, in_memory_store, sample_frame, tmp_path):
        in_memory_store.save_dataframe(sample_frame, "train")
        with pytest.raises(ValueError, match="Unsupported output type"):
            in_memory_store.export("train", tmp_path / "train.xlsx")

    def test_file_database(self, tmp_path, sample_frame):
        db_path = tmp_path / "nested" / "datasets.duckdb"
        with DatasetStore(db_path=db_path) as store:
            store.save_dataframe(sample_frame, "train")

        assert db_path.exists()
        with DatasetStore(db_path=db_path) as store:
            assert store.count("train") == 3
