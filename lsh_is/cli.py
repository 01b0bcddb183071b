"""Command-line entry point: reduce a dataset file with LSH-IS."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from lsh_is.db import DatasetStore
from lsh_is.errors import ConfigurationError
from lsh_is.loader import dataset_from_dataframe
from lsh_is.log import setup_logger
from lsh_is.selector import LSHInstanceSelector, LSHISParams, SelectionPolicy, SelectionResult

logger = logging.getLogger("lsh_is.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lsh-is",
        description="Instance selection with locality-sensitive hashing (LSH-IS)",
    )
    parser.add_argument("input", type=Path, help="Input dataset (.csv, .parquet or .arff)")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the reduced dataset here (.csv or .parquet)",
    )
    parser.add_argument(
        "-L",
        "--tables",
        type=int,
        default=4,
        help="Number of hash tables, OR construction (default: 4)",
    )
    parser.add_argument(
        "-K",
        "--hashes",
        type=int,
        default=10,
        help="Number of hash functions per table, AND construction (default: 10)",
    )
    parser.add_argument(
        "-w",
        "--width",
        type=float,
        default=1.0,
        help="Bucket width; keep 1.0 for features normalized to [0, 1] (default: 1.0)",
    )
    parser.add_argument(
        "-s",
        "--seed",
        type=int,
        default=1,
        help="Random seed for the hash functions (default: 1)",
    )
    parser.add_argument(
        "--policy",
        type=str,
        default=SelectionPolicy.ONE_OF_EACH_CLASS.value,
        choices=[p.value for p in SelectionPolicy],
        help="Selection policy (default: one_of_each_class)",
    )
    parser.add_argument(
        "--label-column",
        type=str,
        default=None,
        help="Class column (default: last column)",
    )
    parser.add_argument(
        "--weight-column",
        type=str,
        default=None,
        help="Instance weight column (default: all weights 1.0)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def print_results(result: SelectionResult, path: Path) -> None:
    """Print formatted selection results."""
    print("=" * 60)
    print(f"LSH-IS: {path.name}")
    print("=" * 60)
    print(f"  Policy:            {result.policy.value}")
    print(f"  Input instances:   {result.input_size}")
    print(f"  Selected:          {result.num_selected}")
    print(f"  Before dedup:      {result.raw_selected}")
    print(f"  Reduction Rate:    {result.reduction_rate * 100:.1f}%")
    if result.cpu_time_available:
        print(f"  CPU time:          {result.cpu_time_ms:.2f} ms")
    else:
        print("  CPU time:          unavailable")
    print(f"  Wall time:         {result.wall_time_ms:.2f} ms")


def main(argv: list[str] | None = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)
    setup_logger(
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
        log_file=args.log_file,
    )

    try:
        params = LSHISParams(
            num_tables=args.tables,
            num_hashes=args.hashes,
            w=args.width,
            seed=args.seed,
            policy=args.policy,
        )
        with DatasetStore(in_memory=True) as store:
            df = store.read_file(args.input)
            dataset = dataset_from_dataframe(
                df,
                label_column=args.label_column,
                weight_column=args.weight_column,
            )
            result = LSHInstanceSelector(params).select(dataset)

            if args.output is not None:
                reduced = df.iloc[result.indices].reset_index(drop=True)
                store.save_dataframe(reduced, "selected")
                store.export("selected", args.output)
                logger.info("Wrote %d instances to %s", len(reduced), args.output)
    except ConfigurationError as exc:
        print(f"lsh-is: configuration error: {exc}", file=sys.stderr)
        return 2

    print_results(result, args.input)
    return 0


if __name__ == "__main__":
    sys.exit(main())
