"""
Command-line interface for dataset generation and capacity planning.

Usage:
    promo-datagen generate --stores 50 --groups 5 --weeks 39 40
    promo-datagen generate --config run.yaml --output dataset.json
    promo-datagen capacity --stores 10 50 250
    promo-datagen benchmark --stores 10 --iterations 3

Exit status is 1 on configuration errors or failed validation errors;
warnings never change it.
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import replace
from pathlib import Path

from .aggregation import AggregationEngine
from .capacity import REPORT_SCENARIOS, CapacityConfig, CapacityEstimator
from .config import GeneratorConfig, load_config
from .dataset import build_dataset, validate_dataset
from .errors import ConfigurationError
from .validation import print_validation_report


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="promo-datagen",
        description="Generate synthetic retail-promotion datasets and plan capacity.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 50 stores in 5 groups, five weeks, validate only
  promo-datagen generate

  # Small reproducible run written to JSON
  promo-datagen generate --stores 5 --groups 1 --weeks 40 --seed 42 --output out.json

  # Capacity table for custom store counts
  promo-datagen capacity --stores 10 50 500
""",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate and validate a dataset")
    gen.add_argument("--config", type=Path, help="YAML config file")
    gen.add_argument("--stores", type=int, help="Number of stores")
    gen.add_argument("--groups", type=int, help="Number of equal store groups")
    gen.add_argument("--weeks", type=int, nargs="+", help="Week numbers to generate")
    gen.add_argument("--products", type=int, help="Products per store (trims the catalog)")
    gen.add_argument("--seed", type=int, help="Random seed for reproducibility")
    gen.add_argument("--chunk-size", type=int, help="Stores per chunk (default: by strategy)")
    gen.add_argument("--workers", type=int, help="Parallel chunk workers")
    gen.add_argument("--output", type=Path, help="Write the dataset as JSON")
    gen.add_argument("--skip-validation", action="store_true", help="Skip validation checks")

    cap = sub.add_parser("capacity", help="Print the capacity report")
    cap.add_argument(
        "--stores",
        type=int,
        nargs="+",
        default=list(REPORT_SCENARIOS),
        help="Store counts to project",
    )
    cap.add_argument("--products", type=int, default=30, help="Products per store")

    bench = sub.add_parser("benchmark", help="Time generation and extrapolate")
    bench.add_argument("--stores", type=int, default=10, help="Stores per pass")
    bench.add_argument("--iterations", type=int, default=3, help="Timed passes")
    bench.add_argument("--products", type=int, default=30, help="Products per store")

    return parser.parse_args(argv)


def _generator_config(args: argparse.Namespace) -> GeneratorConfig:
    config = load_config(args.config) if args.config else GeneratorConfig()
    overrides = {
        "store_count": args.stores,
        "group_count": args.groups,
        "weeks": args.weeks,
        "products_per_store": args.products,
        "seed": args.seed,
        "chunk_size": args.chunk_size,
        "workers": args.workers,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if "weeks" in overrides and config.current_week not in overrides["weeks"]:
        overrides["current_week"] = max(overrides["weeks"])
    return replace(config, **overrides)


def run_generate(args: argparse.Namespace) -> int:
    config = _generator_config(args)

    print("=" * 60)
    print(f"{config.banner} Promotion Data Generation")
    print("=" * 60)
    print(f"Seed: {config.seed}")
    print(f"Stores: {config.store_count} in {config.group_count} groups")
    print(f"Weeks: {config.weeks}")
    print()

    start = time.time()
    dataset = build_dataset(config, progress=True)
    elapsed = time.time() - start
    total = len(dataset.promotions)
    rate = total / elapsed if elapsed > 0 else 0

    print()
    print(f"Strategy: {dataset.strategy.approach.value} (chunk size {dataset.strategy.chunk_size})")
    for advisory in dataset.strategy.advisories:
        print(f"  {advisory}")
    print(f"Total promotions: {total:,}")
    print(f"Total time: {elapsed:.2f}s ({rate:,.0f} promotions/sec)")

    engine = AggregationEngine(dataset.promotions)
    print()
    print("Insights:")
    for line in engine.insights():
        print(f"  - {line}")

    passed = True
    if not args.skip_validation:
        report = validate_dataset(dataset, config)
        passed = print_validation_report(report)
    else:
        print("\nValidation skipped.")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(dataset.to_dict(), f)
        print(f"\nOutput: {args.output}")

    if passed:
        print("\nSuccess!")
        return 0
    print("\nValidation failed. Review errors above.")
    return 1


def run_capacity(args: argparse.Namespace) -> int:
    estimator = CapacityEstimator(config=CapacityConfig(products_per_store=args.products))

    print("=" * 60)
    print("Capacity Report")
    print("=" * 60)
    print(f"{'Stores':>7} {'Promotions':>11} {'Size MB':>9} {'Memory MB':>10} {'Load ms':>9}  Risk")
    print("-" * 60)
    for row in estimator.capacity_report(args.stores):
        print(
            f"{row.store_count:>7} {row.promotions:>11,} {row.size_mb:>9.2f} "
            f"{row.memory_mb:>10.0f} {row.load_time_ms:>9.0f}  {row.risk}"
        )

    print()
    print("Scaling strategies:")
    for count in args.stores:
        strategy = estimator.get_scaling_strategy(count)
        print(f"  {count} stores: {strategy.approach.value} (chunk size {strategy.chunk_size})")
        for rec in strategy.recommendations:
            print(f"    - {rec}")
        for advisory in strategy.advisories:
            print(f"    ! {advisory}")
    return 0


def run_benchmark(args: argparse.Namespace) -> int:
    estimator = CapacityEstimator(config=CapacityConfig(products_per_store=args.products))

    print("=" * 60)
    print(f"Benchmark: {args.stores} stores x {args.iterations} iterations")
    print("=" * 60)
    result = estimator.benchmark(args.stores, args.iterations)
    for it in result.iterations:
        print(
            f"  Run {it.iteration}: {it.processing_time_ms:8.2f}ms - "
            f"{it.records_generated:,} promotions ({it.records_per_second:,.0f}/sec)"
        )
    print(f"Average: {result.average_time_ms:.2f}ms (std {result.std_time_ms:.2f}ms)")
    print(f"Throughput: {result.average_records_per_second:,.0f} promotions/sec")
    print()
    print(f"Projections ({result.extrapolation}):")
    for stores, ms in result.projections_ms.items():
        print(f"  {stores:>4} stores: {ms:,.0f}ms")
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Run the CLI.

    Returns:
        0 on success, 1 on configuration error or validation failure
    """
    args = parse_args(argv)
    commands = {
        "generate": run_generate,
        "capacity": run_capacity,
        "benchmark": run_benchmark,
    }
    try:
        return commands[args.command](args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
