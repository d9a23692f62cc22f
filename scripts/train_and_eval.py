"""Training + evaluation pipeline runner.

Orchestrates the complete comparison workflow:
1. Load order and restaurant CSVs
2. Join and derive model fields (Wrangler)
3. Filter, split, cross-validate, final fit (Pipeline)
4. Print comparison and selected model
5. Save report

Usage:
    python scripts/train_and_eval.py --orders data/orders.csv \
        --restaurants data/restaurants.csv --variant asap
"""

import argparse
import logging
from pathlib import Path

import pandas as pd

from preptime.config import PipelineConfig
from preptime.features import Wrangler
from preptime.features.filters import OUTLIER_FILTERS
from preptime.pipeline import Pipeline

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


def main():
    """Run full training + evaluation pipeline."""
    defaults = PipelineConfig()
    parser = argparse.ArgumentParser(
        description="Compare preparation-time models under stratified cross-validation"
    )
    parser.add_argument("--orders", type=Path, required=True, help="Orders CSV")
    parser.add_argument("--restaurants", type=Path, required=True, help="Restaurant reference CSV")
    parser.add_argument(
        "--variant",
        choices=sorted(OUTLIER_FILTERS),
        default=defaults.variant,
        help=f"Upstream outlier filter. Default: {defaults.variant}",
    )
    parser.add_argument("--folds", type=int, default=defaults.fold_count, help="Cross-validation folds")
    parser.add_argument(
        "--train-fraction",
        type=float,
        default=defaults.train_fraction,
        help="Share of rows in the training subset",
    )
    parser.add_argument("--trees", type=int, default=defaults.tree_count, help="Trees in the ensemble")
    parser.add_argument("--seed", type=int, default=defaults.random_seed, help="Random seed")
    parser.add_argument("--n-jobs", type=int, default=defaults.n_jobs, help="Parallel fold workers")
    parser.add_argument("--out", type=Path, default=defaults.output_dir, help="Report directory")

    args = parser.parse_args()

    config = PipelineConfig(
        train_fraction=args.train_fraction,
        fold_count=args.folds,
        random_seed=args.seed,
        tree_count=args.trees,
        n_jobs=args.n_jobs,
        variant=args.variant,
        output_dir=args.out,
    )

    print("\n" + "=" * 70)
    print(f"PREPTIME MODEL COMPARISON ({config.variant})")
    print("=" * 70)

    # Step 1: Load + wrangle
    print("\n[1/4] PREPARING DATA")
    print("-" * 70)
    orders = pd.read_csv(args.orders)
    restaurants = pd.read_csv(args.restaurants)
    dataset = Wrangler().prepare(orders, restaurants)
    print(f"Prepared {len(dataset):,} orders")

    # Step 2: Split
    print("\n[2/4] SPLITTING DATA")
    print("-" * 70)
    pipeline = Pipeline(dataset, config)
    pipeline.filter()
    pipeline.split().print_summary()
    pipeline.assign_folds()

    # Step 3: Cross-validate + final fit
    print("\n[3/4] EVALUATING")
    print("-" * 70)
    for cv in pipeline.cross_validate():
        cv.print_summary()
    pipeline.final_fit()

    # Step 4: Report
    print("\n[4/4] REPORT")
    print("-" * 70)
    report = pipeline.report()
    report.print_summary()
    report_path = pipeline.save_artifacts()

    print("\n" + "=" * 70)
    print("PIPELINE COMPLETE")
    print("=" * 70)
    print(f"Report: {report_path}")

    return 0


if __name__ == "__main__":
    exit(main())
