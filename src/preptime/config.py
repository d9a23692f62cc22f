"""Centralized configuration for preptime.

All paths, pipeline defaults and model parameters in one place.
Environment variables can override defaults.

Path Constants:
    PROJECT_ROOT - Root directory of the project
    STORAGE_DIR - Storage for datasets and reports
    DEFAULT_OUTPUT_DIR - Comparison reports (overridable via PREPTIME_OUTPUT_DIR)

Pipeline Constants:
    TRAIN_FRACTION - Share of rows sent to the training subset
    FOLD_COUNT - Number of cross-validation folds
    STRATA_BINS - Quantile buckets used to stratify on the target
    RARE_THRESHOLDS - Rare-level frequency threshold per categorical field group
    TREE_COUNT - Trees in the ensemble model

Variant Constants:
    NEXT_DAY_MIN_HOURS - Minimum duration for a cross-date order to count as next-day
    ASAP_MAX_HOURS - Longest preparation kept by the asap variant

Environment Variables:
    PREPTIME_RANDOM_SEED - Override the default random seed
    PREPTIME_N_JOBS - Override the number of parallel fold workers
    PREPTIME_OUTPUT_DIR - Override the report output directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

# Project root (src/preptime/config.py -> preptime -> src -> project_root)
PROJECT_ROOT = Path(__file__).parent.parent.parent
STORAGE_DIR = PROJECT_ROOT / "storage"
DEFAULT_OUTPUT_DIR = Path(os.environ.get("PREPTIME_OUTPUT_DIR", str(STORAGE_DIR / "reports")))

RANDOM_SEED = int(os.environ.get("PREPTIME_RANDOM_SEED", "42"))
N_JOBS = int(os.environ.get("PREPTIME_N_JOBS", "1"))

# Splitting
TRAIN_FRACTION = 0.75
FOLD_COUNT = 10
STRATA_BINS = 4

# Rare-level thresholds per field group (see features.definitions.FIELD_GROUPS)
RARE_THRESHOLDS = {
    "common": 0.015,      # type_of_food, hour_of_day, country
    "identifier": 0.005,  # city, restaurant_id
    "calendar": 0.0,      # day_of_week is never collapsed
}

# Models
TREE_COUNT = 500

# Business variants
NEXT_DAY_MIN_HOURS = 8.0
ASAP_MAX_HOURS = 2.0
DEFAULT_VARIANT = "same_day"

# Model selection: intervals are mean +/- CI_WIDTH * standard error
CI_WIDTH = 2.0
# Overfitting signal: gap (holdout - train RMSE, hours) exceeding a competitor's by more than this
OVERFIT_GAP_TOLERANCE = 0.05


@dataclass
class PipelineConfig:
    """Options recognized by the pipeline runner.

    Attributes:
        train_fraction: Share of rows in the training subset (0 < f < 1).
        fold_count: Number of cross-validation folds.
        strata_bins: Quantile buckets for target stratification.
        rare_thresholds: Rare-level threshold per field group name.
        random_seed: Seed threaded into the splitter, fold assigner and ensemble.
        tree_count: Trees in the ensemble model.
        n_jobs: Parallel fold workers (joblib semantics, -1 = all cores).
        variant: Name of the upstream outlier filter ("same_day" or "asap").
        next_day_min_hours: Next-day heuristic cutoff.
        asap_max_hours: Longest preparation kept by the asap variant.
        output_dir: Where the comparison report is written.
    """
    train_fraction: float = TRAIN_FRACTION
    fold_count: int = FOLD_COUNT
    strata_bins: int = STRATA_BINS
    rare_thresholds: Dict[str, float] = field(default_factory=lambda: dict(RARE_THRESHOLDS))
    random_seed: int = RANDOM_SEED
    tree_count: int = TREE_COUNT
    n_jobs: int = N_JOBS
    variant: str = DEFAULT_VARIANT
    next_day_min_hours: float = NEXT_DAY_MIN_HOURS
    asap_max_hours: float = ASAP_MAX_HOURS
    output_dir: Path = DEFAULT_OUTPUT_DIR

    def __post_init__(self):
        if not 0.0 < self.train_fraction < 1.0:
            raise ValueError(f"train_fraction must be in (0, 1), got {self.train_fraction}")
        if self.fold_count < 2:
            raise ValueError(f"fold_count must be >= 2, got {self.fold_count}")
        if self.tree_count < 1:
            raise ValueError(f"tree_count must be >= 1, got {self.tree_count}")
        self.output_dir = Path(self.output_dir)
