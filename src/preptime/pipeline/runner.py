"""Preparation-time modeling pipeline.

End-to-end pipeline that orchestrates:
1. Validation + variant outlier filter
2. Stratified train/holdout split (Splitter)
3. Stratified k-fold plan on the training subset (FoldAssigner)
4. Cross-validation of every model spec (Evaluator)
5. Final fit on train, scored on holdout and train (Evaluator)
6. Comparison report + model selection
7. Report saving

Only the outlier filter differs between the same-day and asap variants; it
is looked up from the config (or injected) and applied before splitting.

Usage:
    from preptime.pipeline import Pipeline
    from preptime.config import PipelineConfig

    # Full pipeline
    pipeline = Pipeline.run(df, PipelineConfig(variant="asap"))

    # Or step by step
    pipeline = Pipeline(df)
    pipeline.filter()
    pipeline.split()
    pipeline.assign_folds()
    pipeline.cross_validate()
    pipeline.final_fit()
    pipeline.report()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from preptime.config import PipelineConfig
from preptime.data.schemas import validate_dataset
from preptime.errors import InsufficientDataError, SchemaMismatchError
from preptime.features.definitions import RecipeConfig
from preptime.features.filters import OutlierFilter, get_filter
from preptime.features.recipe import Recipe
from preptime.models.specs import ModelSpec, default_specs
from preptime.models.splits import FoldAssigner, FoldPlan, Split, Splitter
from preptime.models.workflow import Workflow
from preptime.pipeline.evaluator import CrossValidationResult, Evaluator, FinalFitResult
from preptime.pipeline.report import KEY_SEPARATOR, ComparisonReport

logger = logging.getLogger(__name__)

REPORT_FILENAME = "comparison_report.json"


class Pipeline:
    """End-to-end preparation-time modeling pipeline."""

    def __init__(
        self,
        dataset: pd.DataFrame,
        config: Optional[PipelineConfig] = None,
        specs: Optional[Sequence[ModelSpec]] = None,
        outlier_filter: Optional[OutlierFilter] = None,
    ):
        """Initialize pipeline.

        Args:
            dataset: Joined order rows (read-only; never modified).
            config: Pipeline options, defaults from preptime.config.
            specs: Competing model specs, defaults to linear + ensemble.
            outlier_filter: Keep-mask predicate; defaults to the filter named
                by config.variant.
        """
        self.config = config or PipelineConfig()
        self.dataset = dataset
        self.outlier_filter = outlier_filter or get_filter(self.config.variant)
        self.specs = list(specs) if specs is not None else default_specs(
            tree_count=self.config.tree_count,
            seed=self.config.random_seed,
        )
        names = [s.name for s in self.specs]
        if len(set(names)) != len(names):
            raise ValueError(f"Model spec names must be unique, got {names}")
        if any(KEY_SEPARATOR in name for name in names):
            raise ValueError(f"Model spec names must not contain '{KEY_SEPARATOR}', got {names}")

        self.recipe = Recipe(RecipeConfig(thresholds=dict(self.config.rare_thresholds)))
        self.workflows = [Workflow(self.recipe, spec) for spec in self.specs]
        self.evaluator = Evaluator(n_jobs=self.config.n_jobs)

        # State
        self.filtered_df: Optional[pd.DataFrame] = None
        self.split_result: Optional[Split] = None
        self.fold_plan: Optional[FoldPlan] = None
        self.cv_results: List[CrossValidationResult] = []
        self.final_results: List[FinalFitResult] = []
        self.comparison: Optional[ComparisonReport] = None

    def filter(self) -> pd.DataFrame:
        """Step 1: Validate rows and apply the variant outlier filter."""
        valid = validate_dataset(self.dataset)
        keep = self.outlier_filter(valid, self.config)
        self.filtered_df = valid[keep.to_numpy(dtype=bool)]

        logger.info(
            f"Filter '{self.config.variant}': kept {len(self.filtered_df):,} / "
            f"{len(self.dataset):,} rows"
        )
        if self.filtered_df.empty:
            raise InsufficientDataError(f"No rows left after '{self.config.variant}' filter")
        return self.filtered_df

    def split(self) -> Split:
        """Step 2: Stratified train/holdout split."""
        if self.filtered_df is None:
            raise SchemaMismatchError("Call filter() first")

        splitter = Splitter(bins=self.config.strata_bins)
        self.split_result = splitter.split(
            self.filtered_df,
            train_fraction=self.config.train_fraction,
            seed=self.config.random_seed,
        )
        logger.info(
            f"Split: {len(self.split_result.train):,} train / "
            f"{len(self.split_result.holdout):,} holdout rows"
        )
        return self.split_result

    def assign_folds(self) -> FoldPlan:
        """Step 3: Stratified k-fold plan on the training subset."""
        if self.split_result is None:
            raise SchemaMismatchError("Call split() first")

        assigner = FoldAssigner(bins=self.config.strata_bins)
        self.fold_plan = assigner.assign(
            self.split_result.train,
            k=self.config.fold_count,
            seed=self.config.random_seed,
        )
        logger.info(f"Fold plan: {self.fold_plan.k} folds, sizes {sorted(self.fold_plan.sizes.values())}")
        return self.fold_plan

    def cross_validate(self) -> List[CrossValidationResult]:
        """Step 4: Cross-validate every workflow."""
        if self.fold_plan is None:
            raise SchemaMismatchError("Call assign_folds() first")

        self.cv_results = [
            self.evaluator.cross_validate(workflow, self.split_result.train, self.fold_plan)
            for workflow in self.workflows
        ]
        return self.cv_results

    def final_fit(self) -> List[FinalFitResult]:
        """Step 5: Fit every workflow on train; score holdout and train."""
        if self.split_result is None:
            raise SchemaMismatchError("Call split() first")

        self.final_results = self.evaluator.final_fit_all(self.workflows, self.split_result)
        return self.final_results

    def report(self) -> ComparisonReport:
        """Step 6: Tabulate metrics and apply the selection policy."""
        if not self.cv_results or not self.final_results:
            raise SchemaMismatchError("Call cross_validate() and final_fit() first")

        self.comparison = ComparisonReport.from_results(
            self.cv_results,
            self.final_results,
            ci_width=self.evaluator.ci_width,
        )
        return self.comparison

    def save_artifacts(self, out_dir: Optional[Path] = None) -> str:
        """Step 7: Save the comparison report (fitted models are not persisted)."""
        if self.comparison is None:
            raise SchemaMismatchError("Call report() first")

        out_dir = Path(out_dir) if out_dir is not None else self.config.output_dir
        return self.comparison.save(out_dir / f"{self.config.variant}_{REPORT_FILENAME}")

    @classmethod
    def run(
        cls,
        dataset: pd.DataFrame,
        config: Optional[PipelineConfig] = None,
        save: bool = False,
        **kwargs,
    ) -> "Pipeline":
        """Run the full pipeline end-to-end.

        Args:
            dataset: Joined order rows.
            config: Pipeline options.
            save: If True, write the comparison report to config.output_dir.
            **kwargs: Forwarded to the constructor (specs, outlier_filter).
        """
        pipeline = cls(dataset, config, **kwargs)
        pipeline.filter()
        pipeline.split()
        pipeline.assign_folds()
        pipeline.cross_validate()
        pipeline.final_fit()
        pipeline.report()
        if save:
            pipeline.save_artifacts()
        logger.info("Pipeline complete")
        return pipeline
