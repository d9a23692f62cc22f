"""Workflow evaluation: cross-validation and final fit.

Provides evaluation logic decoupled from the workflow itself.

Key Classes:
    Evaluator - Runs workflows across folds or across a train/holdout split
    EvaluationResult - Aligned predictions and truths for one partition
    CrossValidationResult - Per-fold RMSE with mean and standard error
    FinalFitResult - Train and holdout results of one full-train fit

Modes:
    cross_validate() - Fresh fit per fold on analysis rows, scored on the
                       fold's assessment rows. Folds share nothing and run
                       through joblib.Parallel.
    final_fit()      - One fit on split.train, scored on split.holdout and
                       re-scored on split.train for the overfitting check.

A failing fold raises and aborts the run; the mean is never computed over a
partial set of folds.

Usage:
    from preptime.pipeline.evaluator import Evaluator

    evaluator = Evaluator(n_jobs=4)
    cv = evaluator.cross_validate(workflow, split.train, plan)
    final = evaluator.final_fit(workflow, split)
    cv.print_summary()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from scipy.stats import sem

from preptime.analysis.metrics import PredictionMetrics, evaluate_predictions, rmse
from preptime.config import CI_WIDTH, N_JOBS
from preptime.errors import SchemaMismatchError
from preptime.models.splits import FoldPlan, Split
from preptime.models.workflow import Workflow

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Aligned (predicted, truth) pairs for one model on one partition."""

    model: str
    partition: str
    predictions: np.ndarray
    truth: np.ndarray
    fold: Optional[int] = None

    @property
    def rmse(self) -> float:
        return rmse(self.predictions, self.truth)

    @property
    def n_samples(self) -> int:
        return len(self.truth)

    def metrics(self) -> PredictionMetrics:
        return evaluate_predictions(self.truth, self.predictions)


@dataclass
class CrossValidationResult:
    """Fold-level results of one model."""

    model: str
    complexity: int
    folds: List[EvaluationResult] = field(default_factory=list)
    ci_width: float = CI_WIDTH

    @property
    def fold_rmse(self) -> np.ndarray:
        return np.array([r.rmse for r in self.folds])

    @property
    def mean(self) -> float:
        return float(np.mean(self.fold_rmse))

    @property
    def std_error(self) -> float:
        return float(sem(self.fold_rmse, ddof=1))

    @property
    def interval(self) -> Tuple[float, float]:
        """mean +/- ci_width standard errors."""
        half = self.ci_width * self.std_error
        return self.mean - half, self.mean + half

    @property
    def n_samples(self) -> int:
        return sum(r.n_samples for r in self.folds)

    def to_dict(self) -> Dict:
        return {
            "model": self.model,
            "mean_rmse": round(self.mean, 4),
            "std_error": round(self.std_error, 4),
            "fold_rmse": [round(v, 4) for v in self.fold_rmse],
        }

    def print_summary(self):
        """Print cross-validation summary."""
        lo, hi = self.interval
        print(f"\n{'='*60}")
        print(f"Cross-validation: {self.model.upper()} ({len(self.folds)} folds)")
        print(f"{'='*60}")
        print(f"Mean RMSE:              {self.mean:.4f}")
        print(f"Standard error:         {self.std_error:.4f}")
        print(f"Interval (±{self.ci_width:g} SE):     [{lo:.4f}, {hi:.4f}]")


@dataclass
class FinalFitResult:
    """One workflow fit on the full training subset."""

    model: str
    complexity: int
    train: EvaluationResult
    holdout: EvaluationResult
    params: Dict = field(default_factory=dict)

    @property
    def gap(self) -> float:
        """Holdout RMSE minus train RMSE."""
        return self.holdout.rmse - self.train.rmse


def _run_fold(
    workflow: Workflow,
    train: pd.DataFrame,
    fold: int,
    analysis_index: pd.Index,
    assessment_index: pd.Index,
) -> EvaluationResult:
    """Fit on the analysis rows of one fold and score its assessment rows."""
    analysis = train.loc[analysis_index]
    assessment = train.loc[assessment_index]

    state, artifact = workflow.fit(analysis, partition=f"fold {fold} analysis")
    predictions = workflow.predict(state, artifact, assessment, partition=f"fold {fold} assessment")

    return EvaluationResult(
        model=workflow.name,
        partition="cv",
        predictions=predictions,
        truth=workflow.truth(assessment, partition=f"fold {fold} assessment"),
        fold=fold,
    )


def _run_final_fit(workflow: Workflow, split: Split) -> FinalFitResult:
    state, artifact = workflow.fit(split.train, partition="train")

    results = {}
    for name, frame in (("train", split.train), ("holdout", split.holdout)):
        results[name] = EvaluationResult(
            model=workflow.name,
            partition=name,
            predictions=workflow.predict(state, artifact, frame, partition=name),
            truth=workflow.truth(frame, partition=name),
        )

    return FinalFitResult(
        model=workflow.name,
        complexity=workflow.spec.complexity,
        train=results["train"],
        holdout=results["holdout"],
        params=workflow.spec.params(),
    )


class Evaluator:
    """Evaluate workflows under cross-validation and on a final split.

    Attributes:
        n_jobs: joblib workers for independent folds / models.
        ci_width: Standard errors on each side of the CV mean.
    """

    def __init__(self, n_jobs: int = N_JOBS, ci_width: float = CI_WIDTH):
        self.n_jobs = n_jobs
        self.ci_width = ci_width

    def cross_validate(
        self,
        workflow: Workflow,
        train: pd.DataFrame,
        plan: FoldPlan,
    ) -> CrossValidationResult:
        """Fit a fresh workflow per fold and score each held-out fold.

        Args:
            workflow: Recipe + model spec to evaluate.
            train: Training subset the plan was built on.
            plan: Fold assignment of every training row.

        Returns:
            CrossValidationResult with one EvaluationResult per fold.

        Raises:
            SchemaMismatchError: If the plan does not cover exactly train.
        """
        if len(plan.assignments) != len(train) or not plan.assignments.index.equals(train.index):
            raise SchemaMismatchError(
                "Fold plan does not match the training subset",
                partition="train",
            )

        logger.info(f"Cross-validating {workflow.name} over {plan.k} folds ({len(train):,} rows)")
        folds = Parallel(n_jobs=self.n_jobs)(
            delayed(_run_fold)(workflow, train, fold, analysis_idx, assessment_idx)
            for fold, analysis_idx, assessment_idx in plan.folds()
        )

        result = CrossValidationResult(
            model=workflow.name,
            complexity=workflow.spec.complexity,
            folds=sorted(folds, key=lambda r: r.fold),
            ci_width=self.ci_width,
        )
        logger.info(f"{workflow.name}: CV RMSE={result.mean:.4f} ± {result.std_error:.4f}")
        return result

    def final_fit(self, workflow: Workflow, split: Split) -> FinalFitResult:
        """Fit once on split.train; score on holdout and on train itself."""
        logger.info(f"Final fit of {workflow.name} on {len(split.train):,} rows")
        result = _run_final_fit(workflow, split)
        logger.info(
            f"{workflow.name}: train RMSE={result.train.rmse:.4f}, "
            f"holdout RMSE={result.holdout.rmse:.4f}"
        )
        return result

    def final_fit_all(self, workflows: Sequence[Workflow], split: Split) -> List[FinalFitResult]:
        """Final fit of several independent workflows, in parallel."""
        logger.info(f"Final fit of {len(workflows)} workflows on {len(split.train):,} rows")
        return list(
            Parallel(n_jobs=self.n_jobs)(
                delayed(_run_final_fit)(workflow, split) for workflow in workflows
            )
        )


__all__ = [
    "Evaluator",
    "EvaluationResult",
    "CrossValidationResult",
    "FinalFitResult",
]
