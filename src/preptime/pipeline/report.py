"""Model comparison report and selection policy.

Tabulates RMSE for every (model, partition) pair and picks the final model.

Partitions:
    cv      - Mean RMSE across cross-validation folds (with standard error)
    train   - Final fit re-scored on the training subset
    holdout - Final fit scored on the held-out subset

Selection Policy:
    1. Reference: the model with the lowest CV mean RMSE (lowest holdout RMSE
       when no CV rows are present).
    2. Candidates: models whose CV interval (mean ± 2·SE) overlaps the
       reference's interval, i.e. indistinguishable within noise.
    3. Pick the simplest candidate; ties go to the smaller train/holdout gap,
       then to the lower holdout RMSE.

Overfitting Signal:
    A model is flagged when its holdout - train gap exceeds the smallest gap
    among its competitors by more than OVERFIT_GAP_TOLERANCE.

Usage:
    report = ComparisonReport.from_results(cv_results, final_results)
    report.print_summary()
    decision = report.select_model()
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from preptime.config import CI_WIDTH, OVERFIT_GAP_TOLERANCE
from preptime.pipeline.evaluator import CrossValidationResult, FinalFitResult

logger = logging.getLogger(__name__)

PARTITIONS = ("cv", "train", "holdout")
KEY_SEPARATOR = "/"


@dataclass
class ComparisonRow:
    """One (model, partition) -> metric entry."""

    model: str
    partition: str
    rmse: float
    std_error: Optional[float] = None
    n_samples: int = 0

    def to_dict(self) -> Dict:
        return {
            "rmse": round(self.rmse, 4),
            "std_error": None if self.std_error is None else round(self.std_error, 4),
            "n_samples": self.n_samples,
        }


@dataclass
class SelectionDecision:
    """Outcome of the selection policy."""

    model: str
    reason: str
    candidates: List[str] = field(default_factory=list)


class ComparisonReport:
    """RMSE by model and partition, plus the selection policy.

    Attributes:
        rows: One ComparisonRow per (model, partition).
        complexity: Model name -> complexity rank (lower is simpler).
        ci_width: Standard errors on each side of a CV mean.
        details: Model name -> {"params", "holdout"} extras written by save().
    """

    def __init__(
        self,
        rows: Sequence[ComparisonRow],
        complexity: Dict[str, int],
        ci_width: float = CI_WIDTH,
        gap_tolerance: float = OVERFIT_GAP_TOLERANCE,
        details: Optional[Dict[str, Dict]] = None,
    ):
        self.rows = list(rows)
        self.complexity = dict(complexity)
        self.ci_width = ci_width
        self.gap_tolerance = gap_tolerance
        self.details = dict(details or {})

        seen = set()
        for row in self.rows:
            if KEY_SEPARATOR in row.model:
                raise ValueError(f"Model name '{row.model}' must not contain '{KEY_SEPARATOR}'")
            if row.partition not in PARTITIONS:
                raise ValueError(f"Unknown partition '{row.partition}', expected one of {PARTITIONS}")
            key = (row.model, row.partition)
            if key in seen:
                raise ValueError(f"Duplicate row for {key}")
            seen.add(key)

        missing = sorted({r.model for r in self.rows} - set(self.complexity))
        if missing:
            raise ValueError(f"No complexity rank for models: {missing}")

    @classmethod
    def from_results(
        cls,
        cv_results: Sequence[CrossValidationResult],
        final_results: Sequence[FinalFitResult],
        ci_width: float = CI_WIDTH,
        gap_tolerance: float = OVERFIT_GAP_TOLERANCE,
    ) -> "ComparisonReport":
        """Build a report from evaluator output."""
        rows: List[ComparisonRow] = []
        complexity: Dict[str, int] = {}
        details: Dict[str, Dict] = {}

        for cv in cv_results:
            complexity[cv.model] = cv.complexity
            rows.append(ComparisonRow(cv.model, "cv", cv.mean, cv.std_error, cv.n_samples))

        for final in final_results:
            complexity[final.model] = final.complexity
            for result in (final.train, final.holdout):
                rows.append(ComparisonRow(final.model, result.partition, result.rmse, None, result.n_samples))
            details[final.model] = {
                "params": dict(final.params),
                "holdout": final.holdout.metrics().to_dict(),
            }

        return cls(rows, complexity, ci_width=ci_width, gap_tolerance=gap_tolerance, details=details)

    @property
    def models(self) -> List[str]:
        """Model names in first-seen order."""
        return list(dict.fromkeys(r.model for r in self.rows))

    def get(self, model: str, partition: str) -> Optional[ComparisonRow]:
        for row in self.rows:
            if row.model == model and row.partition == partition:
                return row
        return None

    def rmse(self, model: str, partition: str) -> float:
        row = self.get(model, partition)
        if row is None:
            raise KeyError(f"No {partition} RMSE for model '{model}'")
        return row.rmse

    def interval(self, model: str) -> Tuple[float, float]:
        """CV mean ± ci_width standard errors."""
        row = self.get(model, "cv")
        if row is None or row.std_error is None:
            raise KeyError(f"No cross-validation row for model '{model}'")
        half = self.ci_width * row.std_error
        return row.rmse - half, row.rmse + half

    def overlaps(self, model_a: str, model_b: str) -> bool:
        """True when the CV intervals of two models overlap."""
        a_lo, a_hi = self.interval(model_a)
        b_lo, b_hi = self.interval(model_b)
        return a_lo <= b_hi and b_lo <= a_hi

    def overfitting_gap(self, model: str) -> float:
        """Holdout RMSE minus train RMSE."""
        return self.rmse(model, "holdout") - self.rmse(model, "train")

    def overfitting_signals(self) -> Dict[str, bool]:
        """Flag models whose gap clearly exceeds a competitor's."""
        gaps = {
            m: self.overfitting_gap(m)
            for m in self.models
            if self.get(m, "train") is not None and self.get(m, "holdout") is not None
        }
        signals = {}
        for model, gap in gaps.items():
            others = [g for m, g in gaps.items() if m != model]
            signals[model] = bool(others) and gap - min(others) > self.gap_tolerance
        return signals

    def select_model(self) -> SelectionDecision:
        """Apply the selection policy.

        Raises:
            ValueError: If the report has no rows to select from.
        """
        models = self.models
        if not models:
            raise ValueError("Cannot select a model from an empty report")

        has_cv = all(self.get(m, "cv") is not None for m in models)
        has_final = all(
            self.get(m, "train") is not None and self.get(m, "holdout") is not None
            for m in models
        )

        if has_cv:
            reference = min(models, key=lambda m: self.rmse(m, "cv"))
            candidates = [m for m in models if self.overlaps(reference, m)]
        elif has_final:
            reference = min(models, key=lambda m: self.rmse(m, "holdout"))
            candidates = [reference]
        else:
            raise ValueError("Report needs CV rows or train/holdout rows for every model")

        def rank(model: str) -> Tuple[float, float, float]:
            if has_final:
                return (self.complexity[model], self.overfitting_gap(model), self.rmse(model, "holdout"))
            return (self.complexity[model], 0.0, self.rmse(model, "cv"))

        chosen = min(candidates, key=rank)

        if chosen == reference and len(candidates) == 1:
            reason = f"'{chosen}' has the lowest error and no competitor is within noise"
        elif chosen == reference:
            reason = f"'{chosen}' has the lowest error and is the simplest model within noise"
        else:
            reason = (
                f"'{chosen}' is within noise of '{reference}' "
                f"(intervals overlap at ±{self.ci_width:g} SE) and is simpler"
            )
            if has_final:
                reason += (
                    f"; train/holdout gap {self.overfitting_gap(chosen):.3f} "
                    f"vs {self.overfitting_gap(reference):.3f}"
                )

        logger.info(f"Selected model: {reason}")
        return SelectionDecision(model=chosen, reason=reason, candidates=candidates)

    def to_frame(self) -> pd.DataFrame:
        """RMSE pivot: one row per model, one column per partition."""
        df = pd.DataFrame([asdict(r) for r in self.rows])
        if df.empty:
            return pd.DataFrame(columns=list(PARTITIONS))
        pivot = df.pivot(index="model", columns="partition", values="rmse")
        ordered = [p for p in PARTITIONS if p in pivot.columns]
        return pivot.loc[self.models, ordered]

    def to_dict(self) -> Dict[str, Dict]:
        """Mapping '<model>/<partition>' -> {rmse, std_error, n_samples}."""
        return {f"{r.model}{KEY_SEPARATOR}{r.partition}": r.to_dict() for r in self.rows}

    def print_summary(self):
        """Print comparison table and selection."""
        print(f"\n{'='*60}")
        print("MODEL COMPARISON (RMSE, hours)")
        print(f"{'='*60}")
        print(self.to_frame().round(4).to_string())

        signals = self.overfitting_signals()
        for model in self.models:
            if model in signals:
                flag = "  <- overfitting" if signals[model] else ""
                print(f"{model:10s} train/holdout gap: {self.overfitting_gap(model):+.4f}{flag}")

        decision = self.select_model()
        print(f"\nSelected: {decision.model}")
        print(f"Reason:   {decision.reason}")

    def save(self, out_path: Union[str, Path]) -> str:
        """Save report and selection to JSON.

        Returns:
            Path to saved file
        """
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)

        decision = self.select_model()
        payload = {
            "rows": self.to_dict(),
            "overfitting_gap": {
                m: round(self.overfitting_gap(m), 4) for m in self.overfitting_signals()
            },
            "overfitting_signal": self.overfitting_signals(),
            "models": self.details,
            "selection": asdict(decision),
        }
        with open(out_path, "w") as f:
            json.dump(payload, f, indent=2)

        logger.info(f"Report saved to {out_path}")
        return str(out_path)


__all__ = ["ComparisonReport", "ComparisonRow", "SelectionDecision", "PARTITIONS", "KEY_SEPARATOR"]
