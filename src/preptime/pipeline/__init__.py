"""
Pipeline Module

End-to-end evaluation workflow for the preparation-time models.

Components:
    Pipeline         - Full workflow (filter → split → folds → CV → final fit → report)
    Evaluator        - Cross-validation and final-fit evaluation
    ComparisonReport - RMSE by model and partition, selection policy
"""

from preptime.pipeline.evaluator import (
    CrossValidationResult,
    EvaluationResult,
    Evaluator,
    FinalFitResult,
)
from preptime.pipeline.report import ComparisonReport, ComparisonRow, SelectionDecision
from preptime.pipeline.runner import Pipeline

__all__ = [
    "Pipeline",
    "Evaluator",
    "EvaluationResult",
    "CrossValidationResult",
    "FinalFitResult",
    "ComparisonReport",
    "ComparisonRow",
    "SelectionDecision",
]
