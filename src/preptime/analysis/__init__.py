"""Analysis module - prediction error metrics."""

from preptime.analysis.metrics import PredictionMetrics, evaluate_predictions, rmse

__all__ = ["PredictionMetrics", "evaluate_predictions", "rmse"]
