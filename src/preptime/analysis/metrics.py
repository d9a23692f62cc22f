"""Error metrics for preparation-time predictions.

Key Classes:
    PredictionMetrics - RMSE, MAE, R² for one set of predictions

Key Functions:
    rmse() - Root mean squared error, the selection metric
    evaluate_predictions() - Compute the full metric set

Metrics Explained:
    RMSE: sqrt(mean((pred - truth)^2)), in hours (penalizes large errors)
    MAE: Average absolute error in hours
    R²: Share of target variance explained

Usage:
    from preptime.analysis.metrics import rmse, evaluate_predictions

    error = rmse(y_pred, y_true)
    metrics = evaluate_predictions(y_true, y_pred)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class PredictionMetrics:
    """Metrics for preparation-time prediction accuracy."""

    rmse: float  # Root Mean Square Error
    mae: float  # Mean Absolute Error
    r2: float  # R-squared
    n_samples: int

    def to_dict(self) -> dict:
        return {
            "rmse": round(self.rmse, 4),
            "mae": round(self.mae, 4),
            "r2": round(self.r2, 4),
            "n_samples": self.n_samples,
        }

    def __repr__(self) -> str:
        return f"RMSE: {self.rmse:.3f}, MAE: {self.mae:.3f}, R²: {self.r2:.3f} (n={self.n_samples})"


def rmse(y_pred: np.ndarray, y_true: np.ndarray) -> float:
    """Root mean squared error between aligned predictions and truth.

    Raises:
        ValueError: If the arrays differ in length or are empty.
    """
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    y_true = np.asarray(y_true, dtype=float).ravel()
    if y_pred.shape != y_true.shape:
        raise ValueError(f"Length mismatch: {len(y_pred)} predictions vs {len(y_true)} truths")
    if y_true.size == 0:
        raise ValueError("Cannot compute RMSE of zero samples")
    return float(np.sqrt(np.mean((y_pred - y_true) ** 2)))


def evaluate_predictions(y_true: np.ndarray, y_pred: np.ndarray) -> PredictionMetrics:
    """Calculate prediction metrics.

    Args:
        y_true: Actual preparation hours
        y_pred: Predicted preparation hours

    Returns:
        PredictionMetrics with RMSE, MAE and R².
    """
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()

    n = len(y_true)
    if n == 0:
        return PredictionMetrics(0.0, 0.0, 0.0, 0)

    mae = float(np.mean(np.abs(y_true - y_pred)))

    ss_res = np.sum((y_true - y_pred) ** 2)
    ss_tot = np.sum((y_true - np.mean(y_true)) ** 2)
    r2 = float(1 - ss_res / ss_tot) if ss_tot > 0 else 0.0

    return PredictionMetrics(
        rmse=rmse(y_pred, y_true),
        mae=mae,
        r2=r2,
        n_samples=n,
    )
