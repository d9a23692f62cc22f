"""Model specifications.

A ModelSpec is a declarative description of an algorithm family and its
hyperparameters. It builds a fresh, unfitted estimator on request and holds
no fitted state itself.

Two variants, and only two:
    LinearSpec   - Ordinary least squares
    EnsembleSpec - Random forest with tree_count trees

Complexity:
    Each spec carries a complexity rank. Model selection prefers the lower
    rank when cross-validated errors are within noise of each other.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List

from sklearn.base import RegressorMixin
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import LinearRegression

from preptime.config import RANDOM_SEED, TREE_COUNT


class ModelSpec(ABC):
    """Abstract base class for model specifications."""

    name: str
    complexity: int

    @abstractmethod
    def build(self) -> RegressorMixin:
        """Return a new, unfitted estimator."""

    @abstractmethod
    def params(self) -> Dict[str, Any]:
        """Hyperparameters, for reports."""


@dataclass(frozen=True)
class LinearSpec(ModelSpec):
    """Ordinary least squares regression."""

    name: str = "linear"
    complexity: int = 0

    def build(self) -> LinearRegression:
        return LinearRegression()

    def params(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class EnsembleSpec(ModelSpec):
    """Random forest regression.

    Attributes:
        tree_count: Number of trees.
        seed: Random state of the forest.
        n_jobs: Threads used to grow trees.
    """

    tree_count: int = TREE_COUNT
    seed: int = RANDOM_SEED
    n_jobs: int = 1
    name: str = "ensemble"
    complexity: int = 1

    def __post_init__(self):
        if self.tree_count < 1:
            raise ValueError(f"tree_count must be >= 1, got {self.tree_count}")

    def build(self) -> RandomForestRegressor:
        return RandomForestRegressor(
            n_estimators=self.tree_count,
            random_state=self.seed,
            n_jobs=self.n_jobs,
        )

    def params(self) -> Dict[str, Any]:
        return {"tree_count": self.tree_count, "seed": self.seed}


def default_specs(tree_count: int = TREE_COUNT, seed: int = RANDOM_SEED) -> List[ModelSpec]:
    """The two competing model families, simplest first."""
    return [LinearSpec(), EnsembleSpec(tree_count=tree_count, seed=seed)]


__all__ = ["ModelSpec", "LinearSpec", "EnsembleSpec", "default_specs"]
