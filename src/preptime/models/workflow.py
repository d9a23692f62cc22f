"""Workflow: one recipe bound to one model spec.

A Workflow is fit and applied as a single unit. It holds no fitted state;
fit() returns the (RecipeState, ModelArtifact) pair for one fit cycle and
predict() takes that pair back explicitly.

Contract:
    fit()     - recipe.fit once + estimator.fit once, both on the train partition
    predict() - recipe.apply (never fit) + estimator.predict

Usage:
    from preptime.models import Workflow, LinearSpec
    from preptime.features import Recipe

    workflow = Workflow(Recipe(), LinearSpec())
    state, artifact = workflow.fit(train_df)
    preds = workflow.predict(state, artifact, test_df, partition="holdout")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd
from sklearn.base import RegressorMixin

from preptime.errors import SchemaMismatchError
from preptime.features.recipe import Recipe, RecipeState
from preptime.models.specs import ModelSpec


@dataclass(frozen=True)
class ModelArtifact:
    """Fitted estimator, opaque outside the Workflow that produced it."""

    model_name: str
    estimator: RegressorMixin
    feature_cols: Tuple[str, ...]
    n_train: int


class Workflow:
    """Recipe + ModelSpec, fit and applied together."""

    def __init__(self, recipe: Recipe, spec: ModelSpec):
        self.recipe = recipe
        self.spec = spec

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def target(self) -> str:
        return self.recipe.config.target

    def truth(self, frame: pd.DataFrame, partition: str) -> np.ndarray:
        """Target values of a partition.

        Raises:
            SchemaMismatchError: If the target is missing or has nulls.
        """
        if self.target not in frame.columns:
            raise SchemaMismatchError("Partition has no target column", partition, [self.target])
        y = frame[self.target]
        if y.isna().any():
            raise SchemaMismatchError(
                f"{int(y.isna().sum())} rows have a null target", partition, [self.target]
            )
        return y.to_numpy(dtype=float)

    def fit(self, train: pd.DataFrame, partition: str = "train") -> Tuple[RecipeState, ModelArtifact]:
        """Fit recipe and estimator on the training partition only.

        Returns:
            (RecipeState, ModelArtifact) for this fit cycle.
        """
        y = self.truth(train, partition)
        state = self.recipe.fit(train, partition=partition)
        X = self.recipe.apply(state, train, partition=partition)

        estimator = self.spec.build()
        estimator.fit(X.to_numpy(), y)

        artifact = ModelArtifact(
            model_name=self.spec.name,
            estimator=estimator,
            feature_cols=tuple(X.columns),
            n_train=len(train),
        )
        return state, artifact

    def predict(
        self,
        state: RecipeState,
        artifact: ModelArtifact,
        frame: pd.DataFrame,
        partition: str = "holdout",
    ) -> np.ndarray:
        """Predict with a previously fitted (state, artifact) pair.

        Raises:
            SchemaMismatchError: If artifact is not fitted, belongs to another
                model, or the recipe columns no longer match the artifact.
        """
        if not isinstance(artifact, ModelArtifact):
            raise SchemaMismatchError(
                "Workflow.predict() needs a fitted ModelArtifact, call fit() first",
                partition=partition,
            )
        if artifact.model_name != self.spec.name:
            raise SchemaMismatchError(
                f"Artifact was fit by '{artifact.model_name}', not '{self.spec.name}'",
                partition=partition,
            )

        X = self.recipe.apply(state, frame, partition=partition)
        if tuple(X.columns) != artifact.feature_cols:
            mismatched: List[str] = sorted(set(X.columns) ^ set(artifact.feature_cols))
            raise SchemaMismatchError("Feature columns differ from fit time", partition, mismatched)
        return np.asarray(artifact.estimator.predict(X.to_numpy()), dtype=float)


__all__ = ["Workflow", "ModelArtifact"]
