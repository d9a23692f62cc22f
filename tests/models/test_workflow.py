"""Tests for model specs and the Workflow fit/predict contract."""

from unittest.mock import Mock, patch

import numpy as np
import pandas as pd
import pytest
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import LinearRegression

from preptime.errors import SchemaMismatchError
from preptime.features import Recipe, RecipeConfig, RecipeState
from preptime.models import EnsembleSpec, LinearSpec, ModelArtifact, ModelSpec, Workflow, default_specs


class CountingSpec(ModelSpec):
    """Linear spec whose estimators record their calls."""

    name = "counting"
    complexity = 0

    def __init__(self):
        self.built = []

    def build(self):
        estimator = Mock(wraps=LinearRegression())
        self.built.append(estimator)
        return estimator

    def params(self):
        return {}


@pytest.fixture
def linear_data():
    """prep_time_hours is an exact linear function of the numerics plus a level effect."""
    rng = np.random.default_rng(3)
    n = 120
    items = rng.integers(1, 9, size=n).astype(float)
    value = rng.uniform(5, 80, size=n)
    cat = rng.choice(["a", "b", "c"], size=n)
    y = 0.2 + 0.05 * items + 0.01 * value + np.where(cat == "a", 0.3, 0.0)
    return pd.DataFrame({"items": items, "value": value, "cat": cat, "prep_time_hours": y})


@pytest.fixture
def recipe():
    return Recipe(RecipeConfig(numeric=["items", "value"], groups={"g": ["cat"]}, thresholds={"g": 0.0}))


class TestModelSpecs:
    """Tests for LinearSpec and EnsembleSpec."""

    def test_linear_builds_fresh_estimator(self):
        spec = LinearSpec()
        first, second = spec.build(), spec.build()
        assert isinstance(first, LinearRegression)
        assert first is not second

    def test_ensemble_tree_count(self):
        estimator = EnsembleSpec(tree_count=37, seed=5).build()
        assert isinstance(estimator, RandomForestRegressor)
        assert estimator.n_estimators == 37
        assert estimator.random_state == 5

    def test_ensemble_default_tree_count(self):
        assert EnsembleSpec().tree_count == 500

    def test_invalid_tree_count(self):
        with pytest.raises(ValueError):
            EnsembleSpec(tree_count=0)

    def test_linear_is_simpler(self):
        linear, ensemble = default_specs(tree_count=10)
        assert linear.name == "linear"
        assert ensemble.name == "ensemble"
        assert linear.complexity < ensemble.complexity


class TestWorkflowFit:
    """Tests for Workflow.fit()."""

    def test_returns_state_and_artifact(self, recipe, linear_data):
        state, artifact = Workflow(recipe, LinearSpec()).fit(linear_data)
        assert isinstance(state, RecipeState)
        assert isinstance(artifact, ModelArtifact)
        assert artifact.feature_cols == state.columns
        assert artifact.n_train == len(linear_data)

    def test_fits_recipe_and_model_once(self, recipe, linear_data):
        spec = CountingSpec()
        workflow = Workflow(recipe, spec)

        with patch.object(recipe, "fit", wraps=recipe.fit) as recipe_fit:
            workflow.fit(linear_data)

        assert recipe_fit.call_count == 1
        assert len(spec.built) == 1
        assert spec.built[0].fit.call_count == 1
        X, _ = spec.built[0].fit.call_args[0]
        assert len(X) == len(linear_data)

    def test_each_fit_is_independent(self, recipe, linear_data):
        workflow = Workflow(recipe, LinearSpec())
        state_a, artifact_a = workflow.fit(linear_data.iloc[:60])
        state_b, artifact_b = workflow.fit(linear_data.iloc[60:])
        assert state_a is not state_b
        assert artifact_a.estimator is not artifact_b.estimator

    def test_null_target_raises(self, recipe, linear_data):
        bad = linear_data.copy()
        bad.loc[0, "prep_time_hours"] = np.nan
        with pytest.raises(SchemaMismatchError):
            Workflow(recipe, LinearSpec()).fit(bad)

    def test_missing_target_raises(self, recipe, linear_data):
        with pytest.raises(SchemaMismatchError):
            Workflow(recipe, LinearSpec()).fit(linear_data.drop(columns=["prep_time_hours"]))


class TestWorkflowPredict:
    """Tests for Workflow.predict()."""

    def test_linear_recovers_linear_target(self, recipe, linear_data):
        workflow = Workflow(recipe, LinearSpec())
        state, artifact = workflow.fit(linear_data.iloc[:90])
        holdout = linear_data.iloc[90:]

        preds = workflow.predict(state, artifact, holdout)
        assert preds.shape == (len(holdout),)
        assert np.allclose(preds, holdout["prep_time_hours"].to_numpy(), atol=1e-6)

    def test_predict_applies_but_never_fits(self, recipe, linear_data):
        workflow = Workflow(recipe, LinearSpec())
        state, artifact = workflow.fit(linear_data)

        with patch.object(recipe, "fit", wraps=recipe.fit) as recipe_fit, \
                patch.object(recipe, "apply", wraps=recipe.apply) as recipe_apply:
            workflow.predict(state, artifact, linear_data.iloc[:10])

        assert recipe_fit.call_count == 0
        assert recipe_apply.call_count == 1

    def test_predict_handles_unseen_level(self, recipe, linear_data):
        workflow = Workflow(recipe, EnsembleSpec(tree_count=10, seed=0))
        state, artifact = workflow.fit(linear_data)
        unseen = linear_data.iloc[:5].assign(cat="zzz")

        preds = workflow.predict(state, artifact, unseen)
        assert np.isfinite(preds).all()

    def test_predict_without_artifact_raises(self, recipe, linear_data):
        workflow = Workflow(recipe, LinearSpec())
        state, _ = workflow.fit(linear_data)
        with pytest.raises(SchemaMismatchError):
            workflow.predict(state, None, linear_data)

    def test_predict_with_foreign_artifact_raises(self, recipe, linear_data):
        state, artifact = Workflow(recipe, LinearSpec()).fit(linear_data)
        ensemble = Workflow(recipe, EnsembleSpec(tree_count=5))
        with pytest.raises(SchemaMismatchError):
            ensemble.predict(state, artifact, linear_data)
