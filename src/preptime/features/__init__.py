"""Feature engineering module.

Public API:
    Recipe - Fit/apply transformer chain
    RecipeState - Frozen recipe parameters
    RecipeConfig - Field groups and rare-level thresholds
    FEATURE_COLUMNS - Predictor fields consumed by the recipe

Usage:
    from preptime.features import Recipe

    recipe = Recipe()
    state = recipe.fit(train_df)
    X = recipe.apply(state, test_df)
"""

from preptime.features.definitions import (
    CATEGORICAL_FEATURES,
    FEATURE_COLUMNS,
    NOVEL_LEVEL,
    NUMERIC_FEATURES,
    OTHER_LEVEL,
    TARGET_COLUMN,
    RecipeConfig,
)
from preptime.features.filters import OUTLIER_FILTERS, get_filter, is_next_day_order
from preptime.features.recipe import Recipe, RecipeState
from preptime.features.wrangler import Wrangler

__all__ = [
    # Core API
    "Recipe",
    "RecipeState",
    "RecipeConfig",
    # Definitions
    "FEATURE_COLUMNS",
    "NUMERIC_FEATURES",
    "CATEGORICAL_FEATURES",
    "TARGET_COLUMN",
    "OTHER_LEVEL",
    "NOVEL_LEVEL",
    # Data preparation
    "Wrangler",
    "OUTLIER_FILTERS",
    "get_filter",
    "is_next_day_order",
]
