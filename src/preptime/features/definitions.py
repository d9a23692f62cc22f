"""Feature column definitions and configuration.

Defines the predictor fields consumed by the recipe and the field groups that
share a rare-level threshold.

Field groups:
- common: moderately high-cardinality fields (food type, hour, country)
- identifier: near-identifier fields (city, restaurant id), tighter threshold
- calendar: day of week, never collapsed

"Thresholds are frequencies within the fit partition, so a level that is rare
in training stays collapsed even if it becomes frequent later."
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from preptime.config import RARE_THRESHOLDS

TARGET_COLUMN = "prep_time_hours"

NUMERIC_FEATURES = [
    "number_of_items",
    "order_value",
]

FIELD_GROUPS: Dict[str, List[str]] = {
    "common": ["type_of_food", "hour_of_day", "country"],
    "identifier": ["city", "restaurant_id"],
    "calendar": ["day_of_week"],
}

CATEGORICAL_FEATURES = [f for fields in FIELD_GROUPS.values() for f in fields]

FEATURE_COLUMNS = NUMERIC_FEATURES + CATEGORICAL_FEATURES

# Reserved levels; never produced by upstream data
OTHER_LEVEL = "__other__"
NOVEL_LEVEL = "__novel__"


@dataclass
class RecipeConfig:
    """Configuration for the feature recipe.

    Attributes:
        numeric: Numeric fields, scaled with fit-partition statistics.
        groups: Field group name -> categorical fields.
        thresholds: Field group name -> rare-level frequency threshold.
        target: Outcome column, passed through untouched.
    """

    numeric: List[str] = field(default_factory=lambda: NUMERIC_FEATURES.copy())
    groups: Dict[str, List[str]] = field(
        default_factory=lambda: {k: v.copy() for k, v in FIELD_GROUPS.items()}
    )
    thresholds: Dict[str, float] = field(default_factory=lambda: dict(RARE_THRESHOLDS))
    target: str = TARGET_COLUMN

    def __post_init__(self):
        unknown = sorted(set(self.groups) - set(self.thresholds))
        if unknown:
            raise ValueError(f"No rare-level threshold for field groups: {unknown}")
        for name, value in self.thresholds.items():
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Threshold for '{name}' must be in [0, 1), got {value}")

    @property
    def categorical(self) -> List[str]:
        """Categorical fields in group order."""
        return [f for fields in self.groups.values() for f in fields]

    @property
    def field_thresholds(self) -> List[Tuple[str, float]]:
        """(field, threshold) pairs in group order."""
        return [
            (f, self.thresholds[group])
            for group, fields in self.groups.items()
            for f in fields
        ]

    @property
    def required(self) -> List[str]:
        """Fields a partition must carry to be fit or applied."""
        return self.numeric + self.categorical
