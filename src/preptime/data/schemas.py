"""Pydantic schemas for order data validation.

Defines the record shape the modeling pipeline consumes after upstream
ingestion and joining.

Models:
    OrderRecord - One joined order with predictors and target

Usage:
    from preptime.data.schemas import OrderRecord, validate_dataset

    record = OrderRecord.model_validate(row_dict)
    clean_df = validate_dataset(df)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, Field, ValidationError, field_validator

from preptime.errors import SchemaMismatchError
from preptime.features.definitions import FEATURE_COLUMNS, TARGET_COLUMN

logger = logging.getLogger(__name__)


class OrderRecord(BaseModel):
    """One joined order observation."""

    restaurant_id: str
    number_of_items: int = Field(ge=0)
    order_value: float = Field(ge=0)
    type_of_food: str
    city: str
    country: str
    hour_of_day: int = Field(ge=0, le=23)
    day_of_week: str
    prep_time_hours: float = Field(ge=0)

    @field_validator("restaurant_id", "type_of_food", "city", "country", "day_of_week", mode="before")
    @classmethod
    def _coerce_label(cls, value):
        """Identifiers may arrive as integers; levels are compared as strings."""
        if value is None:
            return value
        return str(value)


def validate_dataset(df: pd.DataFrame, partition: str = "dataset") -> pd.DataFrame:
    """Validate every row against OrderRecord and drop the invalid ones.

    Args:
        df: Joined order rows.
        partition: Name used in error messages and logs.

    Returns:
        The valid subset of df (original index and columns preserved).

    Raises:
        SchemaMismatchError: If a required column is absent or the index
            has duplicates.
    """
    required = FEATURE_COLUMNS + [TARGET_COLUMN]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SchemaMismatchError("Dataset is missing required columns", partition, missing)
    if not df.index.is_unique:
        raise SchemaMismatchError("Dataset index must uniquely identify rows", partition)

    valid_index = []
    errors: List[Tuple[object, str]] = []

    for idx, row in zip(df.index, df[required].to_dict(orient="records")):
        row = {k: (None if _is_missing(v) else v) for k, v in row.items()}
        try:
            OrderRecord.model_validate(row)
            valid_index.append(idx)
        except ValidationError as e:
            errors.append((idx, str(e)))

    if errors:
        logger.warning(f"Skipped {len(errors)} {partition} rows with invalid schema: {errors[:3]}...")

    return df.loc[valid_index]


def _is_missing(value: Optional[object]) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
