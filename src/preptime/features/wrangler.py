"""Order wrangling utilities.

Provides the Wrangler class for joining and deriving model fields from
already-loaded order and restaurant tables. Reading files is the caller's job.

Key Methods:
    prepare() - Master orchestrator for the wrangling steps

Derived fields:
    prep_time_hours - order_ready_at - order_acknowledged_at, in hours
    day_of_week     - Day name of the acknowledgement
    hour_of_day     - Hour (0-23) of the acknowledgement

Usage:
    from preptime.features import Wrangler

    df = Wrangler().prepare(orders_df, restaurants_df)
"""

from __future__ import annotations

import logging

import pandas as pd

from preptime.errors import SchemaMismatchError
from preptime.features.definitions import TARGET_COLUMN

logger = logging.getLogger(__name__)

ORDER_COLUMNS = [
    "restaurant_id",
    "order_value",
    "number_of_items",
    "order_acknowledged_at",
    "order_ready_at",
]
RESTAURANT_COLUMNS = ["restaurant_id", "country", "city", "type_of_food"]


class Wrangler:
    """Join, derive and clean order data for the modeling pipeline."""

    def prepare(self, orders: pd.DataFrame, restaurants: pd.DataFrame) -> pd.DataFrame:
        """Master orchestrator: join, derive and clean order rows.

        Steps:
        1. Remove duplicate order rows
        2. Join the restaurant reference table
        3. Derive target and calendar fields
        4. Drop rows without a usable target

        Returns:
            Dataset with a fresh RangeIndex, ready for the pipeline.
        """
        self._check_columns(orders, ORDER_COLUMNS, "orders")
        self._check_columns(restaurants, RESTAURANT_COLUMNS, "restaurants")

        df = self._remove_duplicates(orders)
        df = self._join_restaurants(df, restaurants)
        df = self._derive_fields(df)
        df = self._drop_invalid_targets(df)
        return df.reset_index(drop=True)

    @staticmethod
    def _check_columns(df: pd.DataFrame, columns, name: str) -> None:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise SchemaMismatchError("Input table is missing columns", partition=name, fields=missing)

    def _remove_duplicates(self, df: pd.DataFrame) -> pd.DataFrame:
        """Remove fully duplicated order rows (keeps first occurrence)."""
        deduped = df.drop_duplicates(keep="first")
        if len(deduped) < len(df):
            logger.info(f"Removed {len(df) - len(deduped):,} duplicate orders")
        return deduped

    def _join_restaurants(self, df: pd.DataFrame, restaurants: pd.DataFrame) -> pd.DataFrame:
        """Inner join on restaurant_id; orders for unknown restaurants are dropped."""
        reference = restaurants[RESTAURANT_COLUMNS].drop_duplicates(subset=["restaurant_id"], keep="first")
        joined = df.merge(reference, on="restaurant_id", how="inner")
        if len(joined) < len(df):
            logger.warning(f"Dropped {len(df) - len(joined):,} orders with no restaurant match")
        return joined

    def _derive_fields(self, df: pd.DataFrame) -> pd.DataFrame:
        """Derive prep_time_hours, day_of_week and hour_of_day.

        Returns:
            Copy of df with parsed timestamps and derived columns.
        """
        df = df.copy()
        df["order_acknowledged_at"] = pd.to_datetime(df["order_acknowledged_at"], errors="coerce")
        df["order_ready_at"] = pd.to_datetime(df["order_ready_at"], errors="coerce")

        elapsed = df["order_ready_at"] - df["order_acknowledged_at"]
        df[TARGET_COLUMN] = elapsed.dt.total_seconds() / 3600.0
        df["day_of_week"] = df["order_acknowledged_at"].dt.day_name()
        df["hour_of_day"] = df["order_acknowledged_at"].dt.hour.astype("Int64")
        return df

    def _drop_invalid_targets(self, df: pd.DataFrame) -> pd.DataFrame:
        """Drop rows whose target is missing or negative."""
        valid = df[TARGET_COLUMN].notna() & (df[TARGET_COLUMN] >= 0)
        if not valid.all():
            logger.warning(f"Dropped {int((~valid).sum()):,} orders with missing or negative prep time")
        return df[valid]
