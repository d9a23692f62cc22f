"""Upstream outlier filters for the two business variants.

The same-day and asap analyses share one pipeline; they differ only in which
orders are kept before splitting. Each filter is a predicate returning a
boolean keep-mask aligned with the input frame.

Filters:
    none     - keep every order
    same_day - drop next-day orders
    asap     - drop next-day orders and anything slower than asap_max_hours

Next-day heuristic:
    An order is next-day when it is ready on a different calendar date than it
    was acknowledged AND its preparation took longer than next_day_min_hours.
    The cutoff is a business parameter, not something this module tunes.

Usage:
    from preptime.features.filters import get_filter

    keep = get_filter("asap")(orders_df, config)
    orders_df = orders_df[keep]
"""

from __future__ import annotations

from typing import Callable, Dict

import pandas as pd

from preptime.config import PipelineConfig
from preptime.errors import SchemaMismatchError
from preptime.features.definitions import TARGET_COLUMN

OutlierFilter = Callable[[pd.DataFrame, PipelineConfig], pd.Series]

TIMESTAMP_COLUMNS = ["order_acknowledged_at", "order_ready_at"]


def is_next_day_order(frame: pd.DataFrame, min_hours: float) -> pd.Series:
    """Flag orders ready on a later date and slower than min_hours."""
    missing = [c for c in TIMESTAMP_COLUMNS + [TARGET_COLUMN] if c not in frame.columns]
    if missing:
        raise SchemaMismatchError("Next-day check needs order timestamps", fields=missing)

    acknowledged = pd.to_datetime(frame["order_acknowledged_at"])
    ready = pd.to_datetime(frame["order_ready_at"])
    crosses_date = acknowledged.dt.date != ready.dt.date
    return crosses_date & (frame[TARGET_COLUMN] > min_hours)


def keep_all(frame: pd.DataFrame, config: PipelineConfig) -> pd.Series:
    return pd.Series(True, index=frame.index)


def keep_same_day(frame: pd.DataFrame, config: PipelineConfig) -> pd.Series:
    return ~is_next_day_order(frame, config.next_day_min_hours)


def keep_asap(frame: pd.DataFrame, config: PipelineConfig) -> pd.Series:
    return keep_same_day(frame, config) & (frame[TARGET_COLUMN] <= config.asap_max_hours)


OUTLIER_FILTERS: Dict[str, OutlierFilter] = {
    "none": keep_all,
    "same_day": keep_same_day,
    "asap": keep_asap,
}


def get_filter(variant: str) -> OutlierFilter:
    """Look up an outlier filter by variant name."""
    try:
        return OUTLIER_FILTERS[variant]
    except KeyError:
        raise ValueError(
            f"Unknown variant '{variant}', expected one of {sorted(OUTLIER_FILTERS)}"
        ) from None
