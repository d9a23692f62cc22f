"""Pytest fixtures/config for preptime tests."""

import os
import sys

import numpy as np
import pandas as pd
import pytest


def pytest_sessionstart(session) -> None:  # type: ignore[unused-argument]
    repo_root = os.path.dirname(os.path.dirname(__file__))
    src_path = os.path.join(repo_root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


FOODS = ["pizza", "burger", "sushi", "thai", "indian"]
CITIES = {"London": "UK", "Manchester": "UK", "Paris": "France", "Berlin": "Germany"}
DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def make_orders(n_rows: int = 400, seed: int = 0) -> pd.DataFrame:
    """Synthetic joined order rows with a learnable preparation time."""
    rng = np.random.default_rng(seed)

    items = rng.integers(1, 9, size=n_rows)
    food = rng.choice(FOODS, size=n_rows, p=[0.35, 0.25, 0.2, 0.1, 0.1])
    city = rng.choice(list(CITIES), size=n_rows)
    acknowledged = (
        pd.Timestamp("2024-03-04 10:00")
        + pd.to_timedelta(rng.integers(0, 28, size=n_rows), unit="D")
        + pd.to_timedelta(rng.integers(0, 11 * 60, size=n_rows), unit="min")
    )
    prep = np.clip(
        0.15 + 0.04 * items + 0.1 * (food == "pizza") + rng.normal(0, 0.05, size=n_rows),
        0.01,
        None,
    )

    return pd.DataFrame({
        "restaurant_id": [f"r{i}" for i in rng.integers(0, 30, size=n_rows)],
        "number_of_items": items,
        "order_value": np.round(items * rng.uniform(5, 15, size=n_rows), 2),
        "type_of_food": food,
        "city": city,
        "country": [CITIES[c] for c in city],
        "hour_of_day": acknowledged.hour.to_numpy(),
        "day_of_week": acknowledged.day_name().to_numpy(),
        "order_acknowledged_at": acknowledged,
        "order_ready_at": acknowledged + pd.to_timedelta(prep, unit="h"),
        "prep_time_hours": prep,
    })


@pytest.fixture
def orders_df():
    """400 synthetic joined orders."""
    return make_orders(400, seed=0)
