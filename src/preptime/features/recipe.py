"""Fit-then-apply feature recipe.

Turns order records into a numeric feature matrix in five fixed stages:

    1. Rare-level collapsing  - levels below the group threshold -> "other"
    2. Novel-level handling   - levels never seen at fit -> "novel"
    3. One-hot encoding       - one indicator per frozen level
    4. Zero-variance filter   - drop columns constant on the fit partition
    5. Scaling                - center/scale numeric fields with fit statistics

How Leakage is Prevented:
    Every parameter (level sets, dropped columns, means, standard deviations)
    is computed once by fit() on a training partition and frozen into a
    RecipeState. apply() only reads that state; it never looks at the
    frequencies or moments of the partition it transforms.

Key Classes:
    Recipe - Stateless fit/apply transformer chain
    RecipeState - Frozen parameters produced by Recipe.fit()

Usage:
    from preptime.features import Recipe

    recipe = Recipe()
    state = recipe.fit(train_df)
    X_train = recipe.apply(state, train_df, partition="train")
    X_test = recipe.apply(state, test_df, partition="holdout")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from preptime.errors import DegenerateColumnError, InsufficientDataError, SchemaMismatchError
from preptime.features.definitions import NOVEL_LEVEL, OTHER_LEVEL, RecipeConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipeState:
    """Fitted recipe parameters. Never mutated after fit().

    Attributes:
        numeric: Numeric fields, in output order.
        categorical: Categorical fields, in output order.
        seen: Every level observed per field on the fit partition.
        levels: Encoded level set per field (retained levels, then "other"
            if anything was collapsed, then "novel").
        columns: Final feature columns after the zero-variance filter.
        dropped: Columns removed by the zero-variance filter.
        scaling: Numeric field -> (mean, scale) from StandardScaler.
        n_rows: Rows in the fit partition.
    """
    numeric: Tuple[str, ...]
    categorical: Tuple[str, ...]
    seen: Mapping[str, FrozenSet[str]]
    levels: Mapping[str, Tuple[str, ...]]
    columns: Tuple[str, ...] = ()
    dropped: Tuple[str, ...] = ()
    scaling: Mapping[str, Tuple[float, float]] = field(default_factory=dict)
    n_rows: int = 0

    def __post_init__(self):
        # Read-only views; frozen=True alone leaves the dicts mutable
        for name in ("seen", "levels", "scaling"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    def __reduce__(self):
        return (self.__class__, (
            self.numeric, self.categorical, dict(self.seen), dict(self.levels),
            self.columns, self.dropped, dict(self.scaling), self.n_rows,
        ))

    @property
    def fields(self) -> List[str]:
        return list(self.numeric) + list(self.categorical)

    def collapsed(self, field_name: str) -> FrozenSet[str]:
        """Fit-time levels of a field that were folded into "other"."""
        return frozenset(self.seen[field_name] - set(self.levels[field_name]))


def indicator_name(field_name: str, level: str) -> str:
    """Column name of the indicator for one level of a field."""
    return f"{field_name}_{level}"


def _as_levels(series: pd.Series) -> pd.Series:
    return series.astype(str)


def _check_variance(values: pd.Series, name: str) -> None:
    """Raise DegenerateColumnError if a numeric column has zero (or undefined) variance."""
    sd = float(values.std(ddof=0))
    if not np.isfinite(sd) or sd == 0.0:
        raise DegenerateColumnError(name)


class Recipe:
    """Stateless transformer chain; all fitted state lives in RecipeState."""

    def __init__(self, config: Optional[RecipeConfig] = None):
        self.config = config or RecipeConfig()

    def fit(self, frame: pd.DataFrame, partition: str = "train") -> RecipeState:
        """Learn recipe parameters from a training partition.

        Args:
            frame: Training rows with every numeric and categorical field.
            partition: Partition name used in error messages.

        Returns:
            Frozen RecipeState.

        Raises:
            SchemaMismatchError: If a configured field is missing.
            InsufficientDataError: If the partition is empty.
        """
        self._check_fields(frame, self.config.required, partition)
        if frame.empty:
            raise InsufficientDataError(f"Cannot fit recipe on empty partition '{partition}'")

        seen: Dict[str, FrozenSet[str]] = {}
        levels: Dict[str, Tuple[str, ...]] = {}

        # Stage 1: rare-level collapsing
        for name, threshold in self.config.field_thresholds:
            freq = _as_levels(frame[name]).value_counts(normalize=True)
            retained = sorted(freq.index[freq >= threshold])
            n_rare = int((freq < threshold).sum())

            level_set = list(retained)
            if n_rare:
                level_set.append(OTHER_LEVEL)
            level_set.append(NOVEL_LEVEL)

            seen[name] = frozenset(freq.index)
            levels[name] = tuple(level_set)
            if n_rare:
                logger.debug(f"{name}: collapsed {n_rare} rare levels into '{OTHER_LEVEL}'")

        state = RecipeState(
            numeric=tuple(self.config.numeric),
            categorical=tuple(self.config.categorical),
            seen=seen,
            levels=levels,
            n_rows=len(frame),
        )

        # Stages 2-3 on the fit partition itself
        encoded = self._encode(state, frame)

        # Stage 4: zero-variance filter
        dropped = self._zero_variance_columns(state, encoded)
        columns = tuple(c for c in encoded.columns if c not in dropped)

        # Stage 5: scaling statistics for surviving numeric fields
        scaled = [name for name in state.numeric if name not in dropped]
        scaling: Dict[str, Tuple[float, float]] = {}
        if scaled:
            scaler = StandardScaler().fit(encoded[scaled].to_numpy())
            scaling = {
                name: (float(mean), float(scale))
                for name, mean, scale in zip(scaled, scaler.mean_, scaler.scale_)
            }

        logger.debug(
            f"Recipe fit on {len(frame):,} rows ({partition}): "
            f"{len(columns)} columns, {len(dropped)} zero-variance dropped"
        )
        return replace(state, columns=columns, dropped=tuple(dropped), scaling=scaling)

    def apply(
        self,
        state: RecipeState,
        frame: pd.DataFrame,
        partition: str = "holdout",
    ) -> pd.DataFrame:
        """Transform any partition with previously fitted parameters.

        Args:
            state: Output of fit().
            frame: Rows to transform.
            partition: Partition name used in error messages.

        Returns:
            Feature matrix with exactly state.columns, indexed like frame.

        Raises:
            SchemaMismatchError: If state is not fitted or a field is missing.
        """
        if not isinstance(state, RecipeState):
            raise SchemaMismatchError(
                "Recipe.apply() needs a fitted RecipeState, call fit() first",
                partition=partition,
            )
        self._check_fields(frame, state.fields, partition)

        matrix = self._encode(state, frame).loc[:, list(state.columns)].copy()
        for name, (mean, sd) in state.scaling.items():
            matrix[name] = (matrix[name] - mean) / sd
        return matrix

    def fit_apply(self, frame: pd.DataFrame, partition: str = "train") -> Tuple[RecipeState, pd.DataFrame]:
        """Fit on a partition and transform that same partition."""
        state = self.fit(frame, partition=partition)
        return state, self.apply(state, frame, partition=partition)

    @staticmethod
    def _check_fields(frame: pd.DataFrame, fields: List[str], partition: str) -> None:
        missing = [c for c in fields if c not in frame.columns]
        if missing:
            raise SchemaMismatchError("Partition is missing expected fields", partition, missing)

    @staticmethod
    def _map_levels(series: pd.Series, seen: FrozenSet[str], levels: Tuple[str, ...]) -> np.ndarray:
        """Map raw values onto the frozen level set (stage 2)."""
        values = _as_levels(series)
        retained = [lvl for lvl in levels if lvl not in (OTHER_LEVEL, NOVEL_LEVEL)]
        return np.where(
            values.isin(retained),
            values.to_numpy(),
            np.where(values.isin(list(seen)), OTHER_LEVEL, NOVEL_LEVEL),
        )

    def _encode(self, state: RecipeState, frame: pd.DataFrame) -> pd.DataFrame:
        """Numeric passthrough plus one indicator per frozen level (stage 3)."""
        columns: Dict[str, np.ndarray] = {}
        for name in state.numeric:
            columns[name] = frame[name].to_numpy(dtype=float)
        for name in state.categorical:
            mapped = self._map_levels(frame[name], state.seen[name], state.levels[name])
            for level in state.levels[name]:
                columns[indicator_name(name, level)] = (mapped == level).astype(float)
        return pd.DataFrame(columns, index=frame.index)

    @staticmethod
    def _zero_variance_columns(state: RecipeState, encoded: pd.DataFrame) -> List[str]:
        """Columns that are constant on the fit partition.

        Novel-level indicators are all zero at fit time by construction and are
        kept so unseen levels stay distinct from "other".
        """
        novel = {indicator_name(name, NOVEL_LEVEL) for name in state.categorical}
        dropped = []
        for name in encoded.columns:
            if name in novel:
                continue
            if name in state.numeric:
                try:
                    _check_variance(encoded[name], name)
                except DegenerateColumnError as e:
                    logger.debug(f"Dropping numeric column: {e}")
                    dropped.append(name)
            elif encoded[name].nunique(dropna=False) <= 1:
                dropped.append(name)
        return dropped


__all__ = ["Recipe", "RecipeState", "indicator_name"]
