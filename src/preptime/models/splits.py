"""Stratified train/holdout and k-fold dataset splitting.

Both splitters stratify on the target: the continuous target is cut into a
few quantile buckets and rows are sampled within each bucket, so every subset
sees roughly the same target distribution as the full dataset.

Key Classes:
    Splitter - Stratified train/holdout partition
    FoldAssigner - Stratified k-fold partition of a training subset
    Split - Container for the two subsets
    FoldPlan - Fold id per training row

Randomness:
    Every call takes an explicit seed and passes it as random_state to
    sklearn's train_test_split / StratifiedKFold, so two calls with the same
    inputs and seed return identical partitions, and parallel runs never share
    random state.

Usage:
    from preptime.models import Splitter, FoldAssigner

    split = Splitter().split(df, train_fraction=0.75, seed=42)
    plan = FoldAssigner().assign(split.train, k=10, seed=42)

    for fold, analysis_idx, assessment_idx in plan.folds():
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold, train_test_split

from preptime.config import FOLD_COUNT, RANDOM_SEED, STRATA_BINS, TRAIN_FRACTION
from preptime.errors import InsufficientDataError, SchemaMismatchError
from preptime.features.definitions import TARGET_COLUMN


def quantile_strata(
    df: pd.DataFrame,
    stratify_by: str = TARGET_COLUMN,
    bins: int = STRATA_BINS,
    partition: str = "dataset",
) -> pd.Series:
    """Assign each row to a quantile bucket of a continuous column.

    Args:
        df: Rows to bucket. The index must be unique.
        stratify_by: Continuous column to bin.
        bins: Requested number of quantile buckets. Duplicate edges are
            merged, so heavily tied columns may yield fewer buckets.
        partition: Name used in error messages.

    Returns:
        Integer bucket id per row, aligned with df.index.

    Raises:
        SchemaMismatchError: Missing column, null values, or duplicate index.
        InsufficientDataError: Empty frame.
    """
    if stratify_by not in df.columns:
        raise SchemaMismatchError("Stratification column not found", partition, [stratify_by])
    if not df.index.is_unique:
        raise SchemaMismatchError("Index must uniquely identify rows", partition)
    if df.empty:
        raise InsufficientDataError(f"Cannot stratify empty partition '{partition}'")

    values = df[stratify_by]
    if values.isna().any():
        raise SchemaMismatchError(
            f"{int(values.isna().sum())} rows have a null stratification value",
            partition,
            [stratify_by],
        )

    if bins < 2 or values.nunique() < 2:
        return pd.Series(0, index=df.index, dtype=int)

    codes = pd.qcut(values, q=bins, labels=False, duplicates="drop")
    return pd.Series(np.asarray(codes, dtype=int), index=df.index)


@dataclass(frozen=True)
class Split:
    """Disjoint train/holdout partition of a dataset.

    Attributes:
        train: Training rows (original index preserved).
        holdout: Held-out rows (original index preserved).
        train_fraction: Requested share of rows per bucket sent to train.
        seed: Seed that produced this split.
    """
    train: pd.DataFrame
    holdout: pd.DataFrame
    train_fraction: float
    seed: int

    @property
    def summary(self) -> Dict[str, object]:
        return {
            "train_rows": len(self.train),
            "holdout_rows": len(self.holdout),
            "train_fraction": self.train_fraction,
            "seed": self.seed,
        }

    def print_summary(self) -> None:
        """Print split summary to console."""
        summary = self.summary
        print("Split Summary:")
        print(f"  Train:   {summary['train_rows']:,} rows")
        print(f"  Holdout: {summary['holdout_rows']:,} rows")
        print(f"  Fraction: {summary['train_fraction']:g} (seed {summary['seed']})")


@dataclass(frozen=True)
class FoldPlan:
    """Assignment of every training row to exactly one of k folds.

    Attributes:
        assignments: Fold id (0..k-1) per training row.
        k: Number of folds.
        seed: Seed that produced this plan.
    """
    assignments: pd.Series
    k: int
    seed: int

    def assessment_index(self, fold: int) -> pd.Index:
        """Rows held out when fold is the validation fold."""
        return self.assignments.index[self.assignments.to_numpy() == fold]

    def analysis_index(self, fold: int) -> pd.Index:
        """Rows used for fitting when fold is the validation fold."""
        return self.assignments.index[self.assignments.to_numpy() != fold]

    def folds(self) -> Iterator[Tuple[int, pd.Index, pd.Index]]:
        """Yield (fold, analysis_index, assessment_index) for each fold."""
        for fold in range(self.k):
            yield fold, self.analysis_index(fold), self.assessment_index(fold)

    @property
    def sizes(self) -> Dict[int, int]:
        """Assessment rows per fold."""
        counts = self.assignments.value_counts()
        return {fold: int(counts.get(fold, 0)) for fold in range(self.k)}


class Splitter:
    """Stratified train/holdout splitter.

    Example:
        splitter = Splitter(bins=4)
        split = splitter.split(df, train_fraction=0.75, seed=42)
    """

    def __init__(self, bins: int = STRATA_BINS):
        self.bins = bins

    def split(
        self,
        dataset: pd.DataFrame,
        train_fraction: float = TRAIN_FRACTION,
        stratify_by: str = TARGET_COLUMN,
        seed: int = RANDOM_SEED,
    ) -> Split:
        """Partition dataset into train and holdout.

        The training subset holds the sum of floor(n * train_fraction) over
        the quantile buckets; sklearn's stratified train_test_split spreads
        those rows across buckets in proportion to bucket size.

        Raises:
            ValueError: If train_fraction is not strictly between 0 and 1.
            InsufficientDataError: If a bucket is too small to put at least
                one row on each side.
        """
        if not 0.0 < train_fraction < 1.0:
            raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

        strata = quantile_strata(dataset, stratify_by, self.bins, partition="dataset")

        n_train = 0
        for bucket, size in strata.value_counts().sort_index().items():
            bucket_train = int(np.floor(size * train_fraction))
            if bucket_train == 0 or bucket_train == size:
                raise InsufficientDataError(
                    f"Stratification bucket {bucket} has {size} rows, "
                    f"too few to split at train_fraction={train_fraction}"
                )
            n_train += bucket_train

        train_labels, _ = train_test_split(
            dataset.index.to_numpy(),
            train_size=n_train,
            stratify=strata.to_numpy(),
            random_state=seed,
        )

        in_train = dataset.index.isin(train_labels)
        return Split(
            train=dataset[in_train],
            holdout=dataset[~in_train],
            train_fraction=train_fraction,
            seed=seed,
        )


class FoldAssigner:
    """Stratified k-fold assigner.

    Quantile bucket ids are the class labels for sklearn's StratifiedKFold,
    which deals the bucket-sorted rows round-robin into folds, so fold sizes
    differ by at most one row overall.
    """

    def __init__(self, bins: int = STRATA_BINS):
        self.bins = bins

    def assign(
        self,
        train: pd.DataFrame,
        k: int = FOLD_COUNT,
        stratify_by: str = TARGET_COLUMN,
        seed: int = RANDOM_SEED,
    ) -> FoldPlan:
        """Assign every training row to one of k folds.

        Raises:
            ValueError: If k < 2.
            InsufficientDataError: If k exceeds the smallest bucket.
        """
        if k < 2:
            raise ValueError(f"k must be >= 2, got {k}")

        strata = quantile_strata(train, stratify_by, self.bins, partition="train")
        smallest = int(strata.value_counts().min())
        if k > smallest:
            raise InsufficientDataError(
                f"Cannot build {k} folds: smallest stratification bucket has {smallest} rows"
            )

        skf = StratifiedKFold(n_splits=k, shuffle=True, random_state=seed)
        fold_ids = np.empty(len(train), dtype=int)
        for fold, (_, assessment_pos) in enumerate(skf.split(np.zeros(len(train)), strata.to_numpy())):
            fold_ids[assessment_pos] = fold

        assignments = pd.Series(fold_ids, index=train.index, dtype=int)
        return FoldPlan(assignments=assignments, k=k, seed=seed)


__all__ = ["Splitter", "FoldAssigner", "Split", "FoldPlan", "quantile_strata"]
