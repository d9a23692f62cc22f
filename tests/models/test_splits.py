"""Tests for stratified Splitter and FoldAssigner."""

import numpy as np
import pandas as pd
import pytest

from conftest import make_orders
from preptime.errors import InsufficientDataError, SchemaMismatchError
from preptime.models import FoldAssigner, Splitter, quantile_strata


@pytest.fixture
def thousand_rows():
    """1,000 rows with a continuous, skewed target."""
    rng = np.random.default_rng(7)
    return pd.DataFrame({
        "number_of_items": rng.integers(1, 9, size=1000),
        "prep_time_hours": rng.lognormal(mean=-1.0, sigma=0.5, size=1000),
    })


class TestQuantileStrata:
    """Tests for quantile_strata()."""

    def test_four_equal_buckets(self):
        df = pd.DataFrame({"prep_time_hours": np.arange(20, dtype=float)})
        strata = quantile_strata(df, bins=4)
        assert strata.value_counts().sort_index().tolist() == [5, 5, 5, 5]

    def test_constant_target_single_bucket(self):
        df = pd.DataFrame({"prep_time_hours": [0.5] * 10})
        assert quantile_strata(df).unique().tolist() == [0]

    def test_null_target_raises(self):
        df = pd.DataFrame({"prep_time_hours": [0.5, np.nan, 0.7]})
        with pytest.raises(SchemaMismatchError):
            quantile_strata(df)

    def test_missing_column_raises(self):
        with pytest.raises(SchemaMismatchError):
            quantile_strata(pd.DataFrame({"x": [1.0]}))

    def test_duplicate_index_raises(self):
        df = pd.DataFrame({"prep_time_hours": [0.1, 0.2]}, index=[0, 0])
        with pytest.raises(SchemaMismatchError):
            quantile_strata(df)


class TestSplitter:
    """Tests for Splitter.split()."""

    def test_exact_partition(self, thousand_rows):
        """train ∩ holdout = ∅ and train ∪ holdout = dataset."""
        split = Splitter().split(thousand_rows, train_fraction=0.75, seed=1)
        train_idx, hold_idx = set(split.train.index), set(split.holdout.index)

        assert train_idx.isdisjoint(hold_idx)
        assert train_idx | hold_idx == set(thousand_rows.index)

    def test_train_fraction_respected(self, thousand_rows):
        """floor(250 * 0.75) = 187 training rows from each of four buckets."""
        split = Splitter().split(thousand_rows, train_fraction=0.75, seed=1)
        assert len(split.train) == 4 * 187
        assert len(split.holdout) == 1000 - 4 * 187

    def test_stratified_by_target_quartile(self, thousand_rows):
        """Each target quartile contributes 75% of its rows to train."""
        split = Splitter().split(thousand_rows, train_fraction=0.75, seed=1)
        strata = quantile_strata(thousand_rows)
        in_train = strata.index.isin(split.train.index)

        for bucket in range(4):
            share = in_train[strata.to_numpy() == bucket].mean()
            assert share == pytest.approx(0.75, abs=0.01)

    def test_deterministic_for_seed(self, thousand_rows):
        first = Splitter().split(thousand_rows, seed=3)
        second = Splitter().split(thousand_rows, seed=3)
        assert first.train.index.equals(second.train.index)
        assert first.holdout.index.equals(second.holdout.index)

    def test_different_seed_different_split(self, thousand_rows):
        first = Splitter().split(thousand_rows, seed=3)
        second = Splitter().split(thousand_rows, seed=4)
        assert not first.train.index.equals(second.train.index)

    def test_rows_keep_original_order_and_values(self, thousand_rows):
        split = Splitter().split(thousand_rows, seed=3)
        assert split.train.index.is_monotonic_increasing
        pd.testing.assert_frame_equal(split.train, thousand_rows.loc[split.train.index])

    def test_summary(self, thousand_rows, capsys):
        split = Splitter().split(thousand_rows, train_fraction=0.75, seed=3)
        assert split.summary == {
            "train_rows": 748,
            "holdout_rows": 252,
            "train_fraction": 0.75,
            "seed": 3,
        }
        split.print_summary()
        out = capsys.readouterr().out
        assert "748 rows" in out
        assert "seed 3" in out

    @pytest.mark.parametrize("fraction", [0.0, 1.0, -0.5, 1.5])
    def test_invalid_fraction(self, thousand_rows, fraction):
        with pytest.raises(ValueError):
            Splitter().split(thousand_rows, train_fraction=fraction)

    def test_bucket_too_small_raises(self):
        """Four rows in four buckets cannot be split 75/25 per bucket."""
        df = pd.DataFrame({"prep_time_hours": [0.1, 0.2, 0.3, 0.4]})
        with pytest.raises(InsufficientDataError):
            Splitter(bins=4).split(df, train_fraction=0.75)

    def test_empty_dataset_raises(self):
        with pytest.raises(InsufficientDataError):
            Splitter().split(pd.DataFrame({"prep_time_hours": pd.Series([], dtype=float)}))


class TestFoldAssigner:
    """Tests for FoldAssigner.assign()."""

    def test_folds_partition_training_rows(self, thousand_rows):
        """Assessment slices are pairwise disjoint and cover train exactly."""
        plan = FoldAssigner().assign(thousand_rows, k=10, seed=2)
        slices = [set(assess) for _, _, assess in plan.folds()]

        assert sum(len(s) for s in slices) == len(thousand_rows)
        assert set().union(*slices) == set(thousand_rows.index)
        for i in range(len(slices)):
            for j in range(i + 1, len(slices)):
                assert slices[i].isdisjoint(slices[j])

    def test_thousand_rows_ten_folds_sizes(self, thousand_rows):
        """10 folds over 1,000 rows: each slice within one row of 100."""
        plan = FoldAssigner().assign(thousand_rows, k=10, seed=2)
        sizes = plan.sizes
        assert len(sizes) == 10
        assert all(abs(size - 100) <= 1 for size in sizes.values())

    def test_uneven_sizes_differ_by_at_most_one(self):
        df = make_orders(437, seed=5)
        plan = FoldAssigner().assign(df, k=10, seed=2)
        sizes = list(plan.sizes.values())
        assert max(sizes) - min(sizes) <= 1
        assert sum(sizes) == 437

    def test_tied_target_sizes_differ_by_at_most_one(self):
        """Merged quantile edges leave uneven buckets; folds stay balanced."""
        df = pd.DataFrame({"prep_time_hours": [0.25] * 40 + [0.5] * 17 + [1.0, 1.5] * 7})
        plan = FoldAssigner().assign(df, k=7, seed=4)
        sizes = list(plan.sizes.values())
        assert max(sizes) - min(sizes) <= 1
        assert sum(sizes) == len(df)

    def test_analysis_is_complement_of_assessment(self, thousand_rows):
        plan = FoldAssigner().assign(thousand_rows, k=5, seed=2)
        for _, analysis, assessment in plan.folds():
            assert set(analysis) | set(assessment) == set(thousand_rows.index)
            assert set(analysis).isdisjoint(assessment)

    def test_each_fold_stratified(self, thousand_rows):
        """Every fold holds about a quarter of its rows from each quartile."""
        plan = FoldAssigner().assign(thousand_rows, k=10, seed=2)
        strata = quantile_strata(thousand_rows)

        for _, _, assessment in plan.folds():
            counts = strata.loc[assessment].value_counts()
            assert counts.min() >= 24
            assert counts.max() <= 26

    def test_deterministic_for_seed(self, thousand_rows):
        first = FoldAssigner().assign(thousand_rows, k=10, seed=9)
        second = FoldAssigner().assign(thousand_rows, k=10, seed=9)
        pd.testing.assert_series_equal(first.assignments, second.assignments)

    def test_k_larger_than_smallest_bucket_raises(self):
        """20 rows in 4 buckets of 5 cannot support 6 folds."""
        df = pd.DataFrame({"prep_time_hours": np.arange(20, dtype=float)})
        with pytest.raises(InsufficientDataError):
            FoldAssigner(bins=4).assign(df, k=6)

    def test_k_equal_to_smallest_bucket_ok(self):
        df = pd.DataFrame({"prep_time_hours": np.arange(20, dtype=float)})
        plan = FoldAssigner(bins=4).assign(df, k=5)
        assert sorted(plan.sizes.values()) == [4, 4, 4, 4, 4]

    def test_k_below_two_raises(self, thousand_rows):
        with pytest.raises(ValueError):
            FoldAssigner().assign(thousand_rows, k=1)
