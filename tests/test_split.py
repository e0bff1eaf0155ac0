"""
Train/test split and cross-validation fold tests.

Run with: pytest tests/test_split.py -v
"""
import numpy as np
import pandas as pd
import pytest

from loan_rate import config
from loan_rate.training_pipeline.split import make_folds, make_strata, split_train_test


class TestTrainTestSplit:
    """Tests for the stratified train/test split."""

    def test_same_seed_same_split(self, clean_loans):
        """Identical seeds give identical partitions."""
        first = split_train_test(clean_loans, random_state=123)
        second = split_train_test(clean_loans, random_state=123)

        assert first.train.index.equals(second.train.index)
        assert first.test.index.equals(second.test.index)

    def test_different_seed_different_split(self, clean_loans):
        """A different seed changes the partition."""
        first = split_train_test(clean_loans, random_state=123)
        second = split_train_test(clean_loans, random_state=7)

        assert not first.test.index.sort_values().equals(second.test.index.sort_values())

    def test_disjoint_and_exhaustive(self, clean_loans, loan_split):
        """Train and test share no rows and together cover the dataset."""
        train_idx = set(loan_split.train.index)
        test_idx = set(loan_split.test.index)

        assert not train_idx & test_idx
        assert train_idx | test_idx == set(clean_loans.index)

    def test_split_proportion(self, clean_loans, loan_split):
        """The training partition holds floor(n * prop) rows."""
        assert len(loan_split.train) == int(np.floor(len(clean_loans) * 0.8))

    def test_stratification_preserves_target_mean(self, clean_loans, loan_split):
        """Both partitions have a target mean close to the full dataset's."""
        full_mean = clean_loans[config.TARGET_COLUMN].mean()

        assert abs(loan_split.y_train.mean() - full_mean) < 0.5
        assert abs(loan_split.y_test.mean() - full_mean) < 0.5

    def test_x_y_helpers(self, loan_split):
        """X_* excludes the target; y_* is the target."""
        assert config.TARGET_COLUMN not in loan_split.X_train.columns
        assert loan_split.y_test.name == config.TARGET_COLUMN
        assert len(loan_split.X_test) == len(loan_split.y_test)

    @pytest.mark.parametrize("train_prop", [0.0, 1.0, -0.2, 1.5])
    def test_invalid_proportion(self, clean_loans, train_prop):
        """Proportions outside (0, 1) are configuration errors."""
        with pytest.raises(ValueError):
            split_train_test(clean_loans, train_prop=train_prop)

    def test_missing_target(self, clean_loans):
        """Splitting without the target column raises KeyError."""
        with pytest.raises(KeyError):
            split_train_test(clean_loans.drop(columns=[config.TARGET_COLUMN]))

    def test_small_table_falls_back_to_unstratified(self, caplog):
        """A test partition smaller than the number of strata splits without stratification."""
        df = pd.DataFrame({
            "income": np.arange(15, dtype=float),
            config.TARGET_COLUMN: np.linspace(5, 30, 15),
        })

        with caplog.at_level("WARNING"):
            split = split_train_test(df, train_prop=0.8, random_state=123)

        assert len(split.train) == 12
        assert len(split.test) == 3
        assert "unstratified" in caplog.text


class TestStrata:
    """Tests for stratum construction."""

    def test_numeric_target_binned_into_quartiles(self):
        """A continuous target becomes four quantile strata."""
        y = pd.Series(np.linspace(5, 30, 100))

        strata = make_strata(y, n_bins=4)

        assert strata.nunique() == 4
        assert strata.value_counts().min() == 25

    def test_tiny_strata_fall_back(self):
        """Strata with a single row disable stratification."""
        y = pd.Series(["a", "a", "a", "b"])

        assert make_strata(y) is None


class TestFolds:
    """Tests for k-fold resampling of the training partition."""

    def test_fold_count(self, loan_split):
        """make_folds returns k folds numbered 1..k."""
        folds = make_folds(loan_split.train, n_folds=5, random_state=123)

        assert [f.fold_id for f in folds] == [1, 2, 3, 4, 5]

    def test_each_row_validated_once(self, loan_split):
        """Every training row is held out exactly once and trained on k - 1 times."""
        k = 5
        folds = make_folds(loan_split.train, n_folds=k, random_state=123)
        n = len(loan_split.train)

        validation_counts = np.zeros(n, dtype=int)
        training_counts = np.zeros(n, dtype=int)
        for fold in folds:
            validation_counts[fold.validation_index] += 1
            training_counts[fold.train_index] += 1
            assert not set(fold.train_index) & set(fold.validation_index)

        assert (validation_counts == 1).all()
        assert (training_counts == k - 1).all()

    def test_folds_deterministic(self, loan_split):
        """Identical seeds give identical folds."""
        first = make_folds(loan_split.train, n_folds=5, random_state=123)
        second = make_folds(loan_split.train, n_folds=5, random_state=123)

        for a, b in zip(first, second):
            np.testing.assert_array_equal(a.validation_index, b.validation_index)

    @pytest.mark.parametrize("n_folds", [0, 1])
    def test_too_few_folds(self, loan_split, n_folds):
        """Fewer than two folds is a configuration error."""
        with pytest.raises(ValueError):
            make_folds(loan_split.train, n_folds=n_folds)

    def test_more_folds_than_rows(self, small_frame):
        """More folds than training rows is a configuration error."""
        with pytest.raises(ValueError):
            make_folds(small_frame, n_folds=10)


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
