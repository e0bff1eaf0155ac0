"""
Data splitting module for the loan interest-rate model.

Creates the stratified train/test split and the k cross-validation folds of
the training partition. All randomness comes from explicit seeds.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype
from sklearn.model_selection import KFold, StratifiedKFold, train_test_split

from loan_rate import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataSplit:
    """Disjoint training and test partitions of one cleaned dataset."""

    train: pd.DataFrame
    test: pd.DataFrame
    target: str
    train_prop: float
    random_state: int

    @property
    def X_train(self) -> pd.DataFrame:
        return self.train.drop(columns=[self.target])

    @property
    def y_train(self) -> pd.Series:
        return self.train[self.target]

    @property
    def X_test(self) -> pd.DataFrame:
        return self.test.drop(columns=[self.target])

    @property
    def y_test(self) -> pd.Series:
        return self.test[self.target]


@dataclass(frozen=True)
class Fold:
    """Positional row indices into the training partition for one fold."""

    fold_id: int
    train_index: np.ndarray
    validation_index: np.ndarray


def make_strata(y: pd.Series, n_bins: Optional[int] = None) -> Optional[pd.Series]:
    """
    Build stratification labels for a target.

    Numeric targets with more distinct values than n_bins are cut into
    quantile bins; other targets are used as-is. Returns None (no
    stratification) when any stratum has fewer than two rows.

    Args:
        y: Target values.
        n_bins: Number of quantile bins. If None, uses config.STRATA_BINS.

    Returns:
        Series of stratum labels aligned with y, or None.
    """
    if n_bins is None:
        n_bins = config.STRATA_BINS

    if is_numeric_dtype(y) and y.nunique() > n_bins:
        strata = pd.qcut(y, q=n_bins, labels=False, duplicates='drop')
    else:
        strata = y

    counts = strata.value_counts()
    if len(counts) < 2 or counts.min() < 2:
        logger.warning(
            f"Too few rows per stratum ({counts.min() if len(counts) else 0}); "
            f"falling back to unstratified sampling"
        )
        return None

    return strata


def split_train_test(
    df: pd.DataFrame,
    target: Optional[str] = None,
    train_prop: Optional[float] = None,
    random_state: Optional[int] = None,
    n_bins: Optional[int] = None
) -> DataSplit:
    """
    Perform stratified train/test split.

    Args:
        df: Cleaned DataFrame including the target column.
        target: Stratification/target column. If None, uses config.TARGET_COLUMN.
        train_prop: Fraction of rows for training. If None, uses config.TRAIN_PROP.
        random_state: Random seed. If None, uses config.RANDOM_STATE.
        n_bins: Quantile bins for a numeric target. If None, uses config.STRATA_BINS.

    Returns:
        DataSplit with disjoint, exhaustive train and test partitions.

    Raises:
        KeyError: If the target column is missing.
        ValueError: If train_prop is outside (0, 1) or a partition would be empty.

    Example:
        >>> split = split_train_test(df_clean)
        >>> print(len(split.train), len(split.test))
        6400 1600
    """
    if target is None:
        target = config.TARGET_COLUMN
    if train_prop is None:
        train_prop = config.TRAIN_PROP
    if random_state is None:
        random_state = config.RANDOM_STATE

    if not 0 < train_prop < 1:
        raise ValueError(f"train_prop must be between 0 and 1, got {train_prop}")
    if target not in df.columns:
        raise KeyError(f"Target column '{target}' not found in DataFrame")

    n_train = int(np.floor(len(df) * train_prop))
    if n_train == 0 or n_train == len(df):
        raise ValueError(
            f"train_prop={train_prop} leaves an empty partition for {len(df):,} rows"
        )

    strata = make_strata(df[target], n_bins)
    if strata is not None and min(n_train, len(df) - n_train) < strata.nunique():
        logger.warning(
            f"Partitions of {n_train:,}/{len(df) - n_train:,} rows cannot hold "
            f"{strata.nunique()} strata; falling back to unstratified sampling"
        )
        strata = None

    train, test = train_test_split(
        df,
        train_size=n_train,
        random_state=random_state,
        stratify=strata
    )

    logger.info("Train/test split complete:")
    logger.info(f"  Train: {len(train):,} rows (mean {target} = {train[target].mean():.3f})")
    logger.info(f"  Test: {len(test):,} rows (mean {target} = {test[target].mean():.3f})")

    return DataSplit(
        train=train,
        test=test,
        target=target,
        train_prop=train_prop,
        random_state=random_state
    )


def make_folds(
    train: pd.DataFrame,
    target: Optional[str] = None,
    n_folds: Optional[int] = None,
    random_state: Optional[int] = None,
    n_bins: Optional[int] = None
) -> List[Fold]:
    """
    Partition the training rows into k stratified cross-validation folds.

    Every row is in exactly one validation set and in k - 1 training sets.

    Args:
        train: Training partition including the target column.
        target: Stratification column. If None, uses config.TARGET_COLUMN.
        n_folds: Number of folds. If None, uses config.CV_FOLDS.
        random_state: Random seed. If None, uses config.RANDOM_STATE.
        n_bins: Quantile bins for a numeric target. If None, uses config.STRATA_BINS.

    Returns:
        List of Fold objects ordered by fold_id (1..k).

    Raises:
        ValueError: If n_folds < 2 or exceeds the number of training rows.
    """
    if target is None:
        target = config.TARGET_COLUMN
    if n_folds is None:
        n_folds = config.CV_FOLDS
    if random_state is None:
        random_state = config.RANDOM_STATE

    if n_folds < 2:
        raise ValueError(f"n_folds must be at least 2, got {n_folds}")
    if n_folds > len(train):
        raise ValueError(f"n_folds={n_folds} exceeds the {len(train):,} training rows")
    if target not in train.columns:
        raise KeyError(f"Target column '{target}' not found in DataFrame")

    strata = make_strata(train[target], n_bins)
    if strata is not None and strata.value_counts().min() < n_folds:
        logger.warning(f"Smallest stratum has fewer than {n_folds} rows; folds are unstratified")
        strata = None

    if strata is None:
        splitter = KFold(n_splits=n_folds, shuffle=True, random_state=random_state)
        index_pairs = splitter.split(train)
    else:
        splitter = StratifiedKFold(n_splits=n_folds, shuffle=True, random_state=random_state)
        index_pairs = splitter.split(train, strata)

    folds = [
        Fold(fold_id=i, train_index=train_idx, validation_index=val_idx)
        for i, (train_idx, val_idx) in enumerate(index_pairs, start=1)
    ]

    logger.info(
        f"Created {n_folds} folds "
        f"({'stratified' if strata is not None else 'unstratified'}, "
        f"~{len(train) // n_folds:,} validation rows each)"
    )

    return folds
