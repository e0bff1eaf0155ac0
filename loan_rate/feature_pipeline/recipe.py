"""
Preprocessing recipe for the loan interest-rate model.

Each step is a scikit-learn transformer working on pandas DataFrames. Fitting
learns parameters from training rows only (trailing-underscore attributes);
transforming reuses those parameters unchanged, so the same fitted recipe can
be applied to validation, test and inference rows without leakage.

Step order matters: categorical encoding produces the indicator columns that
the variance filter and the normalizer operate on.
"""
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.compose import ColumnTransformer
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from sklearn.utils.validation import check_is_fitted

from loan_rate import config
from loan_rate.feature_pipeline.roles import ColumnRoles

logger = logging.getLogger(__name__)


def _require_columns(X: pd.DataFrame, columns: Iterable[str]) -> None:
    missing = [c for c in columns if c not in X.columns]
    if missing:
        raise KeyError(f"Columns not found in DataFrame: {missing}")


def _as_levels(values: pd.Series) -> pd.Series:
    # Categories are compared as strings so bools and mixed types behave
    return values.astype(str)


class PredictorSelector(BaseEstimator, TransformerMixin):
    """Keep the role-declared predictor columns, in a fixed order."""

    def __init__(self, columns: Sequence[str] = ()):
        self.columns = columns

    def fit(self, X: pd.DataFrame, y=None):
        _require_columns(X, self.columns)
        self.columns_ = list(self.columns)
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, 'columns_')
        _require_columns(X, self.columns_)
        return X[self.columns_].copy()

    def get_feature_names_out(self, input_features=None):
        check_is_fitted(self, 'columns_')
        return np.asarray(self.columns_, dtype=object)


class NovelCategoryEncoder(BaseEstimator, TransformerMixin):
    """
    Map categories never seen during fitting to a single placeholder level.

    Learns the vocabulary of each categorical column from the training rows.
    At transform time any value outside that vocabulary (including missing
    values) becomes ``new_level``. Fitting fails if ``new_level`` is already
    a training value, since unseen rows would then pass as that real level.
    """

    def __init__(self, columns: Sequence[str] = (), new_level: str = config.NOVEL_LEVEL):
        self.columns = columns
        self.new_level = new_level

    def fit(self, X: pd.DataFrame, y=None):
        _require_columns(X, self.columns)

        levels = {
            col: sorted(_as_levels(X[col]).unique())
            for col in self.columns
        }
        clashing = [col for col, col_levels in levels.items() if self.new_level in col_levels]
        if clashing:
            raise ValueError(
                f"Columns {clashing} already contain the novel level '{self.new_level}'"
            )

        self.feature_names_in_ = list(X.columns)
        self.levels_ = levels
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, 'levels_')
        _require_columns(X, self.levels_)
        X = X.copy()

        for col, levels in self.levels_.items():
            values = _as_levels(X[col])
            known = values.isin(levels)
            if not known.all():
                logger.debug(f"{col}: {(~known).sum():,} unseen values mapped to '{self.new_level}'")
            X[col] = values.where(known, self.new_level)

        return X

    def get_feature_names_out(self, input_features=None):
        check_is_fitted(self, 'levels_')
        return np.asarray(self.feature_names_in_, dtype=object)


def build_dummy_encoder(columns: Sequence[str]) -> ColumnTransformer:
    """
    One-hot encode categorical columns against a reference level.

    The first sorted training level of each column is the reference, so a
    column with L levels yields L - 1 indicators named ``<column>_<level>``.
    Levels unseen at fit time (the novel placeholder) encode as all zeros,
    i.e. as the reference level. Other columns pass through after the
    indicators.

    Args:
        columns: Categorical columns to encode.

    Returns:
        ColumnTransformer producing a pandas DataFrame.
    """
    onehot = OneHotEncoder(drop="first", sparse_output=False, handle_unknown="ignore")

    encoder = ColumnTransformer(
        transformers=[("cat", onehot, list(columns))],
        remainder="passthrough",
        verbose_feature_names_out=False,
    )
    return encoder.set_output(transform="pandas")


def is_near_zero_variance(
    values: pd.Series,
    freq_cut: float = config.NZV_FREQ_CUT,
    unique_cut: float = config.NZV_UNIQUE_CUT
) -> bool:
    """
    Near-zero-variance rule for a single column.

    A column is flagged when it has one distinct value, or when the most
    common value outnumbers the second most common by more than ``freq_cut``
    while distinct values make up less than ``unique_cut`` percent of rows.
    """
    counts = values.value_counts(dropna=True)
    if len(counts) <= 1:
        return True

    freq_ratio = counts.iloc[0] / counts.iloc[1]
    percent_unique = 100 * len(counts) / len(values)

    return bool(freq_ratio > freq_cut and percent_unique < unique_cut)


class NearZeroVarianceFilter(BaseEstimator, TransformerMixin):
    """Drop columns with little or no variability in the training rows."""

    def __init__(self, freq_cut: float = config.NZV_FREQ_CUT, unique_cut: float = config.NZV_UNIQUE_CUT):
        self.freq_cut = freq_cut
        self.unique_cut = unique_cut

    def fit(self, X: pd.DataFrame, y=None):
        self.removed_ = [
            col for col in X.columns
            if is_near_zero_variance(X[col], self.freq_cut, self.unique_cut)
        ]
        self.columns_ = [c for c in X.columns if c not in self.removed_]

        if not self.columns_:
            raise ValueError(
                f"Near-zero-variance filter removed all {len(self.removed_)} predictors"
            )

        logger.debug(f"NearZeroVarianceFilter removed {len(self.removed_)} columns: {self.removed_}")
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, 'columns_')
        _require_columns(X, self.columns_)
        return X[self.columns_].copy()

    def get_feature_names_out(self, input_features=None):
        check_is_fitted(self, 'columns_')
        return np.asarray(self.columns_, dtype=object)


def build_recipe(
    roles: ColumnRoles,
    freq_cut: Optional[float] = None,
    unique_cut: Optional[float] = None
) -> List[Tuple[str, BaseEstimator]]:
    """
    Build the ordered preprocessing steps for a set of column roles.

    Steps:
    1. select     - role-declared predictors only
    2. novel      - unseen categories → placeholder level
    3. dummy      - one-hot encode categoricals
    4. nzv        - drop near-zero-variance predictors
    5. normalize  - z-score every remaining predictor

    Args:
        roles: Column roles from infer_column_roles().
        freq_cut: Near-zero-variance frequency ratio. If None, uses config.
        unique_cut: Near-zero-variance distinct percentage. If None, uses config.

    Returns:
        List of (name, transformer) pairs, ready for sklearn.pipeline.Pipeline.
    """
    if freq_cut is None:
        freq_cut = config.NZV_FREQ_CUT
    if unique_cut is None:
        unique_cut = config.NZV_UNIQUE_CUT

    categorical = list(roles.categorical)

    return [
        ('select', PredictorSelector(columns=list(roles.predictors))),
        ('novel', NovelCategoryEncoder(columns=categorical, new_level=config.NOVEL_LEVEL)),
        ('dummy', build_dummy_encoder(categorical)),
        ('nzv', NearZeroVarianceFilter(freq_cut=freq_cut, unique_cut=unique_cut)),
        ('normalize', StandardScaler().set_output(transform="pandas")),
    ]
