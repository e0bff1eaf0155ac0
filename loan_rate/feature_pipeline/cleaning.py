"""
Data cleaning module for the loan interest-rate analysis.

Handles missing values: rows without a target are removed, then every column
that still contains a missing value is dropped.
"""
import pandas as pd
from typing import Optional
import logging

from loan_rate import config
from loan_rate.feature_pipeline.load import (
    filter_by_application_type,
    drop_excluded_columns
)

logger = logging.getLogger(__name__)


def drop_missing_target(
    df: pd.DataFrame,
    target: Optional[str] = None
) -> pd.DataFrame:
    """
    Drop rows with a missing target value.

    Args:
        df: Input DataFrame.
        target: Target column. If None, uses config.TARGET_COLUMN.

    Returns:
        DataFrame with the target guaranteed non-null.

    Raises:
        KeyError: If the target column doesn't exist.
        ValueError: If no rows remain.
    """
    if target is None:
        target = config.TARGET_COLUMN

    if target not in df.columns:
        raise KeyError(f"Target column '{target}' not found in DataFrame")

    rows_before = len(df)
    df_clean = df.dropna(subset=[target]).copy()

    if len(df_clean) == 0:
        raise ValueError(f"No rows with a non-missing '{target}'")

    logger.info(f"Dropped {rows_before - len(df_clean):,} rows with missing {target}")

    return df_clean


def drop_missing_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Drop every column that contains at least one missing value.

    Args:
        df: Input DataFrame.

    Returns:
        DataFrame with no missing values.

    Example:
        >>> df_clean = drop_missing_columns(df)
        >>> assert df_clean.isnull().sum().sum() == 0
    """
    missing_cols = df.columns[df.isnull().any()].tolist()
    df_clean = df.drop(columns=missing_cols)

    logger.info(f"Dropped {len(missing_cols)} columns with missing values: {missing_cols}")

    return df_clean


def clean_data(df: pd.DataFrame) -> pd.DataFrame:
    """
    Execute full data cleaning pipeline.

    Orchestrates all cleaning steps:
    1. Keep rows of the configured application type
    2. Drop excluded columns
    3. Drop rows with a missing target
    4. Drop columns with any missing value

    The row count is fixed after this step.

    Args:
        df: Raw DataFrame from load_raw_data().

    Returns:
        Cleaned DataFrame.
    """
    logger.info("Starting data cleaning pipeline")

    df = filter_by_application_type(df)
    df = drop_excluded_columns(df)
    df = drop_missing_target(df)
    df = drop_missing_columns(df)

    logger.info(f"Cleaning complete. Final shape: {df.shape}")

    return df
