"""
Data loading module for the loan interest-rate analysis.

Handles loading the raw loan CSV, filtering to the application type under
study, and dropping identifier-like and leakage columns that should not be
used for modeling.
"""
import pandas as pd
from typing import Optional
import logging

from loan_rate import config

logger = logging.getLogger(__name__)


def load_raw_data(file_path: Optional[str] = None) -> pd.DataFrame:
    """
    Load raw loan data from CSV file.

    Args:
        file_path: Path to raw CSV file. If None, uses default from config.

    Returns:
        DataFrame with raw loan data (one row per loan).

    Raises:
        FileNotFoundError: If CSV file doesn't exist.
        pd.errors.EmptyDataError: If CSV file is empty.

    Example:
        >>> df = load_raw_data()
        >>> print(df.shape)
        (10000, 55)
    """
    if file_path is None:
        file_path = config.RAW_DATA_PATH

    logger.info(f"Loading raw data from: {file_path}")

    try:
        df = pd.read_csv(file_path)
    except FileNotFoundError:
        logger.error(f"File not found: {file_path}")
        raise
    except pd.errors.EmptyDataError:
        logger.error(f"File is empty: {file_path}")
        raise

    logger.info(f"Loaded {len(df):,} rows × {len(df.columns)} columns")

    return df


def filter_by_application_type(
    df: pd.DataFrame,
    valid_values: Optional[list] = None,
    column: Optional[str] = None
) -> pd.DataFrame:
    """
    Filter dataset to keep only rows whose filter column is in valid_values.

    By default keeps individual applications, which share a single set of
    income and debt-to-income fields.

    Args:
        df: Input DataFrame.
        valid_values: Values to keep. If None, uses config.FILTER_VALUES.
        column: Column to filter on. If None, uses config.FILTER_COLUMN.

    Returns:
        Filtered DataFrame.

    Raises:
        KeyError: If the filter column doesn't exist.
        ValueError: If no rows match the valid values.

    Example:
        >>> df_filtered = filter_by_application_type(df_raw)
        >>> print(df_filtered['application_type'].unique())
        ['individual']
    """
    if valid_values is None:
        valid_values = config.FILTER_VALUES
    if column is None:
        column = config.FILTER_COLUMN

    if column not in df.columns:
        raise KeyError(f"Column '{column}' not found in DataFrame")

    rows_before = len(df)
    df_filtered = df[df[column].isin(valid_values)].copy()
    rows_after = len(df_filtered)

    if rows_after == 0:
        raise ValueError(f"No rows match {column} in {valid_values}")

    logger.info(
        f"Filtered to {column} in {valid_values}: "
        f"{rows_after:,} rows kept, {rows_before - rows_after:,} removed "
        f"({(rows_before - rows_after) / rows_before * 100:.2f}%)"
    )

    return df_filtered


def drop_excluded_columns(
    df: pd.DataFrame,
    columns: Optional[list] = None
) -> pd.DataFrame:
    """
    Drop identifier-like and leakage columns.

    The target column is never dropped, even if listed.

    Args:
        df: Input DataFrame.
        columns: Columns to drop. If None, uses config.EXCLUDE_COLUMNS.

    Returns:
        DataFrame with excluded columns removed.

    Example:
        >>> df_clean = drop_excluded_columns(df_filtered)
        >>> assert 'paid_total' not in df_clean.columns
    """
    if columns is None:
        columns = config.EXCLUDE_COLUMNS

    cols_before = len(df.columns)

    # Only drop columns that exist in the dataframe
    existing_cols = [
        c for c in columns
        if c in df.columns and c != config.TARGET_COLUMN
    ]

    df_clean = df.drop(columns=existing_cols).copy()

    logger.info(f"Dropped {len(existing_cols)} excluded columns: {existing_cols}")
    logger.info(f"Columns: {cols_before} → {len(df_clean.columns)}")

    return df_clean
