"""
Loan interest-rate analysis - preprocessing entry point.

Loads the raw loan table, applies row/column filtering, and assigns column
roles for the modeling stage.

Usage:
    python -m loan_rate.main
"""
import logging
from typing import Optional, Tuple

import pandas as pd

from loan_rate import config
from loan_rate.feature_pipeline import clean_data, infer_column_roles, load_raw_data
from loan_rate.feature_pipeline.roles import ColumnRoles

logger = logging.getLogger(__name__)


def run_preprocessing_pipeline(
    file_path: Optional[str] = None,
    df: Optional[pd.DataFrame] = None,
    save_outputs: bool = False
) -> Tuple[pd.DataFrame, ColumnRoles]:
    """
    Execute the preprocessing stage.

    Args:
        file_path: Raw CSV path. Ignored when df is given.
        df: Raw DataFrame already in memory.
        save_outputs: If True, write the cleaned data to config.PROCESSED_DATA_PATH.

    Returns:
        Tuple of (cleaned DataFrame, ColumnRoles).
    """
    logger.info("=" * 80)
    logger.info("PREPROCESSING PIPELINE")
    logger.info("=" * 80)

    if df is None:
        df = load_raw_data(file_path)
    else:
        logger.info(f"Using in-memory data: {len(df):,} rows × {len(df.columns)} columns")

    df_clean = clean_data(df)
    roles = infer_column_roles(df_clean)

    if save_outputs:
        config.PROCESSED_DATA_PATH.parent.mkdir(parents=True, exist_ok=True)
        df_clean.to_parquet(config.PROCESSED_DATA_PATH, index=False)
        logger.info(f"✓ Processed data saved to: {config.PROCESSED_DATA_PATH}")

    logger.info(f"✓ Preprocessing complete: {len(df_clean):,} rows, {len(roles.predictors)} predictors")

    return df_clean, roles


def main():
    """Entry point - preprocess the configured raw file and save it."""
    run_preprocessing_pipeline(save_outputs=True)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    main()
