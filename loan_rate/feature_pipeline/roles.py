"""
Column role metadata.

Roles are computed once after cleaning and handed to the recipe, so no
downstream step has to guess a column's type from its name.
"""
from dataclasses import dataclass
from typing import Optional, Tuple
import logging

import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from loan_rate import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnRoles:
    """Numeric predictors, categorical predictors and the target column."""

    numeric: Tuple[str, ...]
    categorical: Tuple[str, ...]
    target: str

    @property
    def predictors(self) -> Tuple[str, ...]:
        return self.numeric + self.categorical


def infer_column_roles(
    df: pd.DataFrame,
    target: Optional[str] = None
) -> ColumnRoles:
    """
    Assign every column of a cleaned DataFrame to a role.

    Numeric dtypes (excluding booleans) are numeric predictors; everything
    else (object, string, category, bool) is categorical.

    Args:
        df: Cleaned DataFrame.
        target: Target column. If None, uses config.TARGET_COLUMN.

    Returns:
        ColumnRoles with columns in DataFrame order.

    Raises:
        KeyError: If the target column doesn't exist.
        ValueError: If the target isn't numeric or there are no predictors.
    """
    if target is None:
        target = config.TARGET_COLUMN

    if target not in df.columns:
        raise KeyError(f"Target column '{target}' not found in DataFrame")
    if not is_numeric_dtype(df[target]) or is_bool_dtype(df[target]):
        raise ValueError(f"Target column '{target}' must be numeric")

    numeric, categorical = [], []
    for col in df.columns:
        if col == target:
            continue
        if is_numeric_dtype(df[col]) and not is_bool_dtype(df[col]):
            numeric.append(col)
        else:
            categorical.append(col)

    if not numeric and not categorical:
        raise ValueError("No predictor columns remain after cleaning")

    roles = ColumnRoles(
        numeric=tuple(numeric),
        categorical=tuple(categorical),
        target=target
    )

    logger.info(
        f"Column roles: {len(roles.numeric)} numeric, "
        f"{len(roles.categorical)} categorical, target = {target}"
    )

    return roles
