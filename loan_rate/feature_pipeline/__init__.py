"""
Feature pipeline for the loan interest-rate analysis.

Public API for loading and cleaning raw loan data, assigning column roles,
and building the preprocessing recipe.
"""
from loan_rate.feature_pipeline.load import (
    load_raw_data,
    filter_by_application_type,
    drop_excluded_columns
)
from loan_rate.feature_pipeline.cleaning import (
    drop_missing_target,
    drop_missing_columns,
    clean_data
)
from loan_rate.feature_pipeline.roles import ColumnRoles, infer_column_roles
from loan_rate.feature_pipeline.recipe import (
    PredictorSelector,
    NovelCategoryEncoder,
    build_dummy_encoder,
    NearZeroVarianceFilter,
    build_recipe
)

__all__ = [
    'load_raw_data',
    'filter_by_application_type',
    'drop_excluded_columns',
    'drop_missing_target',
    'drop_missing_columns',
    'clean_data',
    'ColumnRoles',
    'infer_column_roles',
    'PredictorSelector',
    'NovelCategoryEncoder',
    'build_dummy_encoder',
    'NearZeroVarianceFilter',
    'build_recipe',
]
