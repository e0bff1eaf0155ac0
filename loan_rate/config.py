"""
Configuration module for the loan interest-rate lasso analysis.

Contains all constants, file paths, column names, and tuning settings used
throughout the preprocessing and training pipelines.
"""
import os
from pathlib import Path
from typing import List

# ============================================================================
# FILE PATHS
# ============================================================================
PROJECT_ROOT = Path(__file__).parent.parent
RAW_DATA_PATH = Path(
    os.getenv('LOAN_RATE_DATA_PATH', PROJECT_ROOT / "data" / "raw" / "loans_full_schema.csv")
)
PROCESSED_DATA_PATH = PROJECT_ROOT / "data" / "processed" / "loans_filtered.parquet"

# Model paths
MODELS_DIR = PROJECT_ROOT / "models"
FINAL_MODEL_PATH = MODELS_DIR / "lasso_final.joblib"

# MLflow tracking
MLFLOW_TRACKING_URI = os.getenv('MLFLOW_TRACKING_URI', str(PROJECT_ROOT / "mlruns"))
MLFLOW_EXPERIMENT_NAME = os.getenv('MLFLOW_EXPERIMENT_NAME', 'loan-interest-rate-lasso')

# ============================================================================
# TARGET DEFINITION
# ============================================================================
TARGET_COLUMN = "interest_rate"

# ============================================================================
# ROW FILTER
# ============================================================================
# Joint applications carry a second set of income/DTI fields; the analysis
# is restricted to individual applicants.
FILTER_COLUMN = "application_type"
FILTER_VALUES = ["individual"]

# ============================================================================
# EXCLUDED COLUMNS - DROP AFTER FILTERING
# ============================================================================
EXCLUDE_COLUMNS: List[str] = [
    # Identifier-like / high-cardinality free text
    "emp_title",
    "state",

    # Derived from the interest rate itself (leakage)
    "grade",
    "sub_grade",
    "installment",

    # Post-origination outcome and payment fields (leakage)
    "issue_month",
    "loan_status",
    "balance",
    "paid_total",
    "paid_principal",
    "paid_interest",
    "paid_late_fees",

    # Constant after the row filter
    "application_type",
]

# ============================================================================
# PREPROCESSING RECIPE
# ============================================================================
# Level assigned to categories never seen during fitting
NOVEL_LEVEL = "new"

# Near-zero-variance thresholds (most common / second most common value ratio,
# and percentage of distinct values)
NZV_FREQ_CUT = 95 / 5
NZV_UNIQUE_CUT = 10

# ============================================================================
# TRAINING CONFIGURATION
# ============================================================================
RANDOM_STATE = 123
TRAIN_PROP = 0.8
CV_FOLDS = 5
STRATA_BINS = 4  # quantile bins used to stratify a numeric target

# Lasso: elastic net with pure L1 mixing
MIXTURE = 1.0
MAX_ITER = 10_000
PENALTY_GRID: List[float] = [1e-6, 10 ** -4.5, 1e-3, 10 ** -1.5, 1e-1]

TUNING_METRIC = "rmse"
TOP_N_FEATURES = 15

# Workers for fold-level parallelism during tuning (1 = sequential)
N_JOBS = int(os.getenv('LOAN_RATE_N_JOBS', '1'))
