"""
End-to-end training module for the loan interest-rate lasso.

Runs the full workflow: preprocess, split, build folds, tune the penalty,
finalize, fit on the training partition, and evaluate on the test partition.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

from loan_rate import config
from loan_rate.feature_pipeline.roles import ColumnRoles
from loan_rate.main import run_preprocessing_pipeline
from loan_rate.training_pipeline.evaluation import (
    FinalFit,
    get_feature_importance,
    last_fit,
    log_run_to_mlflow
)
from loan_rate.training_pipeline.model import (
    LassoSpec,
    build_workflow,
    finalize_workflow,
    save_model
)
from loan_rate.training_pipeline.split import DataSplit, Fold, make_folds, split_train_test
from loan_rate.training_pipeline.tune_grid import TuningResult, run_grid_search, select_best

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything produced by one run of the analysis."""

    roles: ColumnRoles
    split: DataSplit
    folds: List[Fold]
    tuning: TuningResult
    best_penalty: float
    final_fit: FinalFit
    importance: pd.DataFrame

    @property
    def test_rmse(self) -> float:
        return self.final_fit.test_rmse


def run_lasso_analysis(
    df: Optional[pd.DataFrame] = None,
    file_path: Optional[str] = None,
    train_prop: Optional[float] = None,
    n_folds: Optional[int] = None,
    grid: Optional[Sequence[float]] = None,
    random_state: Optional[int] = None,
    n_jobs: Optional[int] = None,
    top_n: Optional[int] = None,
    save_model_flag: bool = False,
    log_mlflow: bool = False
) -> AnalysisResult:
    """
    Execute complete lasso analysis pipeline.

    Pipeline:
    1. Load and clean data, assign column roles
    2. Stratified train/test split
    3. Stratified k-fold resamples of the training partition
    4. Build recipe + lasso workflow
    5. Grid search the penalty
    6. Select and finalize the best penalty
    7. Fit on the training partition, evaluate on the test partition
    8. Save model / log to MLflow (optional)

    Args:
        df: Raw DataFrame. If None, loaded from file_path / config.RAW_DATA_PATH.
        file_path: Raw CSV path.
        train_prop: Training fraction. If None, uses config.TRAIN_PROP.
        n_folds: Number of CV folds. If None, uses config.CV_FOLDS.
        grid: Penalty grid. If None, uses config.PENALTY_GRID.
        random_state: Seed for split, folds and grid order. If None, uses config.RANDOM_STATE.
        n_jobs: Fold-level workers. If None, uses config.N_JOBS.
        top_n: Features in the importance table. If None, uses config.TOP_N_FEATURES.
        save_model_flag: If True, save the final workflow to config.FINAL_MODEL_PATH.
        log_mlflow: If True, log the run to MLflow.

    Returns:
        AnalysisResult.

    Example:
        >>> result = run_lasso_analysis(df=generate_loan_data(1000))
        >>> print(f"Test RMSE: {result.test_rmse:.3f}")
    """
    if random_state is None:
        random_state = config.RANDOM_STATE

    logger.info("=" * 80)
    logger.info("LASSO INTEREST-RATE ANALYSIS")
    logger.info("=" * 80)

    # Step 1: Preprocess
    logger.info("\n[1/8] Loading and cleaning data...")
    df_clean, roles = run_preprocessing_pipeline(file_path=file_path, df=df)

    # Step 2: Train/test split
    logger.info("\n[2/8] Splitting train/test...")
    split = split_train_test(
        df_clean,
        target=roles.target,
        train_prop=train_prop,
        random_state=random_state
    )

    # Step 3: Folds
    logger.info("\n[3/8] Creating cross-validation folds...")
    folds = make_folds(
        split.train,
        target=roles.target,
        n_folds=n_folds,
        random_state=random_state
    )

    # Step 4: Workflow
    logger.info("\n[4/8] Building recipe + lasso workflow...")
    spec = LassoSpec(mixture=config.MIXTURE)
    workflow = build_workflow(roles, spec)

    # Step 5: Tune
    logger.info("\n[5/8] Tuning penalty...")
    tuning = run_grid_search(
        workflow,
        split.X_train,
        split.y_train,
        folds,
        grid=grid,
        n_jobs=n_jobs,
        random_state=random_state
    )

    # Step 6: Select + finalize
    logger.info("\n[6/8] Selecting best penalty...")
    best_penalty = select_best(tuning)
    final_workflow = finalize_workflow(workflow, best_penalty)

    # Step 7: Final fit + evaluation
    logger.info("\n[7/8] Fitting final model and evaluating on test set...")
    final_fit = last_fit(final_workflow, split)
    importance = get_feature_importance(final_fit.workflow, top_n=top_n)

    # Step 8: Persist
    logger.info("\n[8/8] Saving artifacts...")
    if save_model_flag:
        save_model(final_fit.workflow)
    else:
        logger.info("Skipping model save (save_model_flag=False)")

    if log_mlflow:
        summary = tuning.summary()
        cv_rmse = float(summary.loc[summary['penalty'] == best_penalty, 'mean'].iloc[0])
        log_run_to_mlflow(
            final_fit,
            summary,
            importance,
            params={
                'penalty': best_penalty,
                'mixture': spec.mixture,
                'random_state': random_state,
                'n_folds': len(folds),
                'train_prop': split.train_prop,
            },
            cv_metric=cv_rmse,
            run_name="lasso_final_model"
        )
    else:
        logger.info("Skipping MLflow logging")

    logger.info("\n" + "=" * 80)
    logger.info("✓ LASSO ANALYSIS COMPLETE")
    logger.info("=" * 80)
    logger.info(f"Selected penalty: {best_penalty:.3g}")
    logger.info(f"Training rows: {len(split.train):,}")
    logger.info(f"Test rows: {len(split.test):,}")
    logger.info(f"Test RMSE: {final_fit.test_rmse:.4f}")

    return AnalysisResult(
        roles=roles,
        split=split,
        folds=folds,
        tuning=tuning,
        best_penalty=best_penalty,
        final_fit=final_fit,
        importance=importance
    )


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    run_lasso_analysis(save_model_flag=True)
