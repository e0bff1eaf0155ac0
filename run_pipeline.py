"""
Pipeline orchestrator for the loan interest-rate lasso analysis.

Executes the complete analysis: preprocessing → split → penalty tuning →
final fit → test evaluation, and prints the top features and the test RMSE.

Usage:
    python run_pipeline.py                          # Use config.RAW_DATA_PATH
    python run_pipeline.py --data loans.csv         # Explicit CSV
    python run_pipeline.py --synthetic 1000         # Synthetic demo data
    python run_pipeline.py --save-model --mlflow    # Persist and track the run
"""
import argparse
import logging
import sys

from loan_rate import config
from loan_rate.training_pipeline.train_lasso import run_lasso_analysis
from loan_rate.utils.synthetic import generate_loan_data

logger = logging.getLogger(__name__)


def run_full_pipeline(
    data_path: str = None,
    synthetic_rows: int = None,
    train_prop: float = None,
    n_folds: int = None,
    seed: int = None,
    n_jobs: int = None,
    top_n: int = None,
    save_model: bool = False,
    log_mlflow: bool = False
) -> None:
    """
    Execute the analysis and report the results.

    Args:
        data_path: Raw CSV path (None = config.RAW_DATA_PATH).
        synthetic_rows: If set, generate this many synthetic rows instead of reading a file.
        train_prop: Training fraction.
        n_folds: Number of CV folds.
        seed: Random seed.
        n_jobs: Fold-level workers.
        top_n: Rows in the importance table.
        save_model: Save the final workflow.
        log_mlflow: Log the run to MLflow.
    """
    df = None
    if synthetic_rows is not None:
        if synthetic_rows < 1:
            logger.error(f"❌ --synthetic needs at least 1 row, got {synthetic_rows}")
            sys.exit(1)
        logger.info(f"Generating {synthetic_rows:,} synthetic loan rows")
        df = generate_loan_data(n_samples=synthetic_rows, random_state=seed)

    try:
        result = run_lasso_analysis(
            df=df,
            file_path=data_path,
            train_prop=train_prop,
            n_folds=n_folds,
            random_state=seed,
            n_jobs=n_jobs,
            top_n=top_n,
            save_model_flag=save_model,
            log_mlflow=log_mlflow
        )
    except Exception as e:
        logger.error(f"❌ Analysis failed: {e}")
        sys.exit(1)

    logger.info("\nVariable importance (top features):")
    for row in result.importance.itertuples():
        logger.info(f"  {row.feature:40s} {row.importance:8.4f}  {row.sign}")

    logger.info(f"\nSelected penalty: {result.best_penalty:.3g}")
    logger.info(f"Test RMSE: {result.test_rmse:.4f}")

    if save_model:
        logger.info(f"Model saved to: {config.FINAL_MODEL_PATH}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run the loan interest-rate lasso analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyse the configured CSV
  python run_pipeline.py

  # Quick demo on synthetic data
  python run_pipeline.py --synthetic 1000

  # Save the final model and log to MLflow
  python run_pipeline.py --data loans_full_schema.csv --save-model --mlflow
        """
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        '--data',
        type=str,
        default=None,
        help=f'Raw CSV path (default: {config.RAW_DATA_PATH})'
    )
    source.add_argument(
        '--synthetic',
        type=int,
        default=None,
        metavar='N',
        help='Generate N synthetic rows instead of reading a file'
    )
    parser.add_argument(
        '--train-prop',
        type=float,
        default=None,
        help=f'Training fraction (default: {config.TRAIN_PROP})'
    )
    parser.add_argument(
        '--folds',
        type=int,
        default=None,
        help=f'Number of CV folds (default: {config.CV_FOLDS})'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help=f'Random seed (default: {config.RANDOM_STATE})'
    )
    parser.add_argument(
        '--n-jobs',
        type=int,
        default=None,
        help=f'Parallel workers across folds (default: {config.N_JOBS})'
    )
    parser.add_argument(
        '--top-n',
        type=int,
        default=None,
        help=f'Features in the importance table (default: {config.TOP_N_FEATURES})'
    )
    parser.add_argument(
        '--save-model',
        action='store_true',
        help='Save the final workflow with joblib'
    )
    parser.add_argument(
        '--mlflow',
        action='store_true',
        help='Log the run to MLflow'
    )

    args = parser.parse_args()

    run_full_pipeline(
        data_path=args.data,
        synthetic_rows=args.synthetic,
        train_prop=args.train_prop,
        n_folds=args.folds,
        seed=args.seed,
        n_jobs=args.n_jobs,
        top_n=args.top_n,
        save_model=args.save_model,
        log_mlflow=args.mlflow
    )


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    main()
