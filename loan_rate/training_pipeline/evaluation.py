"""
Model evaluation module for the loan interest-rate lasso.

Provides:
- Regression metrics (RMSE, R-squared, MAE)
- The final fit on the full training partition scored on the test partition
- Coefficient-based variable importance at the selected penalty
- MLflow logging of the finished run
"""
import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error
from sklearn.pipeline import Pipeline

from loan_rate import config
from loan_rate.training_pipeline.split import DataSplit

logger = logging.getLogger(__name__)


def rmse(y_true, y_pred) -> float:
    """Root mean squared error."""
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def rsq(y_true, y_pred) -> float:
    """
    Squared Pearson correlation between observed and predicted values.

    Returns NaN when either side is constant (correlation undefined).
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if np.std(y_true) == 0 or np.std(y_pred) == 0:
        return float('nan')
    return float(np.corrcoef(y_true, y_pred)[0, 1] ** 2)


def mae(y_true, y_pred) -> float:
    """Mean absolute error."""
    return float(mean_absolute_error(y_true, y_pred))


# name -> (function, lower_is_better)
METRICS: Dict[str, tuple] = {
    'rmse': (rmse, True),
    'rsq': (rsq, False),
    'mae': (mae, True),
}


def get_metric(name: str) -> Callable:
    if name not in METRICS:
        raise ValueError(f"Unknown metric '{name}'. Choose from {list(METRICS)}")
    return METRICS[name][0]


def lower_is_better(name: str) -> bool:
    get_metric(name)
    return METRICS[name][1]


def compute_metrics(y_true, y_pred) -> Dict[str, float]:
    """Compute every registered metric."""
    return {name: fn(y_true, y_pred) for name, (fn, _) in METRICS.items()}


@dataclass
class FinalFit:
    """Workflow fitted on the full training partition, with its test-set scores."""

    workflow: Pipeline
    predictions: pd.DataFrame
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def test_rmse(self) -> float:
        return self.metrics['rmse']


def last_fit(workflow: Pipeline, split: DataSplit) -> FinalFit:
    """
    Fit the finalized workflow once on the training rows and score the test rows.

    The recipe parameters are learned from the training partition only; the
    test partition is transformed with those parameters.

    Args:
        workflow: Finalized, unfitted pipeline.
        split: Train/test split.

    Returns:
        FinalFit with the fitted workflow, test predictions and metrics.

    Example:
        >>> final = last_fit(finalize_workflow(workflow, best_penalty), split)
        >>> print(f"Test RMSE: {final.test_rmse:.3f}")
        Test RMSE: 3.912
    """
    logger.info(f"Fitting final workflow on {len(split.train):,} training rows...")

    workflow.fit(split.X_train, split.y_train)

    y_pred = workflow.predict(split.X_test)
    predictions = pd.DataFrame(
        {'actual': split.y_test.to_numpy(), 'predicted': y_pred},
        index=split.test.index
    )

    metrics = compute_metrics(predictions['actual'], predictions['predicted'])

    logger.info("Test metrics:")
    for metric, value in metrics.items():
        logger.info(f"  {metric:10s}: {value:.4f}")

    return FinalFit(workflow=workflow, predictions=predictions, metrics=metrics)


def get_feature_importance(workflow: Pipeline, top_n: Optional[int] = None) -> pd.DataFrame:
    """
    Rank predictors by the magnitude of their lasso coefficient.

    Predictors are z-scored by the recipe, so absolute coefficients are
    comparable across features.

    Args:
        workflow: Fitted pipeline whose last step is the linear model.
        top_n: Number of features to return. If None, uses config.TOP_N_FEATURES.

    Returns:
        DataFrame with columns feature, importance, sign (POS / NEG / ZERO),
        sorted by importance descending.

    Example:
        >>> importance_df = get_feature_importance(final.workflow)
        >>> print(importance_df.head(3))
    """
    if top_n is None:
        top_n = config.TOP_N_FEATURES
    if top_n < 1:
        raise ValueError(f"top_n must be positive, got {top_n}")

    model = workflow[-1]
    feature_names = workflow[:-1].get_feature_names_out()
    coefs = np.ravel(model.coef_)

    importance_df = pd.DataFrame({
        'feature': feature_names,
        'coefficient': coefs,
        'importance': np.abs(coefs),
        'sign': np.select([coefs > 0, coefs < 0], ['POS', 'NEG'], default='ZERO')
    }).sort_values(
        ['importance', 'feature'], ascending=[False, True]
    ).head(top_n).reset_index(drop=True)

    n_zero = int((coefs == 0).sum())
    logger.info(
        f"Top {len(importance_df)} feature importances extracted "
        f"({n_zero} of {len(coefs)} coefficients are exactly zero)"
    )

    return importance_df[['feature', 'importance', 'sign']]


def log_run_to_mlflow(
    final_fit: FinalFit,
    tuning_summary: pd.DataFrame,
    importance_df: pd.DataFrame,
    params: Dict[str, Any],
    cv_metric: float,
    run_name: Optional[str] = None
) -> str:
    """
    Log the finished run to MLflow.

    Logs params, the cross-validated RMSE of the selected penalty, test
    metrics, the tuning and importance tables as CSV artifacts, and the
    fitted workflow.

    Args:
        final_fit: Result of last_fit().
        tuning_summary: Per-penalty aggregated metrics.
        importance_df: Output of get_feature_importance().
        params: Run parameters (penalty, mixture, seed, folds, ...).
        cv_metric: Mean cross-validated RMSE of the selected penalty.
        run_name: Optional name for the MLflow run.

    Returns:
        MLflow run id.
    """
    import mlflow
    import mlflow.sklearn

    mlflow.set_tracking_uri(config.MLFLOW_TRACKING_URI)
    mlflow.set_experiment(config.MLFLOW_EXPERIMENT_NAME)

    with mlflow.start_run(run_name=run_name) as run:
        mlflow.log_params(params)
        mlflow.log_metric("cv_rmse", cv_metric)

        for metric_name, metric_value in final_fit.metrics.items():
            mlflow.log_metric(f"test_{metric_name}", metric_value)

        with tempfile.TemporaryDirectory() as tmp_dir:
            tuning_path = Path(tmp_dir) / "tuning_summary.csv"
            importance_path = Path(tmp_dir) / "feature_importance.csv"
            tuning_summary.to_csv(tuning_path, index=False)
            importance_df.to_csv(importance_path, index=False)
            mlflow.log_artifact(str(tuning_path))
            mlflow.log_artifact(str(importance_path))

        mlflow.sklearn.log_model(final_fit.workflow, "model")

        logger.info(f"✓ Metrics and model logged to MLflow (run {run.info.run_id})")

    return run.info.run_id
