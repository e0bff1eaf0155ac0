"""
Penalty tuning module for the loan interest-rate lasso.

Runs a grid search over the lasso penalty with k-fold cross-validation. An
Optuna study with a GridSampler visits every penalty exactly once; each trial
fits the full workflow (recipe + model) on every fold's training rows and
scores the fold's held-out rows.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import optuna
import pandas as pd
from joblib import Parallel, delayed
from optuna.samplers import GridSampler
from sklearn.base import clone
from sklearn.pipeline import Pipeline

from loan_rate import config
from loan_rate.training_pipeline.evaluation import compute_metrics, lower_is_better
from loan_rate.training_pipeline.model import validate_penalty_grid
from loan_rate.training_pipeline.split import Fold

logger = logging.getLogger(__name__)


@dataclass
class TuningResult:
    """
    Cross-validation results of a penalty grid search.

    Attributes:
        fold_metrics: One row per (penalty, fold) with every metric, sorted
            by penalty then fold.
        study: The Optuna study that drove the search.
    """

    fold_metrics: pd.DataFrame
    study: Optional[optuna.Study] = None

    @property
    def penalties(self) -> List[float]:
        return sorted(self.fold_metrics['penalty'].unique().tolist())

    def summary(self, metric: str = config.TUNING_METRIC) -> pd.DataFrame:
        """
        Aggregate fold metrics per penalty.

        Returns:
            DataFrame with penalty, metric, mean, std_err, n sorted by penalty.
        """
        lower_is_better(metric)

        grouped = self.fold_metrics.groupby('penalty')[metric]
        summary = pd.DataFrame({
            'mean': grouped.mean(),
            'std_err': grouped.std(ddof=1) / np.sqrt(grouped.count()),
            'n': grouped.count(),
        }).reset_index()
        summary.insert(1, 'metric', metric)

        return summary.sort_values('penalty').reset_index(drop=True)


def fit_and_score_fold(
    workflow: Pipeline,
    X: pd.DataFrame,
    y: pd.Series,
    fold: Fold,
    penalty: float
) -> Dict[str, float]:
    """
    Fit the workflow on one fold's training rows and score its held-out rows.

    The recipe is refit inside the fold, so validation rows never influence
    the preprocessing parameters.

    Returns:
        Record with penalty, fold and every registered metric.
    """
    candidate = clone(workflow).set_params(model__alpha=penalty)

    candidate.fit(X.iloc[fold.train_index], y.iloc[fold.train_index])
    y_pred = candidate.predict(X.iloc[fold.validation_index])

    record = {'penalty': penalty, 'fold': fold.fold_id}
    record.update(compute_metrics(y.iloc[fold.validation_index], y_pred))

    return record


def run_grid_search(
    workflow: Pipeline,
    X: pd.DataFrame,
    y: pd.Series,
    folds: Sequence[Fold],
    grid: Optional[Sequence[float]] = None,
    n_jobs: Optional[int] = None,
    random_state: Optional[int] = None,
    metric: str = config.TUNING_METRIC
) -> TuningResult:
    """
    Evaluate every penalty in the grid on every fold.

    Args:
        workflow: Unfitted pipeline whose last step is named 'model'.
        X: Training predictors.
        y: Training target.
        folds: Folds from make_folds().
        grid: Penalties to evaluate. If None, uses config.PENALTY_GRID.
        n_jobs: Parallel workers across folds. If None, uses config.N_JOBS.
        random_state: Seed for the grid visitation order. If None, uses config.RANDOM_STATE.
        metric: Metric minimised (or maximised) by the study objective.

    Returns:
        TuningResult with len(grid) * len(folds) fold records.

    Raises:
        ValueError: On an invalid grid, no folds, or an unknown metric.

    Example:
        >>> result = run_grid_search(workflow, split.X_train, split.y_train, folds)
        >>> print(result.summary())
    """
    if grid is None:
        grid = config.PENALTY_GRID
    if n_jobs is None:
        n_jobs = config.N_JOBS
    if random_state is None:
        random_state = config.RANDOM_STATE

    grid = validate_penalty_grid(grid)
    if not folds:
        raise ValueError("At least one fold is required")
    minimize = lower_is_better(metric)

    logger.info("=" * 80)
    logger.info("LASSO PENALTY GRID SEARCH")
    logger.info("=" * 80)
    logger.info(f"Penalties: {[f'{p:.3g}' for p in grid]}")
    logger.info(f"Folds: {len(folds)}")
    logger.info(f"Objective: {'Minimize' if minimize else 'Maximize'} {metric}")

    records: List[Dict[str, float]] = []

    def objective(trial: optuna.Trial) -> float:
        penalty = trial.suggest_categorical('penalty', grid)
        fold_records = Parallel(n_jobs=n_jobs)(
            delayed(fit_and_score_fold)(workflow, X, y, fold, penalty)
            for fold in folds
        )
        records.extend(fold_records)
        return float(np.mean([r[metric] for r in fold_records]))

    study = optuna.create_study(
        direction='minimize' if minimize else 'maximize',
        sampler=GridSampler({'penalty': grid}, seed=random_state)
    )

    logger.info("\nRunning grid search...")
    study.optimize(objective, n_trials=len(grid), show_progress_bar=False)

    fold_metrics = pd.DataFrame(records).sort_values(['penalty', 'fold']).reset_index(drop=True)
    result = TuningResult(fold_metrics=fold_metrics, study=study)

    logger.info("\n✓ Grid search complete")
    for row in result.summary(metric).itertuples():
        logger.info(f"  penalty {row.penalty:<12.3g} {metric} {row.mean:.4f} (± {row.std_err:.4f})")

    return result


def _best_rows(summary: pd.DataFrame, minimize: bool) -> pd.DataFrame:
    best_value = summary['mean'].min() if minimize else summary['mean'].max()
    return summary[summary['mean'] == best_value]


def select_best(result: TuningResult, metric: str = config.TUNING_METRIC) -> float:
    """
    Select the penalty with the best aggregated metric.

    Ties on the aggregated metric go to the largest penalty, the sparsest
    of the equally good models.

    Args:
        result: Output of run_grid_search().
        metric: Metric to rank by.

    Returns:
        Selected penalty.

    Example:
        >>> best_penalty = select_best(result)
    """
    summary = result.summary(metric)
    best = _best_rows(summary, lower_is_better(metric))
    penalty = float(best['penalty'].max())

    logger.info(
        f"Best penalty: {penalty:.3g} "
        f"(mean {metric} = {best['mean'].iloc[0]:.4f}, {len(best)} tied)"
    )

    return penalty


def select_by_one_std_err(result: TuningResult, metric: str = config.TUNING_METRIC) -> float:
    """
    Select the largest penalty within one standard error of the best.

    Args:
        result: Output of run_grid_search().
        metric: Metric to rank by.

    Returns:
        Selected penalty (never smaller than select_best()).
    """
    summary = result.summary(metric)
    minimize = lower_is_better(metric)
    best = _best_rows(summary, minimize).sort_values('penalty').iloc[-1]

    std_err = 0.0 if np.isnan(best['std_err']) else best['std_err']
    if minimize:
        within = summary[summary['mean'] <= best['mean'] + std_err]
    else:
        within = summary[summary['mean'] >= best['mean'] - std_err]

    penalty = float(within['penalty'].max())

    logger.info(f"One-standard-error penalty: {penalty:.3g} (best {best['penalty']:.3g})")

    return penalty
