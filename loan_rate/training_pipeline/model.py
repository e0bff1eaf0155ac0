"""
Model definition for the loan interest-rate lasso.

The model is an elastic net with pure L1 mixing (lasso). scikit-learn's
ElasticNet minimises the same objective as glmnet, so the penalty maps
directly onto ``alpha`` and the mixture onto ``l1_ratio``.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import joblib
import numpy as np
from sklearn.base import clone
from sklearn.linear_model import ElasticNet
from sklearn.pipeline import Pipeline

from loan_rate import config
from loan_rate.feature_pipeline.recipe import build_recipe
from loan_rate.feature_pipeline.roles import ColumnRoles

logger = logging.getLogger(__name__)


@dataclass
class LassoSpec:
    """
    Lasso model specification.

    Attributes:
        penalty: Regularization strength (>= 0). Larger values zero out more
            coefficients; 0 approaches ordinary least squares.
        mixture: L1 share of the penalty (1.0 = lasso, 0.0 = ridge).
        max_iter: Coordinate descent iteration cap. If None, uses config.MAX_ITER.
    """

    penalty: float = 0.0
    mixture: float = config.MIXTURE
    max_iter: Optional[int] = None

    def validate(self) -> None:
        if self.penalty < 0:
            raise ValueError(f"penalty must be >= 0, got {self.penalty}")
        if not 0 <= self.mixture <= 1:
            raise ValueError(f"mixture must be between 0 and 1, got {self.mixture}")

    def build(self) -> ElasticNet:
        self.validate()
        return ElasticNet(
            alpha=self.penalty,
            l1_ratio=self.mixture,
            max_iter=self.max_iter or config.MAX_ITER
        )


def penalty_grid(levels: int = 5, low: float = -10.0, high: float = 0.0) -> List[float]:
    """
    Regular penalty grid on the log10 scale.

    Args:
        levels: Number of grid points.
        low: log10 of the smallest penalty.
        high: log10 of the largest penalty.

    Returns:
        Increasing list of penalties.

    Example:
        >>> penalty_grid(levels=3, low=-4, high=0)
        [0.0001, 0.01, 1.0]
    """
    if levels < 1:
        raise ValueError(f"levels must be positive, got {levels}")
    if low > high:
        raise ValueError(f"low ({low}) must not exceed high ({high})")

    return [float(p) for p in np.logspace(low, high, levels)]


def validate_penalty_grid(grid: Sequence[float]) -> List[float]:
    """Return the grid as a sorted list of floats; reject empty, negative or duplicate grids."""
    values = [float(p) for p in grid]

    if not values:
        raise ValueError("Penalty grid is empty")
    if any(p < 0 for p in values):
        raise ValueError(f"Penalty grid contains negative values: {values}")
    if len(set(values)) != len(values):
        raise ValueError(f"Penalty grid contains duplicates: {values}")

    return sorted(values)


def build_workflow(roles: ColumnRoles, spec: Optional[LassoSpec] = None) -> Pipeline:
    """
    Combine the preprocessing recipe and the lasso into one pipeline.

    Args:
        roles: Column roles from infer_column_roles().
        spec: Model specification. If None, LassoSpec() with a zero penalty
            (the tuner binds each grid value).

    Returns:
        Unfitted sklearn Pipeline whose last step is named 'model'.
    """
    if spec is None:
        spec = LassoSpec()

    steps = build_recipe(roles) + [('model', spec.build())]
    return Pipeline(steps)


def finalize_workflow(workflow: Pipeline, penalty: float) -> Pipeline:
    """
    Bind a penalty into an unfitted copy of the workflow.

    Args:
        workflow: Template workflow (fitted or not; it is not modified).
        penalty: Selected penalty.

    Returns:
        New unfitted Pipeline with model__alpha = penalty.
    """
    LassoSpec(penalty=penalty).validate()

    finalized = clone(workflow)
    finalized.set_params(model__alpha=penalty)

    logger.info(f"Workflow finalized with penalty = {penalty:.3g}")

    return finalized


def save_model(workflow: Pipeline, model_path=None) -> None:
    """
    Save fitted workflow to disk.

    Args:
        workflow: Fitted pipeline (recipe + model).
        model_path: Path to save model. If None, uses config.FINAL_MODEL_PATH.
    """
    if model_path is None:
        model_path = config.FINAL_MODEL_PATH

    model_path = Path(model_path)
    model_path.parent.mkdir(parents=True, exist_ok=True)

    joblib.dump(workflow, model_path)
    logger.info(f"✓ Model saved to: {model_path}")


def load_model(model_path=None) -> Pipeline:
    """
    Load a fitted workflow from disk.

    Raises:
        FileNotFoundError: If the model file doesn't exist.
    """
    if model_path is None:
        model_path = config.FINAL_MODEL_PATH

    try:
        workflow = joblib.load(model_path)
    except FileNotFoundError:
        logger.error(f"Model file not found: {model_path}")
        raise

    logger.info(f"✓ Model loaded from: {model_path}")

    return workflow
