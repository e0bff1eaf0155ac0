"""
Inference module for the loan interest-rate lasso.

Provides RatePredictor for scoring new loan rows with a persisted final
workflow. The recipe parameters stored in the workflow were learned from
the training partition and are applied as-is; nothing is refit here.
"""
import logging
from typing import Optional

import numpy as np
import pandas as pd

from loan_rate import config
from loan_rate.training_pipeline.model import load_model

logger = logging.getLogger(__name__)


class RatePredictor:
    """
    Interest-rate predictor backed by a saved recipe + lasso workflow.

    Attributes:
        workflow: Fitted sklearn Pipeline.
        feature_names: Predictor names after preprocessing, in model order.

    Example:
        >>> predictor = RatePredictor()
        >>> predictor.predict(new_loans_df)
        array([11.98, 7.35])
    """

    def __init__(self, model_path: Optional[str] = None):
        """
        Initialize predictor by loading the final workflow.

        Args:
            model_path: Path to saved workflow. If None, uses config.FINAL_MODEL_PATH.

        Raises:
            FileNotFoundError: If the model file doesn't exist.
        """
        if model_path is None:
            model_path = config.FINAL_MODEL_PATH

        logger.info("Initializing RatePredictor...")

        self.workflow = load_model(model_path)
        self.feature_names = list(self.workflow[:-1].get_feature_names_out())

        logger.info(f"✓ RatePredictor ready ({len(self.feature_names)} model features)")

    def predict(self, data: pd.DataFrame) -> np.ndarray:
        """
        Predict interest rates for raw loan rows.

        Args:
            data: DataFrame with (at least) the predictor columns seen in training.

        Returns:
            Array of predicted interest rates.

        Raises:
            KeyError: If required predictor columns are missing.
        """
        return self.workflow.predict(data)

    def predict_frame(self, data: pd.DataFrame) -> pd.DataFrame:
        """Return a copy of data with a predicted_interest_rate column."""
        result = data.copy()
        result['predicted_interest_rate'] = self.predict(data)
        return result
