"""Base forecaster class for all demand forecasting models"""

from abc import ABC, abstractmethod
import numpy as np
from typing import Dict, Sequence
from rakeplan.utils.logging_config import get_logger


logger = get_logger(__name__)


class BaseForecaster(ABC):
    """
    Abstract base class for all forecasting models

    Forecasters work on a plain numeric demand series (oldest first).
    All forecasters must implement:
    - fit(): Store / learn from the historical series
    - predict(): Forecast the value n periods beyond the series
    """

    def __init__(self, model_name: str):
        """
        Initialize forecaster

        Args:
            model_name: Name of the model (for logging and reporting)
        """
        self.model_name = model_name
        self.series = np.array([], dtype=float)
        self.is_fitted = False
        self.validation_metrics = {}

    def fit(self, series: Sequence[float]) -> 'BaseForecaster':
        """
        Fit the model on a historical series

        Args:
            series: Historical values, oldest first

        Returns:
            Self (for method chaining)
        """
        self.series = np.asarray(series, dtype=float)
        self.is_fitted = True

        logger.debug(f"Fitted {self.model_name} on {len(self.series)} observations")

        return self

    @abstractmethod
    def predict(self, periods_ahead: int = 1) -> float:
        """
        Forecast the value periods_ahead steps after the fitted series

        Args:
            periods_ahead: Forecast horizon (1 = next period)

        Returns:
            Forecast value
        """
        pass

    def validate(self, holdout: Sequence[float]) -> Dict[str, float]:
        """
        Validate model on holdout data following the fitted series

        Args:
            holdout: Actual values for the periods after the fitted series

        Returns:
            Dictionary of validation metrics
        """
        if not self.is_fitted:
            raise ValueError("Model must be fitted before validation")

        actuals = np.asarray(holdout, dtype=float)
        predicted = np.array([self.predict(i + 1) for i in range(len(actuals))])

        metrics = self._calculate_metrics(actuals, predicted)
        self.validation_metrics = metrics

        logger.info(f"Validated {self.model_name} on {len(actuals)} periods "
                    f"(MAPE: {metrics['mape']:.2f}%, MAE: {metrics['mae']:,.2f})")

        return metrics

    def _calculate_metrics(
        self,
        actuals: np.ndarray,
        predicted: np.ndarray
    ) -> Dict[str, float]:
        """
        Calculate forecast accuracy metrics

        Args:
            actuals: Actual values
            predicted: Predicted values

        Returns:
            Dictionary with metrics
        """
        return calculate_metrics(actuals, predicted)

    def get_metadata(self) -> Dict:
        """
        Get model metadata

        Returns:
            Dictionary with model information
        """
        return {
            'model_name': self.model_name,
            'is_fitted': self.is_fitted,
            'observations': int(len(self.series)),
            'validation_metrics': self.validation_metrics
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model_name='{self.model_name}', is_fitted={self.is_fitted})"


def calculate_metrics(actuals: np.ndarray, predicted: np.ndarray) -> Dict[str, float]:
    """
    Forecast accuracy metrics (MAPE, MAE, RMSE, R²)

    NaN pairs are dropped; MAPE ignores periods whose actual value is 0.
    """
    actuals = np.asarray(actuals, dtype=float)
    predicted = np.asarray(predicted, dtype=float)

    mask = ~(np.isnan(actuals) | np.isnan(predicted))
    actuals = actuals[mask]
    predicted = predicted[mask]

    if len(actuals) == 0:
        return {
            'mape': np.nan,
            'mae': np.nan,
            'rmse': np.nan,
            'r2': np.nan
        }

    # MAPE (Mean Absolute Percentage Error)
    nonzero = actuals != 0
    if nonzero.any():
        mape = np.mean(np.abs((actuals[nonzero] - predicted[nonzero]) / actuals[nonzero])) * 100
    else:
        mape = np.nan

    mae = np.mean(np.abs(actuals - predicted))
    rmse = np.sqrt(np.mean((actuals - predicted) ** 2))

    # R² (Coefficient of Determination)
    ss_res = np.sum((actuals - predicted) ** 2)
    ss_tot = np.sum((actuals - np.mean(actuals)) ** 2)
    r2 = 1 - (ss_res / ss_tot) if ss_tot > 0 else np.nan

    return {
        'mape': float(mape),
        'mae': float(mae),
        'rmse': float(rmse),
        'r2': float(r2)
    }
