import abc

import numpy as np
import pandas as pd

from bagkit.data import Dataset


class Predictor(abc.ABC):
    """Base class that represents a fitted model ``f(X) = y`` that can predict."""

    @abc.abstractmethod
    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Predicts the outcome for the inputs.

        Args:
            X (pd.DataFrame): the feature rows.

        Returns:
            np.ndarray: one prediction per row of ``X``.
        """


class Learner(abc.ABC):
    """Base class that represents a model-fitting procedure.

    A learner must not keep the result of a fit on itself. Each call to ``fit`` returns an
    independent ``Predictor`` so that the same learner can be used by concurrent replicates.
    """

    @abc.abstractmethod
    def fit(self, dataset: Dataset) -> Predictor:
        """Fits a model on a labeled dataset.

        Args:
            dataset (Dataset): the training observations, with an outcome column.

        Returns:
            Predictor: the fitted model.
        """


class ConstantPredictor(Predictor):
    """Predicts the same value for every row."""

    def __init__(self, value: float):
        self.value = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value})"

    def predict(self, X):
        return np.full(len(X), self.value, dtype=float)


class MeanLearner(Learner):
    """Learns the mean outcome of the training data and predicts it for every row."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def fit(self, dataset: Dataset) -> ConstantPredictor:
        return ConstantPredictor(float(np.mean(dataset.y)))
