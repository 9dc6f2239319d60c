from sklearn.base import BaseEstimator, clone

from bagkit.data import Dataset
from bagkit.learner import Learner, Predictor


class SklearnPredictor(Predictor):
    """Represents a fitted Scikit-Learn model that can only predict."""

    def __init__(self, model: BaseEstimator):
        self.model = model

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.model!r})"

    def predict(self, X):
        return self.model.predict(X)


class SklearnLearner(Learner):
    """Fits a fresh clone of a Scikit-Learn regressor on each dataset.

    Args:
        estimator (BaseEstimator): the unfitted estimator or pipeline used as a template. It is
            never fitted itself.
    """

    def __init__(self, estimator: BaseEstimator):
        self.estimator = estimator

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.estimator!r})"

    def fit(self, dataset: Dataset) -> SklearnPredictor:
        model = clone(self.estimator)
        model.fit(dataset.features, dataset.y)
        return SklearnPredictor(model)
