from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from bagkit.ensemble.aggregator import Aggregator
from bagkit.evaluator import Evaluator
from bagkit.learner import Predictor


def predict_with_predictor(index: int, predictor: Predictor, X: pd.DataFrame) -> np.ndarray:
    return np.asarray(predictor.predict(X), dtype=float)


def parse_evaluator(evaluator: str | Dict | None, default: str = "serial"):
    """Returns the ``(method, method_kwargs)`` of an evaluator argument.

    Raises:
        ValueError: when the type of the ``evaluator`` argument is not ``str`` or ``dict``.
    """
    if evaluator is None:
        return default, {}
    elif isinstance(evaluator, str):
        return evaluator, {}
    elif isinstance(evaluator, dict):
        return evaluator.get("method", default), dict(evaluator.get("method_kwargs", {}))
    else:
        raise ValueError(f"evaluator must be either None or str or dict, got {type(evaluator)}")


class EnsemblePredictor(Predictor):
    """A predictor aggregating the predictions of fitted member predictors.

    ``BootstrapEnsemble.fit`` returns one with a member per replicate.

    Args:
        predictors (Sequence[Predictor]): the fitted members.

        aggregator (Aggregator): fuses the member predictions into one.

        weights (Sequence[float], optional): one weight per member. Defaults to ``None``.

        evaluator (str | Dict, optional): how the members predict, as for
            ``BootstrapEnsemble``. Defaults to ``None`` which is ``"serial"``.

    Raises:
        ValueError: when the type of the ``evaluator`` argument is not ``str`` or ``dict``.
    """

    def __init__(
        self,
        predictors: Sequence[Predictor],
        aggregator: Aggregator,
        weights: Sequence[float] = None,
        evaluator: str | Dict = None,
    ):
        self.predictors = predictors
        self.aggregator = aggregator
        self.weights = weights
        self.evaluator_method, self.evaluator_method_kwargs = parse_evaluator(evaluator)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_predictors={len(self.predictors)}, "
            f"aggregator={type(self.aggregator).__name__})"
        )

    def predict(self, X: pd.DataFrame):
        """Aggregated prediction of the members on ``X``.

        Returns:
            np.ndarray | dict: the output of the aggregator.
        """
        y_predictors = self.predictions_from_predictors(X, self.predictors)
        return self.aggregator.aggregate(y_predictors, weights=self.weights)

    def predictions_from_predictors(
        self, X: pd.DataFrame, predictors: Sequence[Predictor]
    ) -> List[np.ndarray]:
        """Predictions of each of ``predictors`` on ``X``, in the order of ``predictors``.

        Raises:
            RuntimeError: naming the first predictor that failed to predict.
        """
        evaluator = Evaluator.create(
            predict_with_predictor,
            method=self.evaluator_method,
            method_kwargs=self.evaluator_method_kwargs,
        )
        with evaluator:
            jobs = evaluator.map(range(len(predictors)), predictors, X=X)

        failed = [job for job in jobs if job.failed]
        if failed:
            i = failed[0].id
            raise RuntimeError(
                f"Failed to call .predict(X) with predictors[{i}]: {predictors[i]}"
            ) from failed[0].exception

        return [job.output for job in jobs]
