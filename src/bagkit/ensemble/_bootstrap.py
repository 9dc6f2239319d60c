import logging
import numbers
import time
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import r2_score

from bagkit.core.exceptions import InvalidArgumentError, ReplicateFailure
from bagkit.data import Dataset, as_features
from bagkit.ensemble._ensemble import EnsemblePredictor, parse_evaluator
from bagkit.ensemble._result import EnsembleResult
from bagkit.ensemble._sampling import bootstrap_indices, new_random_seed, out_of_bag_mask
from bagkit.ensemble.aggregator import MeanAggregator
from bagkit.evaluator import Evaluator, Job
from bagkit.learner import Learner, Predictor

logger = logging.getLogger(__name__)


def _predict(predictor: Predictor, X: pd.DataFrame) -> np.ndarray:
    y = np.asarray(predictor.predict(X), dtype=float)
    if y.ndim > 1 and y.shape[1:] == (1,) * (y.ndim - 1):
        y = y.reshape(-1)
    if y.shape != (len(X),):
        raise ValueError(f"Expected {len(X)} predictions but got an array of shape {y.shape}")
    return y


def fit_replicate(
    replicate_index: int, training_set: Dataset, learner: Learner, random_seed: int
) -> Predictor:
    """Fits the learner on the bootstrap sample of replicate ``replicate_index``."""
    indices = bootstrap_indices(len(training_set), random_seed, replicate_index)
    return learner.fit(training_set.take(indices))


def run_replicate(
    replicate_index: int,
    training_set: Dataset,
    X: pd.DataFrame,
    learner: Learner,
    random_seed: int,
    oob_score: bool = False,
) -> Dict:
    """Runs one replicate: resample, fit, then predict the evaluation features.

    Returns:
        Dict: the drawn ``indices``, the ``predictions`` on ``X``, the ``oob_predictions`` on the
        training features when ``oob_score`` is set, and the ``time_fit`` and ``time_predict``
        durations in seconds.
    """
    t0 = time.time()
    indices = bootstrap_indices(len(training_set), random_seed, replicate_index)
    predictor = learner.fit(training_set.take(indices))
    t1 = time.time()

    output = {"indices": indices, "predictions": _predict(predictor, X)}
    if oob_score:
        output["oob_predictions"] = _predict(predictor, training_set.features)
    output["time_fit"], output["time_predict"] = t1 - t0, time.time() - t1
    return output


class BootstrapEnsemble:
    """Bootstrap aggregation (bagging) of an arbitrary base learner.

    Each replicate draws a bootstrap sample of the training set, fits the base learner on it and
    predicts the evaluation features. The predictions of the replicates are then averaged into the
    ensemble prediction and their sample variance is reported as a dispersion estimate.

    Replicates are numbered from ``1`` to ``replicate_count``. Replicate ``i`` draws its sample
    from a random stream derived from ``(random_seed, i)`` only, so results do not depend on the
    evaluator or on the number of workers.

    Args:
        base_learner (Learner): the learner fitted on each bootstrap sample.

        replicate_count (int, optional): the number of bootstrap replicates. Defaults to ``100``.

        random_seed (int, optional): the seed of the resampling. Defaults to ``None`` which draws a
            fresh seed at each run, the seed used is available in ``EnsembleResult.random_seed``.

        evaluator (str | Dict, optional): The parallel strategy to run the replicates. If it is a
            ``str`` it must be a possible ``method`` of ``Evaluator.create(..., method=...)``. If it
            is a ``dict`` it must have two keys ``method`` and ``method_kwargs`` such as
            ``Evaluator.create(...)``. Defaults to ``None`` which is equivalent to
            ``evaluator="serial"``.

        oob_score (bool, optional): whether to compute out-of-bag predictions of the training rows
            and their R² score. Defaults to ``False``.

        callbacks (list, optional): callbacks of the evaluator, for example ``TqdmCallback()`` to
            follow the progress of the replicates. Defaults to ``None``.

    Raises:
        InvalidArgumentError: when ``replicate_count`` is not a positive integer or
            ``random_seed`` is not a non-negative integer.
        ValueError: when the type of the ``evaluator`` argument is not ``str`` or ``dict``.
    """

    def __init__(
        self,
        base_learner: Learner,
        replicate_count: int = 100,
        random_seed: Optional[int] = None,
        evaluator: str | Dict = None,
        oob_score: bool = False,
        callbacks: Optional[list] = None,
    ):
        if (
            not isinstance(replicate_count, numbers.Integral)
            or isinstance(replicate_count, bool)
            or replicate_count <= 0
        ):
            raise InvalidArgumentError(
                f"replicate_count must be a positive integer, got {replicate_count!r}"
            )

        if random_seed is not None and (
            not isinstance(random_seed, numbers.Integral)
            or isinstance(random_seed, bool)
            or random_seed < 0
        ):
            raise InvalidArgumentError(
                f"random_seed must be a non-negative integer or None, got {random_seed!r}"
            )

        self.base_learner = base_learner
        self.replicate_count = int(replicate_count)
        self.random_seed = None if random_seed is None else int(random_seed)
        self.evaluator_method, self.evaluator_method_kwargs = parse_evaluator(evaluator)
        self.oob_score = oob_score
        self.callbacks = [] if callbacks is None else callbacks

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(base_learner={self.base_learner!r}, "
            f"replicate_count={self.replicate_count}, random_seed={self.random_seed}, "
            f"evaluator={self.evaluator_method!r})"
        )

    def create_evaluator(self, run_function) -> Evaluator:
        method_kwargs = {"callbacks": self.callbacks}
        method_kwargs.update(self.evaluator_method_kwargs)
        return Evaluator.create(
            run_function=run_function,
            method=self.evaluator_method,
            method_kwargs=method_kwargs,
        )

    def _check_training_set(self, training_set: Dataset):
        if not isinstance(training_set, Dataset):
            raise InvalidArgumentError(
                f"training_set must be a Dataset, got {type(training_set)}"
            )
        if not training_set.has_outcome:
            raise InvalidArgumentError("training_set must have an outcome column.")
        if len(training_set) == 0:
            raise InvalidArgumentError("training_set must not be empty.")

    def _seed(self) -> int:
        if self.random_seed is None:
            return new_random_seed()
        return self.random_seed

    def replicate_numbers(self) -> range:
        """The replicates are numbered from ``1`` to ``replicate_count``."""
        return range(1, self.replicate_count + 1)

    def _execute(self, run_function, **kwargs) -> List[Job]:
        """Maps ``run_function`` over the replicate numbers.

        The evaluator stops launching replicates after the first failure.

        Returns:
            List[Job]: the jobs, ordered by replicate number.

        Raises:
            ReplicateFailure: for the failing replicate with the lowest number.
        """
        with self.create_evaluator(run_function) as evaluator:
            jobs = evaluator.map(self.replicate_numbers(), **kwargs)

        failed = [job for job in jobs if job.failed]
        if failed:
            raise ReplicateFailure(failed[0].id, failed[0].exception) from failed[0].exception

        return jobs

    def run(self, training_set: Dataset, evaluation_features) -> EnsembleResult:
        """Runs the bootstrap ensemble.

        Args:
            training_set (Dataset): the labeled training observations.
            evaluation_features (Dataset | pd.DataFrame | np.ndarray): the rows to predict. They
                must have the feature columns of ``training_set``.

        Returns:
            EnsembleResult: the ensemble mean and variance of each evaluation row, and the full
            prediction matrix whose column ``i - 1`` holds replicate ``i``.

        Raises:
            InvalidArgumentError: when the training set is empty or has no outcome, or when the
                evaluation features miss a training feature.
            ReplicateFailure: when the fit or predict step of a replicate fails.
        """
        self._check_training_set(training_set)
        X = as_features(evaluation_features, training_set.feature_names)
        random_seed = self._seed()

        logger.info(
            f"Running {self.replicate_count} bootstrap replicate(s) of {self.base_learner!r} on "
            f"{len(training_set)} row(s) with {random_seed=}"
        )

        jobs = self._execute(
            run_replicate,
            training_set=training_set,
            X=X,
            learner=self.base_learner,
            random_seed=random_seed,
            oob_score=self.oob_score,
        )

        n_eval, n_train = len(X), len(training_set)
        predictions = np.empty((n_eval, self.replicate_count), dtype=float)
        sample_indices = np.empty((self.replicate_count, n_train), dtype=np.int64)
        oob_predictions = None
        if self.oob_score:
            oob_predictions = np.empty((n_train, self.replicate_count), dtype=float)

        # One column per replicate
        for job in jobs:
            column = job.id - 1
            predictions[:, column] = job.output["predictions"]
            sample_indices[column] = job.output["indices"]
            if self.oob_score:
                oob_predictions[:, column] = job.output["oob_predictions"]
            logger.debug(
                f"Replicate {job.id} fitted in {job.output['time_fit']:.3f}s, predicted in "
                f"{job.output['time_predict']:.3f}s"
            )

        aggregated = MeanAggregator(with_uncertainty=True, ddof=1).aggregate(list(predictions.T))

        oob_prediction, oob_score = None, None
        if self.oob_score:
            oob_prediction, oob_score = self._out_of_bag(
                training_set, sample_indices, oob_predictions
            )

        logger.info(f"Bootstrap ensemble of {self.replicate_count} replicate(s) done")

        return EnsembleResult(
            mean=aggregated["loc"],
            variance=aggregated["uncertainty"],
            predictions=predictions,
            sample_indices=sample_indices,
            random_seed=random_seed,
            oob_prediction=oob_prediction,
            oob_score=oob_score,
        )

    def _out_of_bag(self, training_set, sample_indices, oob_predictions):
        n_train = len(training_set)
        oob_masks = np.stack([out_of_bag_mask(idx, n_train) for idx in sample_indices], axis=1)

        masked = np.ma.masked_array(oob_predictions, mask=~oob_masks)
        oob_prediction = np.ma.filled(masked.mean(axis=1).astype(float), np.nan)

        defined = ~np.isnan(oob_prediction)
        if defined.sum() < 2:
            logger.warning(
                "Less than 2 training rows are out-of-bag, increase replicate_count to get an "
                "out-of-bag score"
            )
            return oob_prediction, float("nan")

        oob_score = float(r2_score(training_set.y[defined], oob_prediction[defined]))
        return oob_prediction, oob_score

    def fit(self, training_set: Dataset) -> EnsemblePredictor:
        """Fits the replicates and keeps their predictors to predict new data later.

        The replicates are the same as the ones of ``run`` for the same seed.

        Args:
            training_set (Dataset): the labeled training observations.

        Returns:
            EnsemblePredictor: the ensemble averaging the predictions of the replicates.

        Raises:
            InvalidArgumentError: when the training set is empty or has no outcome.
            ReplicateFailure: when the fit step of a replicate fails.
        """
        self._check_training_set(training_set)
        random_seed = self._seed()

        logger.info(
            f"Fitting {self.replicate_count} bootstrap replicate(s) of {self.base_learner!r} on "
            f"{len(training_set)} row(s) with {random_seed=}"
        )

        jobs = self._execute(
            fit_replicate,
            training_set=training_set,
            learner=self.base_learner,
            random_seed=random_seed,
        )

        return EnsemblePredictor(
            predictors=[job.output for job in jobs],
            aggregator=MeanAggregator(),
            evaluator={
                "method": self.evaluator_method,
                "method_kwargs": self.evaluator_method_kwargs,
            },
        )


def bootstrap_ensemble(
    training_set: Dataset,
    evaluation_features,
    base_learner: Learner,
    replicate_count: int = 100,
    random_seed: Optional[int] = None,
    evaluator: str | Dict = None,
    oob_score: bool = False,
    callbacks: Optional[list] = None,
) -> EnsembleResult:
    """Runs a bootstrap ensemble of ``base_learner``, see ``BootstrapEnsemble`` for the arguments.

    Example:

    >>> from bagkit.data import Dataset
    >>> from bagkit.ensemble import bootstrap_ensemble
    >>> from bagkit.learner import MeanLearner
    >>> data = Dataset.from_arrays([[0], [1], [2]], [1.0, 2.0, 3.0])
    >>> result = bootstrap_ensemble(data, data, MeanLearner(), replicate_count=10, random_seed=0)
    >>> result.predictions.shape
    (3, 10)
    """
    ensemble = BootstrapEnsemble(
        base_learner,
        replicate_count=replicate_count,
        random_seed=random_seed,
        evaluator=evaluator,
        oob_score=oob_score,
        callbacks=callbacks,
    )
    return ensemble.run(training_set, evaluation_features)
