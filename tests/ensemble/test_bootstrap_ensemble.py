import numpy as np
import pandas as pd
import pytest
from sklearn.compose import ColumnTransformer
from sklearn.linear_model import LinearRegression
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import OneHotEncoder
from sklearn.tree import DecisionTreeRegressor

from bagkit.core.exceptions import InvalidArgumentError, ReplicateFailure
from bagkit.data import Dataset
from bagkit.ensemble import (
    BootstrapEnsemble,
    EnsemblePredictor,
    EnsembleResult,
    bootstrap_ensemble,
    bootstrap_indices,
)
from bagkit.learner import Learner, MeanLearner
from bagkit.learner.sklearn import SklearnLearner


class CountingLearner(MeanLearner):
    """Mean learner counting the calls to ``fit``."""

    def __init__(self):
        self.num_fit = 0

    def fit(self, dataset):
        self.num_fit += 1
        return super().fit(dataset)


class FailingLearner(Learner):
    """Learner failing on the ``fail_at``-th call to ``fit``, counting from 1."""

    def __init__(self, fail_at):
        self.fail_at = fail_at
        self.num_fit = 0

    def fit(self, dataset):
        self.num_fit += 1
        if self.num_fit == self.fail_at:
            raise np.linalg.LinAlgError("Singular matrix")
        return MeanLearner().fit(dataset)


class WrongSizePredictor:
    def predict(self, X):
        return np.zeros(len(X) + 1)


class WrongSizeLearner(Learner):
    def fit(self, dataset):
        return WrongSizePredictor()


@pytest.fixture
def ten_rows():
    return Dataset.from_arrays(np.arange(10).reshape(-1, 1), np.arange(1, 11, dtype=float))


@pytest.fixture
def regression_data():
    rng = np.random.default_rng(0)
    X = rng.uniform(-3, 3, size=(60, 2))
    y = np.sin(X[:, 0]) + 0.5 * X[:, 1] + rng.normal(scale=0.3, size=60)
    training_set = Dataset.from_arrays(X[:40], y[:40])
    evaluation_set = Dataset.from_arrays(X[40:], y[40:])
    return training_set, evaluation_set


def test_single_replicate_has_no_variance(regression_data):
    training_set, evaluation_set = regression_data
    result = bootstrap_ensemble(
        training_set,
        evaluation_set,
        SklearnLearner(DecisionTreeRegressor()),
        replicate_count=1,
        random_seed=3,
    )

    assert isinstance(result, EnsembleResult)
    assert result.predictions.shape == (20, 1)
    assert np.array_equal(result.mean, result.predictions[:, 0])
    assert np.array_equal(result.variance, np.zeros(20))


def test_single_replicate_matches_manual_fit(regression_data):
    training_set, evaluation_set = regression_data
    result = bootstrap_ensemble(
        training_set,
        evaluation_set,
        SklearnLearner(LinearRegression()),
        replicate_count=1,
        random_seed=5,
    )

    indices = bootstrap_indices(len(training_set), 5, 1)
    sample = training_set.take(indices)
    model = LinearRegression().fit(sample.features, sample.y)
    assert np.allclose(result.mean, model.predict(evaluation_set.features))
    assert np.array_equal(result.sample_indices[0], indices)


def test_determinism(regression_data):
    training_set, evaluation_set = regression_data
    learner = SklearnLearner(DecisionTreeRegressor(max_depth=3, random_state=0))

    a = bootstrap_ensemble(training_set, evaluation_set, learner, replicate_count=15, random_seed=1)
    b = bootstrap_ensemble(training_set, evaluation_set, learner, replicate_count=15, random_seed=1)
    c = bootstrap_ensemble(training_set, evaluation_set, learner, replicate_count=15, random_seed=2)

    assert np.array_equal(a.predictions, b.predictions)
    assert np.array_equal(a.mean, b.mean)
    assert np.array_equal(a.variance, b.variance)
    assert not np.array_equal(a.predictions, c.predictions)


def test_determinism_across_evaluators(regression_data):
    training_set, evaluation_set = regression_data
    learner = SklearnLearner(DecisionTreeRegressor(max_depth=3, random_state=0))

    serial = bootstrap_ensemble(
        training_set, evaluation_set, learner, replicate_count=12, random_seed=4
    )
    thread = bootstrap_ensemble(
        training_set,
        evaluation_set,
        learner,
        replicate_count=12,
        random_seed=4,
        evaluator={"method": "thread", "method_kwargs": {"num_workers": 4}},
    )
    assert np.array_equal(serial.predictions, thread.predictions)
    assert np.array_equal(serial.sample_indices, thread.sample_indices)


@pytest.mark.slow
@pytest.mark.parametrize("method", ["process", "loky"])
def test_determinism_across_process_evaluators(regression_data, method):
    training_set, evaluation_set = regression_data
    learner = SklearnLearner(DecisionTreeRegressor(max_depth=3, random_state=0))

    serial = bootstrap_ensemble(
        training_set, evaluation_set, learner, replicate_count=6, random_seed=4
    )
    parallel = bootstrap_ensemble(
        training_set,
        evaluation_set,
        learner,
        replicate_count=6,
        random_seed=4,
        evaluator={"method": method, "method_kwargs": {"num_workers": 2}},
    )
    assert np.array_equal(serial.predictions, parallel.predictions)


def test_mean_learner_fifty_replicates(ten_rows):
    evaluation_features = pd.DataFrame({"x0": [0, 1, 2]})
    result = bootstrap_ensemble(
        ten_rows, evaluation_features, MeanLearner(), replicate_count=50, random_seed=0
    )

    assert result.predictions.shape == (3, 50)
    assert result.replicate_count == 50
    assert np.allclose(result.mean, 5.5, atol=0.6)
    # the mean learner predicts the same constant for every row
    assert np.allclose(result.mean, result.mean[0])
    # each column is the mean outcome of its bootstrap sample
    for i in range(50):
        assert np.allclose(result.predictions[:, i], ten_rows.y[result.sample_indices[i]].mean())


def test_replicate_count_does_not_change_expected_mean(ten_rows):
    evaluation_features = pd.DataFrame({"x0": [0]})
    seeds = range(200)

    means = {}
    for replicate_count in [1, 20]:
        means[replicate_count] = np.mean(
            [
                bootstrap_ensemble(
                    ten_rows,
                    evaluation_features,
                    MeanLearner(),
                    replicate_count=replicate_count,
                    random_seed=seed,
                ).mean[0]
                for seed in seeds
            ]
        )

    assert abs(means[1] - 5.5) < 0.3
    assert abs(means[20] - 5.5) < 0.3
    assert abs(means[1] - means[20]) < 0.3


@pytest.mark.parametrize("replicate_count", [0, -3, 2.5, True, "10", None])
def test_invalid_replicate_count(ten_rows, replicate_count):
    learner = CountingLearner()
    with pytest.raises(InvalidArgumentError, match="replicate_count"):
        bootstrap_ensemble(ten_rows, ten_rows, learner, replicate_count=replicate_count)
    assert learner.num_fit == 0


@pytest.mark.parametrize("random_seed", [-1, 1.5, "seed"])
def test_invalid_random_seed(ten_rows, random_seed):
    with pytest.raises(InvalidArgumentError, match="random_seed"):
        BootstrapEnsemble(MeanLearner(), random_seed=random_seed)


def test_empty_training_set():
    learner = CountingLearner()
    empty = Dataset(pd.DataFrame({"x0": [], "y": []}, dtype=float), outcome="y")
    with pytest.raises(InvalidArgumentError, match="empty"):
        bootstrap_ensemble(empty, pd.DataFrame({"x0": [1.0]}), learner, replicate_count=5)
    assert learner.num_fit == 0


def test_training_set_without_outcome(ten_rows):
    learner = CountingLearner()
    with pytest.raises(InvalidArgumentError, match="outcome"):
        bootstrap_ensemble(Dataset(ten_rows.features), ten_rows, learner, replicate_count=5)

    with pytest.raises(InvalidArgumentError, match="Dataset"):
        bootstrap_ensemble(ten_rows.data, ten_rows, learner, replicate_count=5)
    assert learner.num_fit == 0


def test_missing_evaluation_features(ten_rows):
    learner = CountingLearner()
    with pytest.raises(InvalidArgumentError, match="missing columns"):
        bootstrap_ensemble(ten_rows, pd.DataFrame({"age": [1]}), learner, replicate_count=5)
    assert learner.num_fit == 0


def test_replicate_failure(ten_rows):
    learner = FailingLearner(fail_at=7)

    with pytest.raises(ReplicateFailure) as excinfo:
        bootstrap_ensemble(ten_rows, ten_rows, learner, replicate_count=20, random_seed=0)

    assert excinfo.value.index == 7
    assert isinstance(excinfo.value.cause, np.linalg.LinAlgError)
    assert excinfo.value.__cause__ is excinfo.value.cause
    assert "Replicate 7 failed" in str(excinfo.value)
    assert isinstance(excinfo.value, RuntimeError)
    # the serial evaluator does not fit the replicates after the failing one
    assert learner.num_fit == 7


def test_replicate_failure_on_predict(ten_rows):
    with pytest.raises(ReplicateFailure) as excinfo:
        bootstrap_ensemble(ten_rows, ten_rows, WrongSizeLearner(), replicate_count=3)

    assert excinfo.value.index == 1
    assert isinstance(excinfo.value.cause, ValueError)


class AlwaysFailingLearner(Learner):
    def fit(self, dataset):
        raise np.linalg.LinAlgError("Singular matrix")


@pytest.mark.parametrize("method", ["serial", "thread"])
def test_replicate_failure_reports_first_replicate(ten_rows, method):
    with pytest.raises(ReplicateFailure) as excinfo:
        bootstrap_ensemble(
            ten_rows,
            ten_rows,
            AlwaysFailingLearner(),
            replicate_count=20,
            evaluator={"method": method, "method_kwargs": {"num_workers": 4}},
        )
    assert excinfo.value.index == 1


def test_result_is_read_only(ten_rows):
    result = bootstrap_ensemble(ten_rows, ten_rows, MeanLearner(), replicate_count=3)
    with pytest.raises(ValueError):
        result.predictions[0, 0] = 1.0
    with pytest.raises(ValueError):
        result.mean[0] = 1.0


def test_random_seed_none_is_recorded(regression_data):
    training_set, evaluation_set = regression_data
    learner = SklearnLearner(DecisionTreeRegressor(max_depth=2, random_state=0))

    first = bootstrap_ensemble(training_set, evaluation_set, learner, replicate_count=5)
    assert isinstance(first.random_seed, int)

    again = bootstrap_ensemble(
        training_set, evaluation_set, learner, replicate_count=5, random_seed=first.random_seed
    )
    assert np.array_equal(first.predictions, again.predictions)


def test_bagging_reduces_variance(regression_data):
    training_set, evaluation_set = regression_data
    result = bootstrap_ensemble(
        training_set,
        evaluation_set,
        SklearnLearner(DecisionTreeRegressor()),
        replicate_count=50,
        random_seed=0,
    )

    assert np.all(result.variance >= 0)
    assert np.allclose(result.std, np.sqrt(result.variance))
    assert np.allclose(result.mean, result.predictions.mean(axis=1))
    assert np.allclose(result.variance, result.predictions.var(axis=1, ddof=1))

    summary = result.summary(evaluation_set.y)
    # the average of the trees is better than a tree alone
    assert summary["rmse"] < summary["replicate_rmse"]
    assert summary["rmse_gain"] > 0


def test_out_of_bag_score():
    X = np.arange(20, dtype=float).reshape(-1, 1)
    training_set = Dataset.from_arrays(X, 3 * X[:, 0] - 2)

    result = bootstrap_ensemble(
        training_set,
        training_set,
        SklearnLearner(LinearRegression()),
        replicate_count=30,
        random_seed=0,
        oob_score=True,
    )

    assert result.oob_prediction.shape == (20,)
    assert result.oob_coverage > 0.9
    assert result.oob_score == pytest.approx(1.0)


def test_out_of_bag_disabled(ten_rows):
    result = bootstrap_ensemble(ten_rows, ten_rows, MeanLearner(), replicate_count=2)
    assert result.oob_prediction is None
    assert result.oob_score is None
    assert result.oob_coverage is None


def test_fit_returns_ensemble_predictor(regression_data):
    training_set, evaluation_set = regression_data
    ensemble = BootstrapEnsemble(
        SklearnLearner(DecisionTreeRegressor(max_depth=3, random_state=0)),
        replicate_count=10,
        random_seed=8,
    )

    predictor = ensemble.fit(training_set)
    assert isinstance(predictor, EnsemblePredictor)
    assert len(predictor.predictors) == 10

    result = ensemble.run(training_set, evaluation_set)
    assert np.allclose(predictor.predict(evaluation_set.features), result.mean)


def test_fit_replicate_failure(ten_rows):
    ensemble = BootstrapEnsemble(FailingLearner(fail_at=2), replicate_count=4, random_seed=0)
    with pytest.raises(ReplicateFailure) as excinfo:
        ensemble.fit(ten_rows)
    assert excinfo.value.index == 2
    assert ensemble.base_learner.num_fit == 2


def test_categorical_features_with_pipeline():
    data = pd.DataFrame(
        {
            "pclass": [1, 3, 2, 3, 1, 2, 3, 3, 1, 2] * 3,
            "sex": ["female", "male", "male", "female", "male"] * 6,
            "fare": np.linspace(5, 80, 30),
        }
    )
    training_set = Dataset(data, outcome="fare")
    learner = SklearnLearner(
        make_pipeline(
            ColumnTransformer(
                [("sex", OneHotEncoder(handle_unknown="ignore"), ["sex"])],
                remainder="passthrough",
            ),
            DecisionTreeRegressor(max_depth=2),
        )
    )

    result = bootstrap_ensemble(
        training_set, data.head(4), learner, replicate_count=5, random_seed=0
    )
    assert result.predictions.shape == (4, 5)
    assert np.all(np.isfinite(result.mean))


def test_repr(ten_rows):
    ensemble = BootstrapEnsemble(MeanLearner(), replicate_count=3, random_seed=1)
    assert "replicate_count=3" in repr(ensemble)
    result = ensemble.run(ten_rows, ten_rows)
    assert "replicate_count=3" in repr(result)
