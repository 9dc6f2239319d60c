"""Learners backed by Scikit-Learn estimators."""

from bagkit.learner.sklearn._learner_sklearn import SklearnLearner, SklearnPredictor

__all__ = ["SklearnLearner", "SklearnPredictor"]
