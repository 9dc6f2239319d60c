"""Learner subpackage.

A ``Learner`` fits a model on a labeled ``Dataset`` and returns a ``Predictor``. Ensembles only
see this interface, so any model family can be plugged in by wrapping it in a ``Learner``.
"""

from bagkit.learner._learner import ConstantPredictor, Learner, MeanLearner, Predictor

__all__ = ["ConstantPredictor", "Learner", "MeanLearner", "Predictor"]
