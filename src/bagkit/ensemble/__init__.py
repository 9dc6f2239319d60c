"""Ensemble subpackage.

This subpackage provides tools to build ensemble of predictive models. ``BootstrapEnsemble`` fits
a base learner on bootstrap samples of the training data (bagging) and averages the predictions of
the replicates. Averaging reduces the variance of the predictions of an unstable learner and the
spread of the replicates gives an estimate of that variance.
"""

from bagkit.ensemble._bootstrap import BootstrapEnsemble, bootstrap_ensemble
from bagkit.ensemble._ensemble import EnsemblePredictor
from bagkit.ensemble._result import EnsembleResult
from bagkit.ensemble._sampling import bootstrap_indices, out_of_bag_mask

__all__ = [
    "BootstrapEnsemble",
    "EnsemblePredictor",
    "EnsembleResult",
    "bootstrap_ensemble",
    "bootstrap_indices",
    "out_of_bag_mask",
]
