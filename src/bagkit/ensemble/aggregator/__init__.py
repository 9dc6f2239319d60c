"""Subpackage with aggregation functions for the predictions of set of predicting models."""

from bagkit.ensemble.aggregator._aggregator import Aggregator
from bagkit.ensemble.aggregator._mean import MeanAggregator

__all__ = [
    "Aggregator",
    "MeanAggregator",
]
