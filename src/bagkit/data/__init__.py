"""Tabular data subpackage."""

from bagkit.data._dataset import Dataset, as_features

__all__ = ["Dataset", "as_features"]
