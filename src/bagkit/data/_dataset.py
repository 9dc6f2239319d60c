from typing import List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from bagkit.core.exceptions import InvalidArgumentError


class Dataset:
    """A table of observations with named feature columns and an optional outcome column.

    Args:
        data (pd.DataFrame): the observations, one row per observation.
        outcome (str, optional): the name of the column holding the numeric outcome. Defaults to
            ``None`` for datasets used only as prediction inputs.

    Raises:
        InvalidArgumentError: when ``outcome`` is not a column of ``data`` or is not numeric.
    """

    def __init__(self, data: pd.DataFrame, outcome: Optional[str] = None):
        if not isinstance(data, pd.DataFrame):
            raise InvalidArgumentError(f"data must be a pandas.DataFrame, got {type(data)}")

        if outcome is not None:
            if outcome not in data.columns:
                raise InvalidArgumentError(f"The outcome column '{outcome}' is not in the data.")
            if len(data) > 0 and not pd.api.types.is_numeric_dtype(data[outcome]):
                raise InvalidArgumentError(f"The outcome column '{outcome}' must be numeric.")

        self.data = data
        self.outcome = outcome

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_rows={len(self)}, features={self.feature_names}, "
            f"outcome={self.outcome!r})"
        )

    @property
    def has_outcome(self) -> bool:
        return self.outcome is not None

    @property
    def feature_names(self) -> List[str]:
        return [c for c in self.data.columns if c != self.outcome]

    @property
    def features(self) -> pd.DataFrame:
        """The feature columns, in column order, without the outcome."""
        return self.data[self.feature_names]

    @property
    def y(self) -> np.ndarray:
        """The outcome values as a float array."""
        if not self.has_outcome:
            raise InvalidArgumentError("The dataset has no outcome column.")
        return self.data[self.outcome].to_numpy(dtype=float)

    def take(self, indices: Sequence[int]) -> "Dataset":
        """Select rows by position. Indices can repeat.

        Args:
            indices (Sequence[int]): the positional indices of the rows to select.

        Returns:
            Dataset: a new dataset with the selected rows, indexed from ``0``.
        """
        data = self.data.iloc[np.asarray(indices, dtype=int)].reset_index(drop=True)
        return Dataset(data, outcome=self.outcome)

    @classmethod
    def from_records(
        cls, rows: Sequence[Mapping], outcome: Optional[str] = None
    ) -> "Dataset":
        """Build a dataset from a sequence of mappings sharing the same keys.

        Raises:
            InvalidArgumentError: when a row does not have the same keys as the first row.
        """
        rows = list(rows)
        if len(rows) > 0:
            schema = list(rows[0].keys())
            for i, row in enumerate(rows[1:], start=1):
                if set(row.keys()) != set(schema):
                    raise InvalidArgumentError(
                        f"Row {i} has keys {sorted(row.keys())} but expected {sorted(schema)}."
                    )
            data = pd.DataFrame.from_records(rows, columns=schema)
        else:
            data = pd.DataFrame(columns=[] if outcome is None else [outcome], dtype=float)
        return cls(data, outcome=outcome)

    @classmethod
    def from_arrays(
        cls,
        X,
        y=None,
        feature_names: Optional[Sequence[str]] = None,
    ) -> "Dataset":
        """Build a dataset from a 2-D feature array and an optional 1-D outcome array.

        The outcome column is named ``"y"`` and features default to ``x0, x1, ...``.
        """
        X = np.asarray(X)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if X.ndim != 2:
            raise InvalidArgumentError(f"X must be 2-D, got shape {X.shape}")

        if feature_names is None:
            feature_names = [f"x{i}" for i in range(X.shape[1])]
        data = pd.DataFrame(X, columns=list(feature_names))

        if y is None:
            return cls(data)

        y = np.asarray(y, dtype=float).ravel()
        if len(y) != len(data):
            raise InvalidArgumentError(
                f"X has {len(data)} rows but y has {len(y)} values."
            )
        data["y"] = y
        return cls(data, outcome="y")


def as_features(
    X: Union[Dataset, pd.DataFrame, np.ndarray], feature_names: Sequence[str]
) -> pd.DataFrame:
    """Return the evaluation features of ``X`` restricted and ordered as ``feature_names``.

    Args:
        X (Dataset | pd.DataFrame | np.ndarray): the evaluation inputs. An array must have one
            column per feature, in the order of ``feature_names``.
        feature_names (Sequence[str]): the features the learner was trained on.

    Returns:
        pd.DataFrame: the features.

    Raises:
        InvalidArgumentError: when a feature is missing from ``X``.
    """
    feature_names = list(feature_names)

    if isinstance(X, Dataset):
        X = X.data
    elif not isinstance(X, pd.DataFrame):
        X = np.asarray(X)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if X.ndim != 2 or X.shape[1] != len(feature_names):
            raise InvalidArgumentError(
                f"Expected an array with {len(feature_names)} columns, got shape {X.shape}"
            )
        return pd.DataFrame(X, columns=feature_names)

    missing = [c for c in feature_names if c not in X.columns]
    if missing:
        raise InvalidArgumentError(f"The evaluation features are missing columns: {missing}")

    return X[feature_names].reset_index(drop=True)
