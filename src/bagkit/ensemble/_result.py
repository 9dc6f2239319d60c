from typing import Dict, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from bagkit.core.exceptions import InvalidArgumentError


def _read_only(array: Optional[np.ndarray]) -> Optional[np.ndarray]:
    if array is not None:
        array.setflags(write=False)
    return array


class EnsembleResult:
    """The outcome of a bootstrap ensemble run.

    Args:
        mean (np.ndarray): the ensemble prediction of each evaluation row, shape ``(n_eval,)``.
        variance (np.ndarray): the sample variance of the replicate predictions of each evaluation
            row, shape ``(n_eval,)``.
        predictions (np.ndarray): the prediction matrix, one row per evaluation row and one column
            per replicate, shape ``(n_eval, replicate_count)``.
            Column ``i - 1`` holds replicate ``i``.
        sample_indices (np.ndarray): the bootstrap indices drawn by each replicate, shape
            ``(replicate_count, n_train)``.
        random_seed (int): the seed the replicates were derived from.
        oob_prediction (np.ndarray, optional): the out-of-bag prediction of each training row,
            ``NaN`` for rows drawn by every replicate. Defaults to ``None``.
        oob_score (float, optional): the R² score of the out-of-bag predictions. Defaults to
            ``None``.

    All arrays are read-only.
    """

    def __init__(
        self,
        mean: np.ndarray,
        variance: np.ndarray,
        predictions: np.ndarray,
        sample_indices: np.ndarray,
        random_seed: int,
        oob_prediction: Optional[np.ndarray] = None,
        oob_score: Optional[float] = None,
    ):
        self.mean = _read_only(mean)
        self.variance = _read_only(variance)
        self.predictions = _read_only(predictions)
        self.sample_indices = _read_only(sample_indices)
        self.random_seed = random_seed
        self.oob_prediction = _read_only(oob_prediction)
        self.oob_score = oob_score

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_eval={len(self.mean)}, "
            f"replicate_count={self.replicate_count}, random_seed={self.random_seed})"
        )

    @property
    def replicate_count(self) -> int:
        return self.predictions.shape[1]

    @property
    def std(self) -> np.ndarray:
        return np.sqrt(self.variance)

    @property
    def oob_coverage(self) -> Optional[float]:
        """Fraction of the training rows that have an out-of-bag prediction."""
        if self.oob_prediction is None:
            return None
        return float(np.mean(~np.isnan(self.oob_prediction)))

    def to_frame(self) -> pd.DataFrame:
        """The ensemble prediction of each evaluation row as a table."""
        return pd.DataFrame({"mean": self.mean, "variance": self.variance, "std": self.std})

    def _check_y_true(self, y_true) -> np.ndarray:
        y_true = np.asarray(y_true, dtype=float).ravel()
        if len(y_true) != len(self.mean):
            raise InvalidArgumentError(
                f"y_true has {len(y_true)} values but there are {len(self.mean)} evaluation rows."
            )
        return y_true

    def summary(self, y_true) -> Dict[str, float]:
        """Compares the ensemble with its replicates on labeled evaluation rows.

        Args:
            y_true (array-like): the true outcome of each evaluation row.

        Returns:
            Dict[str, float]: ``rmse``, ``mae`` and ``r2`` of the ensemble mean,
            ``replicate_rmse`` the average RMSE of the replicates taken alone, ``rmse_gain`` the
            difference between the two RMSE and ``prediction_spread`` the average standard
            deviation of the replicate predictions.
        """
        y_true = self._check_y_true(y_true)

        rmse = float(np.sqrt(mean_squared_error(y_true, self.mean)))
        replicate_rmse = float(
            np.mean(np.sqrt(np.mean(np.square(self.predictions - y_true[:, None]), axis=0)))
        )

        return {
            "rmse": rmse,
            "mae": float(mean_absolute_error(y_true, self.mean)),
            "r2": float(r2_score(y_true, self.mean)) if len(y_true) > 1 else float("nan"),
            "replicate_rmse": replicate_rmse,
            "rmse_gain": replicate_rmse - rmse,
            "prediction_spread": float(np.mean(np.std(self.predictions, axis=1))),
        }

    def bias_variance(self, y_true) -> Dict[str, float]:
        """Decomposes the average squared error of the replicates.

        ``mse = bias2 + variance + noise`` where ``bias2`` is the squared error of the ensemble
        mean, ``variance`` the average variance of the replicates around it and ``noise`` the
        remainder, clipped at zero.

        Args:
            y_true (array-like): the true outcome of each evaluation row.

        Returns:
            Dict[str, float]: the terms of the decomposition.
        """
        y_true = self._check_y_true(y_true)

        bias2 = float(np.mean(np.square(self.mean - y_true)))
        variance = float(np.mean(self.variance))
        mse = float(np.mean(np.square(self.predictions - y_true[:, None])))
        noise = max(mse - bias2 - variance, 0.0)
        return {"bias2": bias2, "variance": variance, "noise": noise, "mse": mse}
