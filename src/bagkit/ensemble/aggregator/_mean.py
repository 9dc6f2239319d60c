from typing import List, Optional, Sequence

import numpy as np

from bagkit.ensemble.aggregator._aggregator import Aggregator


class MeanAggregator(Aggregator):
    """Weighted mean of the member predictions, with their variance as uncertainty.

    Masked arrays are supported: masked entries are left out of the mean and of the variance.

    Args:
        with_uncertainty (bool, optional): return ``{"loc": mean, "uncertainty": variance}``
            instead of the mean alone. Defaults to ``False``.
        ddof (int, optional): delta degrees of freedom of the variance. ``ddof=1`` gives the
            sample variance. With no more members than ``ddof`` the variance is zero. Defaults
            to ``0``.
    """

    def __init__(self, with_uncertainty: bool = False, ddof: int = 0):
        self.with_uncertainty = with_uncertainty
        self.ddof = ddof

    def aggregate(self, y: List[np.ndarray], weights: Optional[Sequence[float]] = None):
        """Mean over members of ``y``, see ``Aggregator.aggregate``.

        Raises:
            ValueError: when ``weights`` does not have one weight per member.
            TypeError: when a member prediction is not an array.
        """
        xp, stacked = self._stack(y, weights)
        loc = xp.average(stacked, axis=0, weights=weights)

        if not self.with_uncertainty:
            return loc
        return {"loc": loc, "uncertainty": self._variance(xp, stacked, loc, weights)}

    def _variance(self, xp, stacked, loc, weights):
        n_members = stacked.shape[0]
        w = np.ones(n_members) if weights is None else np.asarray(weights, dtype=float)

        # reliability weights: the denominator is ``n - ddof`` for equal weights
        denominator = w.sum() - self.ddof * np.square(w).sum() / w.sum()

        w = w.reshape((n_members,) + (1,) * (stacked.ndim - 1))
        spread = xp.sum(w * xp.square(stacked - loc), axis=0)

        if denominator <= 0:
            return spread * 0.0
        return spread / denominator
