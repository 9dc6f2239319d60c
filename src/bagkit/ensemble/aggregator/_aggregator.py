import abc
from typing import List, Optional, Sequence

import numpy as np


class Aggregator(abc.ABC):
    """Fuses the predictions of the members of an ensemble into one prediction.

    Members are the replicates of a ``BootstrapEnsemble`` or the predictors of an
    ``EnsemblePredictor``. Subclasses implement ``aggregate``; ``_stack`` checks the inputs and
    stacks them along a new first axis of size ``n_members``.
    """

    @abc.abstractmethod
    def aggregate(self, y: List[np.ndarray], weights: Optional[Sequence[float]] = None):
        """Fuses ``y``, one array of shape ``(n_rows, ...)`` per member.

        Args:
            y (List[np.ndarray]): the predictions of the members.
            weights (Sequence[float], optional): one weight per member. Defaults to ``None``.
        """

    @staticmethod
    def _stack(y, weights=None):
        if len(y) == 0:
            raise ValueError("No member predictions to aggregate.")
        if weights is not None and len(weights) != len(y):
            raise ValueError(
                f"Got {len(weights)} weights for {len(y)} members, they must be equal."
            )
        if not all(isinstance(y_member, np.ndarray) for y_member in y):
            raise TypeError("Every member prediction must be a numpy.ndarray or MaskedArray.")

        # the masked variants are used only when every member is masked
        xp = np.ma if all(isinstance(y_member, np.ma.MaskedArray) for y_member in y) else np
        return xp, xp.stack(y, axis=0)
