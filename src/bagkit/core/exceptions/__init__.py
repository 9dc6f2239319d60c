"""Set of root exceptions for the package."""


class BaggingError(Exception):
    """Root of the errors raised by ``bagkit``."""


class InvalidArgumentError(BaggingError, ValueError):
    """Raised when a call receives malformed parameters, before any work is started."""


class ReplicateFailure(BaggingError, RuntimeError):
    """Raised when the fit or predict step of a bootstrap replicate failed.

    Args:
        index (int): the number of the failing replicate, from ``1``.
        cause (BaseException): the exception raised by the base learner.
    """

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(f"Replicate {index} failed: {type(cause).__name__}: {cause}")

    def __reduce__(self):
        return (type(self), (self.index, self.cause))
