from enum import Enum
from typing import Any, Optional


class JobStatus(Enum):
    """Life cycle of a job inside an ``Evaluator.map`` call."""

    READY = 0
    RUNNING = 1
    DONE = 2
    FAILED = 3
    CANCELLED = 4  # never started because an earlier job failed


class Job:
    """Outcome of one call of the run function.

    Args:
        id (int): the index passed as first argument to the run function, e.g. the replicate
            number.
    """

    def __init__(self, id: int):
        self.id = id
        self.status = JobStatus.READY
        self.output = None
        self.exception: Optional[BaseException] = None
        self.metadata = {}

    def __repr__(self) -> str:
        return f"Job(id={self.id}, status={self.status.name})"

    @property
    def failed(self) -> bool:
        return self.status is JobStatus.FAILED

    def set_output(self, output: Any):
        self.output = output
        self.status = JobStatus.DONE

    def set_exception(self, exception: BaseException):
        self.exception = exception
        self.status = JobStatus.FAILED
