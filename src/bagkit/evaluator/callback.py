"""Callbacks follow the jobs of an ``Evaluator``.

A callback is passed to ``BootstrapEnsemble(..., callbacks=[...])`` or to an evaluator through
``method_kwargs={"callbacks": [...]}``. Its hooks run in the calling thread, whatever the
backend.
"""

import abc
import logging
from typing import List

from bagkit.evaluator._job import Job
from bagkit.evaluator.utils import in_notebook

if in_notebook():
    from tqdm.notebook import tqdm
else:
    from tqdm import tqdm

__all__ = ["Callback", "LoggerCallback", "TqdmCallback"]

logger = logging.getLogger(__name__)


class Callback(abc.ABC):
    """Hooks of an evaluator, all optional."""

    def on_launch(self, job: Job):
        """A job was handed to the backend."""

    def on_done(self, job: Job):
        """A job finished, with an output or an exception."""

    def on_gather(self, jobs: List[Job]):
        """A ``map`` call returned; ``jobs`` are the ones that ran."""

    def on_close(self):
        """The evaluator was closed."""


class LoggerCallback(Callback):
    """Logs one line per finished job.

    >>> BootstrapEnsemble(learner, callbacks=[LoggerCallback()])

    Args:
        level (int, optional): the logging level of the messages. Defaults to ``logging.INFO``.
    """

    def __init__(self, level: int = logging.INFO):
        self.level = level
        self._n_done = 0

    def on_done(self, job):
        self._n_done += 1
        if job.failed:
            outcome = f"failed with {type(job.exception).__name__}: {job.exception}"
        else:
            outcome = "done"
        logger.log(self.level, f"[{self._n_done:05d}] -- Job {job.id} {outcome}")


class TqdmCallback(Callback):
    """Progress bar of the finished jobs, with the number of failures as postfix.

    >>> BootstrapEnsemble(learner, callbacks=[TqdmCallback()])

    Args:
        description (str, optional): text in front of the bar. Defaults to ``"replicates"``.
    """

    def __init__(self, description: str = "replicates"):
        self._description = description
        self._n_launched = 0
        self._n_failures = 0
        self._tqdm = None

    def on_launch(self, job):
        self._n_launched += 1
        if self._tqdm is None:
            self._tqdm = tqdm(desc=self._description, total=0)
        self._tqdm.total = self._n_launched
        self._tqdm.refresh()

    def on_done(self, job):
        if job.failed:
            self._n_failures += 1
            self._tqdm.set_postfix({"failures": self._n_failures})
        self._tqdm.update(1)

    def on_close(self):
        if self._tqdm is not None:
            self._tqdm.close()
            self._tqdm = None
