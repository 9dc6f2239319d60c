import abc
import functools
import importlib
import logging
import time
from typing import Callable, Dict, Iterable, List, Optional

from bagkit.evaluator._job import Job, JobStatus

logger = logging.getLogger(__name__)

EVALUATORS = {
    "loky": "_loky.LokyEvaluator",
    "process": "_process_pool.ProcessPoolEvaluator",
    "serial": "_serial.SerialEvaluator",
    "thread": "_thread_pool.ThreadPoolEvaluator",
}


class Evaluator(abc.ABC):
    """Maps a run function over job indices with a given execution backend.

    ``run_function(index, *items, **kwargs)`` is called once per index. Its return value, or the
    exception it raised, is recorded in the ``Job`` of that index. An exception never escapes
    ``map``; the caller decides what a failed job means.

    Args:
        run_function (callable): the function called for each index.
        num_workers (int, optional): number of jobs that may run at the same time. Defaults to
            ``1``.
        callbacks (list, optional): ``Callback`` objects notified when jobs are launched and
            done, and when the evaluator is closed. Defaults to ``None``.
    """

    def __init__(
        self,
        run_function: Callable,
        num_workers: int = 1,
        callbacks: Optional[list] = None,
    ):
        if not isinstance(num_workers, int) or num_workers < 1:
            raise ValueError(f"num_workers must be a positive integer, got {num_workers!r}")

        self.run_function = run_function
        self.num_workers = num_workers
        self.jobs: List[Job] = []
        self.timestamp = time.time()
        self._callbacks = [] if callbacks is None else callbacks

        logger.info(
            f"{type(self).__name__} with {num_workers} worker(s) will execute "
            f"{getattr(run_function, '__qualname__', run_function)}"
        )

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.close()

    @staticmethod
    def create(run_function, method="serial", method_kwargs: Optional[Dict] = None) -> "Evaluator":
        """Creates an evaluator from the name of its backend.

        Args:
            run_function (callable): the function called for each index.
            method (str, optional): one of ``"serial"``, ``"thread"``, ``"process"`` or
                ``"loky"``. Defaults to ``"serial"``.
            method_kwargs (dict, optional): keyword arguments of the backend class, such as
                ``num_workers`` or ``callbacks``. Defaults to ``None``.

        Raises:
            ValueError: if ``method`` is not a known backend.
        """
        method_kwargs = {} if method_kwargs is None else method_kwargs

        if method not in EVALUATORS:
            raise ValueError(
                f'The method "{method}" is not a valid method for an Evaluator! '
                f"Choose among: {', '.join(EVALUATORS)}."
            )

        mod_name, attr_name = EVALUATORS[method].split(".")
        mod = importlib.import_module(f"bagkit.evaluator.{mod_name}")
        return getattr(mod, attr_name)(run_function, **method_kwargs)

    def map(
        self, indices: Iterable[int], *iterables, fail_fast: bool = True, **kwargs
    ) -> List[Job]:
        """Calls ``run_function(index, *items, **kwargs)`` for each index.

        Like the builtin ``map``, the extra ``iterables`` are zipped with ``indices``.

        Args:
            indices (Iterable[int]): the job identifiers, passed as first argument.
            *iterables: per-job positional arguments.
            fail_fast (bool, optional): once a job failed, jobs that did not start yet are
                cancelled. Jobs already running still finish. Defaults to ``True``.
            **kwargs: keyword arguments shared by every call.

        Returns:
            List[Job]: one job per index, in the order of ``indices``.
        """
        function = functools.partial(self.run_function, **kwargs) if kwargs else self.run_function
        calls = [(Job(index), items) for index, *items in zip(indices, *iterables)]
        jobs = [job for job, _ in calls]
        self.jobs.extend(jobs)

        logger.info(f"{type(self).__name__} maps {len(jobs)} job(s)")
        self._map(function, calls, fail_fast)

        for job in jobs:
            if job.status is JobStatus.READY:
                job.status = JobStatus.CANCELLED
        n_cancelled = sum(job.status is JobStatus.CANCELLED for job in jobs)
        logger.info(
            f"{type(self).__name__} done - {sum(job.failed for job in jobs)} failed, "
            f"{n_cancelled} cancelled"
        )

        finished = [job for job in jobs if job.status is not JobStatus.CANCELLED]
        for cb in self._callbacks:
            cb.on_gather(finished)

        return jobs

    @abc.abstractmethod
    def _map(self, function: Callable, calls: list, fail_fast: bool):
        """Runs ``function(job.id, *items)`` for each ``(job, items)`` of ``calls``.

        Implementations call ``_on_launch`` and ``_on_done`` and leave the jobs they never
        started as ``READY``.
        """

    def _on_launch(self, job: Job):
        job.status = JobStatus.RUNNING
        job.metadata["timestamp_submit"] = time.time() - self.timestamp
        for cb in self._callbacks:
            cb.on_launch(job)

    def _on_done(self, job: Job):
        job.metadata["timestamp_done"] = time.time() - self.timestamp
        for cb in self._callbacks:
            cb.on_done(job)

    def close(self):
        """Releases the workers of the backend and closes the callbacks."""
        for cb in self._callbacks:
            cb.on_close()
        logger.info(f"{type(self).__name__} closed")
