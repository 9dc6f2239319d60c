from concurrent.futures import Executor, Future, as_completed

from bagkit.evaluator._evaluator import Evaluator
from bagkit.evaluator._job import JobStatus


class PoolEvaluator(Evaluator):
    """Base of the evaluators backed by a ``concurrent.futures.Executor``.

    All jobs are submitted at once in index order and collected as they complete. Executors
    start queued work in submission order, so when a job fails every job with a lower index has
    already started. Cancelling the queued futures at that point leaves the lowest failing index
    among the jobs that ran.
    """

    executor: Executor

    def _submit(self, function, *args) -> Future:
        return self.executor.submit(function, *args)

    def _map(self, function, calls, fail_fast):
        futures = {}
        for job, items in calls:
            futures[self._submit(function, job.id, *items)] = job
            self._on_launch(job)

        for future in as_completed(futures):
            job = futures[future]
            if future.cancelled():
                job.status = JobStatus.CANCELLED
                continue

            exception = future.exception()
            if exception is not None:
                job.set_exception(exception)
            else:
                job.set_output(future.result())
            self._on_done(job)

            if fail_fast and job.failed:
                for pending in futures:
                    pending.cancel()

    def close(self):
        self.executor.shutdown(wait=True, cancel_futures=True)
        super().close()
