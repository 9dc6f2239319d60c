import cloudpickle
from loky import get_reusable_executor

from bagkit.evaluator._evaluator import Evaluator
from bagkit.evaluator._pool import PoolEvaluator


def _call_cloudpickled(payload: bytes):
    function, args = cloudpickle.loads(payload)
    return function(*args)


class LokyEvaluator(PoolEvaluator):
    """Runs the jobs in the reusable process pool of ``loky``.

    Each call is serialized by value with ``cloudpickle``, so learners defined in a notebook or
    inside a function can be sent to the workers. The pool stays alive after ``close`` and is
    reused by the next ``LokyEvaluator`` with the same number of workers.

    Args:
        run_function (callable): the function called for each index.
        num_workers (int, optional): number of processes. Defaults to ``1``.
        callbacks (list, optional): callbacks of the evaluator. Defaults to ``None``.
    """

    def __init__(self, run_function, num_workers: int = 1, callbacks: list = None):
        super().__init__(run_function, num_workers=num_workers, callbacks=callbacks)
        self.executor = get_reusable_executor(max_workers=self.num_workers)

    def _submit(self, function, *args):
        return self.executor.submit(_call_cloudpickled, cloudpickle.dumps((function, args)))

    def close(self):
        Evaluator.close(self)
