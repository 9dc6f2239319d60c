from concurrent.futures import ProcessPoolExecutor

from bagkit.evaluator._pool import PoolEvaluator


class ProcessPoolEvaluator(PoolEvaluator):
    """Runs the jobs in a ``ProcessPoolExecutor``.

    The run function, its arguments and its outputs cross process boundaries with ``pickle``, so
    learners and predictors must be defined at module level. Use the ``"loky"`` backend for
    objects defined interactively.

    Args:
        run_function (callable): the function called for each index.
        num_workers (int, optional): number of processes. Defaults to ``1``.
        callbacks (list, optional): callbacks of the evaluator. Defaults to ``None``.
    """

    def __init__(self, run_function, num_workers: int = 1, callbacks: list = None):
        super().__init__(run_function, num_workers=num_workers, callbacks=callbacks)
        self.executor = ProcessPoolExecutor(max_workers=self.num_workers)
