from concurrent.futures import ThreadPoolExecutor

from bagkit.evaluator._pool import PoolEvaluator


class ThreadPoolEvaluator(PoolEvaluator):
    """Runs the jobs in a ``ThreadPoolExecutor``.

    Worth it when the run function releases the GIL, as NumPy and scikit-learn do in most of
    their numerical kernels. The run function and its arguments are shared, not copied, so a
    learner must not keep per-fit state on itself.

    Args:
        run_function (callable): the function called for each index.
        num_workers (int, optional): number of threads. Defaults to ``1``.
        callbacks (list, optional): callbacks of the evaluator. Defaults to ``None``.
    """

    def __init__(self, run_function, num_workers: int = 1, callbacks: list = None):
        super().__init__(run_function, num_workers=num_workers, callbacks=callbacks)
        self.executor = ThreadPoolExecutor(max_workers=self.num_workers)
