"""Evaluator subpackage.

An ``Evaluator`` maps a function over job indices, one after the other or in parallel, and
records for each index either its output or the exception it raised. Bootstrap replicates and
the predictions of ensemble members are run this way.

The main entry point is ``Evaluator.create(run_function, method, method_kwargs)`` where
``method`` is one of ``"serial"``, ``"thread"``, ``"process"`` or ``"loky"``.
"""

from bagkit.evaluator._evaluator import EVALUATORS, Evaluator
from bagkit.evaluator._job import Job, JobStatus
from bagkit.evaluator._loky import LokyEvaluator
from bagkit.evaluator._pool import PoolEvaluator
from bagkit.evaluator._process_pool import ProcessPoolEvaluator
from bagkit.evaluator._serial import SerialEvaluator
from bagkit.evaluator._thread_pool import ThreadPoolEvaluator

__all__ = [
    "EVALUATORS",
    "Evaluator",
    "Job",
    "JobStatus",
    "LokyEvaluator",
    "PoolEvaluator",
    "ProcessPoolEvaluator",
    "SerialEvaluator",
    "ThreadPoolEvaluator",
]
