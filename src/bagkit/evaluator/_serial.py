from bagkit.evaluator._evaluator import Evaluator


class SerialEvaluator(Evaluator):
    """Runs the jobs one after the other in the calling thread, in the order of their indices.

    With ``fail_fast`` the first failure stops the loop, so no job after it is started.
    """

    def _map(self, function, calls, fail_fast):
        for job, items in calls:
            self._on_launch(job)
            try:
                output = function(job.id, *items)
            except Exception as exception:
                job.set_exception(exception)
            else:
                job.set_output(output)
            self._on_done(job)

            if fail_fast and job.failed:
                break
