"""Bootstrap aggregation of arbitrary learners.

The main entry points are ``bagkit.ensemble.BootstrapEnsemble`` and
``bagkit.ensemble.bootstrap_ensemble``. Learners are wrapped behind the ``bagkit.learner.Learner``
interface and data is passed as ``bagkit.data.Dataset``.
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
