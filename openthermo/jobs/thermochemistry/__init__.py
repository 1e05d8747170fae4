"""
Thermochemistry jobs: dispatch, post-processing, scans and batch runs.

``process_file`` and ``process_batch`` are the entry points used by the
command line; both return a ``ThermoResult``.
"""

from .parallel import ResourceGovernor
from .runner import ThermoResult, process_batch, process_file
from .settings import ThermochemistryJobSettings

__all__ = [
    "ResourceGovernor",
    "ThermoResult",
    "ThermochemistryJobSettings",
    "process_batch",
    "process_file",
]
