"""Utils for cluster-related stuff.

Reports the cores and memory a run may use: physical cores of the host
and, when running inside a SLURM, PBS/Torque, SGE or LSF job, the cores
and memory the scheduler allocated.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import psutil

logger = logging.getLogger(__name__)

SCHEDULER_JOB_ID_VARS = {
    "SLURM": "SLURM_JOB_ID",
    "PBS": "PBS_JOBID",
    "SGE": "SGE_JOB_ID",
    "LSF": "LSB_JOBID",
}

THREAD_ENV_VARS = (
    "OMP_NUM_THREADS",
    "MKL_NUM_THREADS",
    "OPENBLAS_NUM_THREADS",
)


@dataclass(frozen=True)
class JobResources:
    """Cores and memory available to this process."""

    physical_cores: int
    logical_cores: int
    scheduler: Optional[str] = None
    allocated_cores: int = 0
    allocated_memory_mb: int = 0

    @property
    def has_memory_limit(self):
        return self.allocated_memory_mb > 0

    @property
    def max_threads(self):
        """Largest thread count that does not oversubscribe the job."""
        if self.allocated_cores > 0:
            return self.allocated_cores
        return max(1, self.physical_cores or self.logical_cores or 1)


def detect_scheduler(environ=None):
    """Return the name of the batch scheduler running this job, or None."""
    environ = os.environ if environ is None else environ
    for scheduler, variable in SCHEDULER_JOB_ID_VARS.items():
        if environ.get(variable):
            return scheduler
    return None


def _int_from_env(environ, *names):
    for name in names:
        value = environ.get(name)
        if not value:
            continue
        try:
            # SLURM_JOB_CPUS_PER_NODE may read "8(x2)"
            return int(value.split("(")[0].split(",")[0])
        except ValueError:
            logger.debug(f"Ignoring non-integer {name}={value}")
    return 0


def _memory_mb_from_slurm(environ, cores):
    per_node = _int_from_env(environ, "SLURM_MEM_PER_NODE")
    if per_node:
        return per_node
    per_cpu = _int_from_env(environ, "SLURM_MEM_PER_CPU")
    if per_cpu:
        return per_cpu * max(cores, 1)
    return 0


def allocated_cores(scheduler, environ=None):
    """Cores granted by the scheduler, 0 if unknown."""
    environ = os.environ if environ is None else environ
    if scheduler == "SLURM":
        return _int_from_env(
            environ,
            "SLURM_CPUS_PER_TASK",
            "SLURM_JOB_CPUS_PER_NODE",
            "SLURM_NTASKS",
        )
    if scheduler == "PBS":
        return _int_from_env(environ, "PBS_NUM_PPN", "NCPUS", "PBS_NP")
    if scheduler == "SGE":
        return _int_from_env(environ, "NSLOTS")
    if scheduler == "LSF":
        return _int_from_env(environ, "LSB_DJOB_NUMPROC")
    return 0


def get_job_resources(environ=None):
    """
    Probe the host and scheduler environment.

    Args:
        environ (dict, optional): Environment mapping, ``os.environ`` by
            default.

    Returns:
        JobResources: Detected cores and memory allocation.
    """
    environ = os.environ if environ is None else environ
    physical = psutil.cpu_count(logical=False) or 0
    logical = psutil.cpu_count(logical=True) or 0
    scheduler = detect_scheduler(environ)
    cores = allocated_cores(scheduler, environ)
    memory_mb = (
        _memory_mb_from_slurm(environ, cores) if scheduler == "SLURM" else 0
    )
    resources = JobResources(
        physical_cores=physical,
        logical_cores=logical,
        scheduler=scheduler,
        allocated_cores=cores,
        allocated_memory_mb=memory_mb,
    )
    logger.debug(f"Job resources: {resources}")
    return resources


def thread_env_request(environ=None):
    """Thread count requested through OMP_NUM_THREADS and friends, or 0."""
    environ = os.environ if environ is None else environ
    return _int_from_env(environ, *THREAD_ENV_VARS)
