"""
Resource governor shared by single-file and batch runs.

Bounds memory and open file handles, reconciles thread requests with
the cores this job may use, collects diagnostics from worker threads and
carries the cooperative cancellation flag.
"""

import logging
import threading
from contextlib import contextmanager

import psutil

from openthermo.utils.cluster import get_job_resources

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_MB = 4096
MIN_MEMORY_MB = 512
MAX_MEMORY_MB = 65536
DEFAULT_MAX_FILE_HANDLES = 100

# fraction of system memory by thread count, checked in order
MEMORY_FRACTIONS = ((4, 0.3), (8, 0.4), (16, 0.5))
LARGE_THREAD_MEMORY_FRACTION = 0.6
SCHEDULER_MEMORY_FACTOR = 0.7
SCHEDULER_MEMORY_OVERHEAD = 0.95


def _clamp_memory_mb(memory_mb):
    return int(min(max(memory_mb, MIN_MEMORY_MB), MAX_MEMORY_MB))


def format_memory_size(num_bytes):
    """Human-readable size with two decimals, e.g. ``1.50 GB``."""
    size = float(num_bytes)
    units = ["B", "KB", "MB", "GB"]
    unit = 0
    while size >= 1024.0 and unit < len(units) - 1:
        size /= 1024.0
        unit += 1
    return f"{size:.2f} {units[unit]}"


class MemoryMonitor:
    """
    Thread-safe tracker of memory reserved by concurrent tasks.

    Args:
        max_memory_mb (int): Ceiling in MB.
    """

    def __init__(self, max_memory_mb=DEFAULT_MEMORY_MB):
        self._lock = threading.Lock()
        self.max_bytes = int(max_memory_mb) * 1024 * 1024
        self.current_bytes = 0
        self.peak_bytes = 0

    def can_allocate(self, num_bytes):
        with self._lock:
            return self.current_bytes + num_bytes < self.max_bytes

    def add_usage(self, num_bytes):
        with self._lock:
            self.current_bytes += num_bytes
            self.peak_bytes = max(self.peak_bytes, self.current_bytes)

    def remove_usage(self, num_bytes):
        with self._lock:
            self.current_bytes = max(0, self.current_bytes - num_bytes)

    @property
    def current_usage(self):
        return self.current_bytes

    @property
    def peak_usage(self):
        return self.peak_bytes

    @property
    def max_usage(self):
        return self.max_bytes

    def set_memory_limit(self, max_memory_mb):
        with self._lock:
            self.max_bytes = int(max_memory_mb) * 1024 * 1024

    @contextmanager
    def reserve(self, num_bytes):
        """Hold ``num_bytes`` for the duration of the block."""
        self.add_usage(num_bytes)
        try:
            yield
        finally:
            self.remove_usage(num_bytes)

    @staticmethod
    def system_memory_mb():
        """Total physical memory in MB."""
        try:
            return int(psutil.virtual_memory().total // (1024 * 1024))
        except (OSError, RuntimeError) as e:
            logger.debug(f"Cannot read system memory: {e}")
            return DEFAULT_MEMORY_MB

    @classmethod
    def calculate_optimal_memory_limit(
        cls, thread_count, system_memory_mb=0, scheduler=None
    ):
        """
        Default ceiling: a share of system memory that grows with the
        thread count (30% up to 4 threads, 40% up to 8, 50% up to 16, 60%
        above), times 0.7 inside a batch-scheduler job, clamped to
        [512 MB, 64 GB].
        """
        if not system_memory_mb:
            system_memory_mb = cls.system_memory_mb()
        fraction = LARGE_THREAD_MEMORY_FRACTION
        for max_threads, thread_fraction in MEMORY_FRACTIONS:
            if thread_count <= max_threads:
                fraction = thread_fraction
                break
        if scheduler is not None:
            fraction *= SCHEDULER_MEMORY_FACTOR
        return _clamp_memory_mb(system_memory_mb * fraction)


def calculate_safe_memory_limit(requested_mb, thread_count, job_resources):
    """
    Memory ceiling for a run.

    Args:
        requested_mb (int): Requested ceiling; 0 selects the default.
        thread_count (int): Worker threads of the run.
        job_resources (JobResources): Detected host and scheduler
            resources.

    Returns:
        int: Ceiling in MB, at most 95% of a scheduler allocation.
    """
    memory_mb = requested_mb
    if not requested_mb:
        memory_mb = MemoryMonitor.calculate_optimal_memory_limit(
            thread_count, scheduler=job_resources.scheduler
        )
    if job_resources.has_memory_limit:
        memory_mb = min(
            memory_mb,
            int(job_resources.allocated_memory_mb * SCHEDULER_MEMORY_OVERHEAD),
        )
    return _clamp_memory_mb(memory_mb)


class FileHandleThrottle:
    """
    Bounds the number of files open at once.

    Use as ``with throttle:``; the slot is released on exit whether or
    not the block raised.
    """

    def __init__(self, max_handles=DEFAULT_MAX_FILE_HANDLES):
        self.max_handles = max_handles
        self._semaphore = threading.BoundedSemaphore(max_handles)

    def __enter__(self):
        self._semaphore.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self._semaphore.release()
        return False


class ErrorCollector:
    """Errors and warnings gathered from concurrent tasks."""

    def __init__(self):
        self._lock = threading.Lock()
        self._errors = []
        self._warnings = []

    def add_error(self, error):
        with self._lock:
            self._errors.append(error)

    def add_warning(self, warning):
        with self._lock:
            self._warnings.append(warning)

    @property
    def errors(self):
        with self._lock:
            return list(self._errors)

    @property
    def warnings(self):
        with self._lock:
            return list(self._warnings)

    def has_errors(self):
        with self._lock:
            return bool(self._errors)

    def clear(self):
        with self._lock:
            self._errors.clear()
            self._warnings.clear()


class CancellationToken:
    """Cooperative cancellation flag polled between files."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()


def reconcile_threads(requested, job_resources=None):
    """
    Number of worker threads to use.

    A request of 0 selects the safe maximum. A request above it is
    reduced, and the reduction is always logged.

    Args:
        requested (int): Requested thread count.
        job_resources (JobResources, optional): Detected resources;
            probed when omitted.

    Returns:
        int: Thread count, at least 1.
    """
    if job_resources is None:
        job_resources = get_job_resources()
    safe_max = job_resources.max_threads
    if not requested or requested <= 0:
        return safe_max
    if requested > safe_max:
        source = (
            f"allocated by {job_resources.scheduler}"
            if job_resources.allocated_cores
            else "physical"
        )
        logger.warning(
            f"Requested {requested} threads but only {safe_max} "
            f"{source} cores are available; using {safe_max} threads."
        )
        return safe_max
    return int(requested)


class ResourceGovernor:
    """
    Budgets shared by all tasks of one invocation.

    Args:
        threads (int): Requested thread count, 0 for automatic.
        memory_mb (int): Requested memory ceiling, 0 for automatic.
        max_file_handles (int): Concurrently open files.
        job_resources (JobResources, optional): Detected resources.
        cancellation (CancellationToken, optional): Shared flag.
    """

    def __init__(
        self,
        threads=0,
        memory_mb=0,
        max_file_handles=DEFAULT_MAX_FILE_HANDLES,
        job_resources=None,
        cancellation=None,
    ):
        self.job_resources = job_resources or get_job_resources()
        self.threads = reconcile_threads(threads, self.job_resources)
        self.memory = MemoryMonitor(
            calculate_safe_memory_limit(
                memory_mb, self.threads, self.job_resources
            )
        )
        self.file_handles = FileHandleThrottle(max_file_handles)
        self.collector = ErrorCollector()
        self.cancellation = cancellation or CancellationToken()
        logger.debug(
            f"Resource governor: {self.threads} threads, memory ceiling "
            f"{format_memory_size(self.memory.max_usage)}"
        )

    def split_threads(self, num_tasks):
        """
        Divide the thread budget between tasks running concurrently and
        the threads each task may use internally.

        Returns:
            tuple[int, int]: (outer workers, inner threads per worker)
        """
        outer = max(1, min(self.threads, num_tasks))
        inner = max(1, self.threads // outer)
        return outer, inner
