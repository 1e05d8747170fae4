import functools
import logging

import click

logger = logging.getLogger(__name__)


def logger_options(f):
    """Logging and verbosity options."""

    @click.option(
        "-d",
        "--debug/--no-debug",
        default=False,
        help="Turn on debug logging regardless of the print level.",
    )
    @click.option(
        "--stream/--no-stream",
        default=True,
        help="Turn on logging to stdout.",
    )
    @click.option(
        "--logfile",
        default=None,
        type=str,
        help="Also write the log to this file.",
    )
    @click.option(
        "--prtlevel",
        default=None,
        type=click.IntRange(0, 3),
        help="Print level: 0 quiet, 1 normal, 2 adds geometry details, "
        "3 adds per-mode contributions.  [default: 1]",
    )
    @functools.wraps(f)
    def wrapper_logger_options(*args, **kwargs):
        return f(*args, **kwargs)

    return wrapper_logger_options


def setup_logging(debug=False, stream=True, logfile=None, prtlevel=1):
    """Configure the root logger for one command-line invocation."""
    from openthermo.utils.logger import create_logger

    return create_logger(
        debug=debug,
        stream=stream,
        logfile=logfile,
        prtlevel=prtlevel,
        disable=["pymatgen", "joblib"],
    )
