"""
General utilities shared across openthermo.

Holds the exception taxonomy raised by loaders, the analyzer, the
calculator and the scan writer, together with small string helpers used
by the output parsers.
"""

import logging

logger = logging.getLogger(__name__)


class ThermochemistryError(Exception):
    """Base class for errors raised while processing an input file."""

    pass


class InputNotFound(ThermochemistryError):
    """The input file does not exist."""

    pass


class UnsupportedFormat(ThermochemistryError):
    """
    The file is neither a recognised program output, a checkpoint nor a
    batch manifest.
    """

    pass


class LoadFailure(ThermochemistryError):
    """A loader failed while parsing an output file."""

    pass


class NoAtomsLoaded(ThermochemistryError):
    """Geometry or thermochemistry was requested without atoms."""

    pass


class InvalidConfiguration(ThermochemistryError):
    """
    Settings are inconsistent.

    Some instances are downgraded to warnings by the caller, e.g. a Bav
    preset requested under a treatment that does not use it.
    """

    pass


class OutputWriteFailure(ThermochemistryError):
    """An output stream could not be opened or written."""

    pass


def fortran_float(string):
    """
    Convert a Fortran-formatted number, e.g. ``-0.12D+02``, to float.
    """
    return float(string.replace("D", "E").replace("d", "e"))

