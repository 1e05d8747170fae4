"""
Classification and routing of input files.

The dispatcher decides what an input path is (a program output, a
checkpoint or a batch manifest) and hands it to the matching reader.
It never parses chemical content itself.
"""

import logging
import os

from openthermo.io.checkpoint import CheckpointFile
from openthermo.io.loaders import loader_for
from openthermo.utils.io import ProgramKind, classify_file
from openthermo.utils.utils import (
    InputNotFound,
    LoadFailure,
    UnsupportedFormat,
)

logger = logging.getLogger(__name__)


def classify(path):
    """
    Kind of an input file.

    Raises:
        InputNotFound: If ``path`` is not an existing file.
    """
    if not os.path.isfile(path):
        raise InputNotFound(f"Input file not found: {path}")
    return classify_file(path)


def dispatch(path):
    """
    Classify ``path`` and reject kinds that cannot be processed.

    Returns:
        ProgramKind: A program, ``CHECKPOINT`` or ``MANIFEST``.

    Raises:
        InputNotFound: If the file does not exist.
        UnsupportedFormat: If the file kind is unknown.
    """
    kind = classify(path)
    if kind == ProgramKind.UNKNOWN:
        raise UnsupportedFormat(
            f"Unsupported file format: {path}. Supported programs: "
            f"{', '.join(k.label for k in ProgramKind if k.is_program)}"
        )
    logger.debug(f"{path} classified as {kind.label}")
    return kind


def read_manifest(path):
    """
    Paths listed in a batch manifest, one per non-empty line.

    Relative entries that do not exist relative to the working directory
    are resolved against the manifest's directory.

    Raises:
        InputNotFound: If the manifest does not exist.
        LoadFailure: If the manifest lists no files.
    """
    if not os.path.isfile(path):
        raise InputNotFound(f"Manifest file not found: {path}")
    folder = os.path.dirname(os.path.abspath(path))
    paths = []
    with open(path, "r", errors="replace") as f:
        for line in f:
            entry = line.strip()
            if not entry:
                continue
            if not os.path.isabs(entry) and not os.path.exists(entry):
                candidate = os.path.join(folder, entry)
                if os.path.exists(candidate):
                    entry = candidate
            paths.append(entry)
    if not paths:
        raise LoadFailure(f"Manifest file {path} lists no input files")
    logger.info(f"Manifest {path} lists {len(paths)} files")
    return paths


def load_record(path, kind=None):
    """
    Molecular record of a program output or checkpoint file.

    Args:
        path (str): Input path.
        kind (ProgramKind, optional): Result of ``dispatch``; detected
            when omitted.

    Returns:
        MolecularRecord: Record as loaded, before post-processing.

    Raises:
        UnsupportedFormat: If ``path`` is a manifest or of unknown kind.
        LoadFailure: If the loader fails.
    """
    if kind is None:
        kind = dispatch(path)
    if kind == ProgramKind.CHECKPOINT:
        record = CheckpointFile(path).record
        logger.info(f"Loaded checkpoint {path}")
        return record.replace(source=path)
    if kind == ProgramKind.MANIFEST:
        raise UnsupportedFormat(
            f"{path} is a batch manifest, not a single input file"
        )
    if not kind.is_program:
        raise UnsupportedFormat(f"Unsupported file format: {path}")
    return loader_for(kind, path).load()
