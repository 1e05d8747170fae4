"""
Checkpoint (.otm) files: a YAML snapshot of a populated molecular record
that can be reloaded without re-parsing the program output.
"""

import logging
import os

import yaml

from openthermo.io.record import MolecularRecord
from openthermo.utils.mixins import YAMLFileMixin
from openthermo.utils.utils import LoadFailure, OutputWriteFailure

logger = logging.getLogger(__name__)

OTM_HEADER = "# openthermo checkpoint\n"


class CheckpointFile(YAMLFileMixin):
    """Reader for .otm checkpoint files."""

    def __init__(self, filename):
        self.filename = filename

    @property
    def record(self):
        """The stored record, with ``program`` kept from the original file."""
        try:
            data = self.yaml_contents_dict
        except yaml.YAMLError as e:
            raise LoadFailure(
                f"Cannot parse checkpoint file {self.filename}: {e}"
            ) from e
        if not isinstance(data, dict) or "atoms" not in data:
            raise LoadFailure(
                f"Checkpoint file {self.filename} has no molecular record."
            )
        try:
            record = MolecularRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise LoadFailure(
                f"Malformed checkpoint file {self.filename}: {e}"
            ) from e
        logger.debug(
            f"Loaded checkpoint {self.filename}: {record.num_atoms} atoms, "
            f"{record.num_frequencies} frequencies"
        )
        return record


def checkpoint_filename(record, folder=None):
    """``<basename>.otm`` next to the record's source, or in ``folder``."""
    basename = os.path.splitext(os.path.basename(record.source))[0]
    folder = folder or os.path.dirname(os.path.abspath(record.source))
    return os.path.join(folder, f"{basename}.otm")


def write_checkpoint(record, filename=None):
    """
    Serialize a record to a .otm file.

    Args:
        record (MolecularRecord): Populated record.
        filename (str, optional): Target path; defaults to
            ``checkpoint_filename(record)``.

    Returns:
        str: Path of the written file.

    Raises:
        OutputWriteFailure: If the file cannot be written.
    """
    if filename is None:
        filename = checkpoint_filename(record)
    data = record.to_dict()
    try:
        with open(filename, "w") as f:
            f.write(OTM_HEADER)
            yaml.safe_dump(data, f, sort_keys=False, default_flow_style=None)
    except OSError as e:
        raise OutputWriteFailure(
            f"Cannot write checkpoint file {filename}: {e}"
        ) from e
    logger.info(f"Checkpoint written to {filename}")
    return filename
