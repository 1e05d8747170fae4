"""
Input classification helpers.

Identifies which quantum chemistry program wrote an output file from
characteristic signature lines, and recognises checkpoint and batch
manifest files by extension.
"""

import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)

# number of leading lines inspected when detecting the program
MAX_DETECTION_LINES = 200

CHECKPOINT_EXTENSIONS = (".otm",)
MANIFEST_EXTENSIONS = (".list", ".txt")


class ProgramKind(str, Enum):
    """Closed set of input kinds understood by the dispatcher."""

    GAUSSIAN = "gaussian"
    ORCA = "orca"
    GAMESS = "gamess"
    NWCHEM = "nwchem"
    CP2K = "cp2k"
    VASP = "vasp"
    XTB = "xtb"
    QCHEM = "qchem"
    CHECKPOINT = "checkpoint"
    MANIFEST = "manifest"
    UNKNOWN = "unknown"

    @property
    def is_program(self):
        return self not in (
            ProgramKind.CHECKPOINT,
            ProgramKind.MANIFEST,
            ProgramKind.UNKNOWN,
        )

    @property
    def label(self):
        return PROGRAM_LABELS.get(self, self.value)


PROGRAM_LABELS = {
    ProgramKind.GAUSSIAN: "Gaussian",
    ProgramKind.ORCA: "ORCA",
    ProgramKind.GAMESS: "GAMESS-US",
    ProgramKind.NWCHEM: "NWChem",
    ProgramKind.CP2K: "CP2K",
    ProgramKind.VASP: "VASP",
    ProgramKind.XTB: "xtb",
    ProgramKind.QCHEM: "Q-Chem",
}

# Signatures in order of precedence: xtb writes its g98.out in Gaussian
# format, so it must win over the Gaussian banner.
PROGRAM_SIGNATURES = {
    ProgramKind.XTB: [
        "xtb code",
        "x T B",
        "xtb version",
        "xtb is free software:",
    ],
    ProgramKind.QCHEM: [
        "Welcome to Q-Chem",
        "Q-Chem, Inc.",
    ],
    ProgramKind.ORCA: [
        "* O   R   C   A *",
        "Your ORCA version",
        "ORCA versions",
    ],
    ProgramKind.GAMESS: [
        "GAMESS VERSION",
        "GAMESS(US)",
    ],
    ProgramKind.NWCHEM: [
        "Northwest Computational Chemistry Package",
        "NWChem",
    ],
    ProgramKind.CP2K: [
        "CP2K|",
        "CP2K version",
    ],
    ProgramKind.GAUSSIAN: [
        "Entering Gaussian System",
        "Gaussian, Inc.",
        "Gaussian(R)",
    ],
}


def match_outfile_pattern(line):
    """
    Match a line of text to known quantum chemistry program signatures.

    Args:
        line (str): Line from an output file.

    Returns:
        ProgramKind | None: Matched program, else None.
    """
    for program, keywords in PROGRAM_SIGNATURES.items():
        if any(keyword in line for keyword in keywords):
            return program
    # VASP OUTCAR opens with e.g. "vasp.6.3.0 18Jan22 (build ..."
    if line.startswith("vasp.") or line.startswith("POTCAR:"):
        return ProgramKind.VASP
    return None


def get_outfile_format(filepath):
    """
    Detect the program that wrote an output file.

    Reads only the first ``MAX_DETECTION_LINES`` lines. All signatures
    found are collected and the one with highest precedence wins.

    Args:
        filepath (str): Path to the output file.

    Returns:
        ProgramKind: Detected program, or ``ProgramKind.UNKNOWN``.
    """
    found = set()
    with open(filepath, "r", errors="replace") as f:
        for i, line in enumerate(f):
            if i >= MAX_DETECTION_LINES:
                break
            stripped = line.strip()
            if not stripped:
                continue
            program = match_outfile_pattern(stripped)
            if program is not None:
                found.add(program)

    for program in list(PROGRAM_SIGNATURES) + [ProgramKind.VASP]:
        if program in found:
            logger.debug(
                f"Detected output format for "
                f"'{os.path.basename(filepath)}': {program.label}."
            )
            return program

    logger.debug(
        f"Could not detect output format for '{os.path.basename(filepath)}'."
    )
    return ProgramKind.UNKNOWN


def classify_file(filepath):
    """
    Classify an input path into exactly one ``ProgramKind``.

    Checkpoint and manifest files are recognised by extension; everything
    else by content.
    """
    extension = os.path.splitext(filepath)[1].lower()
    if extension in CHECKPOINT_EXTENSIONS:
        return ProgramKind.CHECKPOINT
    if extension in MANIFEST_EXTENSIONS:
        return ProgramKind.MANIFEST
    return get_outfile_format(filepath)


def find_output_files_in_directory(directory, suffixes=(".log", ".out")):
    """
    List output files with the given suffixes in a directory, sorted by
    name. Subdirectories are not searched.
    """
    directory = os.path.abspath(directory)
    outfiles = [
        os.path.join(directory, file)
        for file in sorted(os.listdir(directory))
        if file.endswith(tuple(suffixes))
        and os.path.isfile(os.path.join(directory, file))
    ]
    logger.debug(f"Found {len(outfiles)} output files in {directory}")
    return outfiles
