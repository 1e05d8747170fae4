import logging
import re
from functools import cached_property

import numpy as np

from openthermo.io.loaders.base import OutputLoader
from openthermo.io.record import MolecularRecord
from openthermo.utils.io import ProgramKind
from openthermo.utils.utils import LoadFailure

logger = logging.getLogger(__name__)

orca_mode_index_pattern = re.compile(r"^\d+:")


class OrcaLoader(OutputLoader):
    """
    Loader for ORCA output files.

    If the full parse fails, the file is scanned once more for the last
    ``FINAL SINGLE POINT ENERGY`` and an energy-only record (no
    frequencies) is returned.
    """

    PROGRAM = ProgramKind.ORCA

    @cached_property
    def _last_coordinate_block(self):
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line == "CARTESIAN COORDINATES (ANGSTROEM)"
        ]
        if not starts:
            return []
        block = []
        # header line is followed by a dashed line
        for line in self.contents[starts[-1] + 2 :]:
            if len(line) == 0:
                break
            block.append(line.split())
        return block

    @property
    def symbols(self):
        return [row[0] for row in self._last_coordinate_block]

    @property
    def positions(self):
        return np.array(
            [
                [float(x) for x in row[1:4]]
                for row in self._last_coordinate_block
            ]
        )

    @property
    def energy(self):
        energy = None
        for line in self.contents:
            if line.startswith("FINAL SINGLE POINT ENERGY"):
                energy = float(line.split()[-1])
        return energy

    @property
    def multiplicity(self):
        pattern = re.compile(r"Multiplicity\s+Mult")
        for line in self.contents:
            if pattern.search(line):
                return int(line.split()[-1])
        return 1

    @cached_property
    def frequencies(self):
        """
        Wavenumbers of the last ``VIBRATIONAL FREQUENCIES`` section, with
        the zero entries of translations and rotations removed.
        """
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line == "VIBRATIONAL FREQUENCIES"
        ]
        if not starts:
            return []
        frequencies = []
        for line in self.contents[starts[-1] + 1 :]:
            if line.startswith("NORMAL MODES") or line.startswith(
                "IR SPECTRUM"
            ):
                break
            if orca_mode_index_pattern.match(line):
                frequencies.append(float(line.split()[1]))
        logger.debug(
            f"Vibrational frequencies, including translations and rotations: "
            f"{frequencies}"
        )
        return [x for x in frequencies if x != 0.0]

    @cached_property
    def file_masses(self):
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line == "CARTESIAN COORDINATES (A.U.)"
        ]
        if not starts:
            return None
        masses = []
        # dashed line and column header precede the rows
        for line in self.contents[starts[-1] + 3 :]:
            if len(line) == 0:
                break
            masses.append(float(line.split()[4]))
        return masses or None

    def _energy_only_record(self):
        energy = None
        for line in reversed(self.contents):
            if line.startswith("FINAL SINGLE POINT ENERGY"):
                try:
                    energy = float(line.split()[-1])
                except ValueError:
                    continue
                break
        if energy is None:
            return None
        try:
            atoms = self._build_atoms()
        except (LoadFailure, ValueError, IndexError):
            return None
        if not atoms:
            return None
        return MolecularRecord(
            atoms=atoms,
            frequencies=(),
            energy=energy,
            multiplicity=1,
            program=self.PROGRAM,
            source=self.filename,
        )

    def load(self):
        try:
            return super().load()
        except LoadFailure as e:
            record = self._energy_only_record()
            if record is None:
                raise
            logger.warning(
                f"{e}. Using the last FINAL SINGLE POINT ENERGY "
                f"({record.energy} Hartree) without frequencies."
            )
            return record
