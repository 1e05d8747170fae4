import logging
import re
from functools import cached_property

import numpy as np

from openthermo.io.loaders.base import OutputLoader
from openthermo.utils.io import ProgramKind

logger = logging.getLogger(__name__)

qchem_energy_pattern = re.compile(
    r"Total energy in the final basis set\s*=\s*(-?\d+\.\d+)"
)
qchem_mass_pattern = re.compile(r"Element\s+\w+\s+Has Mass\s+(\d+\.\d+)")


class QChemLoader(OutputLoader):
    """Loader for Q-Chem output files."""

    PROGRAM = ProgramKind.QCHEM

    @cached_property
    def _last_orientation_block(self):
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line.startswith("Standard Nuclear Orientation")
        ]
        if not starts:
            return []
        block = []
        # column header and dashed line precede the rows
        for line in self.contents[starts[-1] + 3 :]:
            if line.startswith("---") or len(line) == 0:
                break
            block.append(line.split())
        return block

    @property
    def symbols(self):
        return [row[1] for row in self._last_orientation_block]

    @property
    def positions(self):
        return np.array(
            [
                [float(x) for x in row[2:5]]
                for row in self._last_orientation_block
            ]
        )

    @property
    def energy(self):
        energy = None
        for line in self.contents:
            match = qchem_energy_pattern.search(line)
            if match:
                energy = float(match.group(1))
        return energy

    @property
    def multiplicity(self):
        """Second integer of the first line after ``$molecule``."""
        for i, line in enumerate(self.contents):
            if line.lower() == "$molecule":
                line_elem = self.contents[i + 1].split()
                if len(line_elem) == 2 and all(
                    x.lstrip("-").isdigit() for x in line_elem
                ):
                    return int(line_elem[1])
        return 1

    @cached_property
    def frequencies(self):
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line == "VIBRATIONAL ANALYSIS"
        ]
        if not starts:
            return []
        frequencies = []
        for line in self.contents[starts[-1] :]:
            if line.startswith("Frequency:"):
                frequencies.extend(float(x) for x in line.split()[1:])
        logger.debug(f"Vibrational frequencies: {frequencies}")
        return frequencies

    @cached_property
    def file_masses(self):
        masses = []
        for line in self.contents:
            match = qchem_mass_pattern.search(line)
            if match:
                masses.append(float(match.group(1)))
        num_atoms = len(self._last_orientation_block)
        if not masses or num_atoms == 0:
            return None
        return masses[-num_atoms:]
