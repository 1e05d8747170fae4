import logging
import re
from functools import cached_property

import numpy as np

from openthermo.io.loaders.base import OutputLoader
from openthermo.utils.constants import bohr_to_angstrom
from openthermo.utils.io import ProgramKind
from openthermo.utils.periodictable import PeriodicTable

logger = logging.getLogger(__name__)

pt = PeriodicTable()

gamess_energy_pattern = re.compile(r"FINAL\s+\S+\s+ENERGY IS\s+(-?\d+\.\d+)")
gamess_multiplicity_pattern = re.compile(r"SPIN MULTIPLICITY\s+=\s+(\d+)")
gamess_trans_rot_pattern = re.compile(
    r"MODES\s+(\d+)\s+TO\s+(\d+)\s+ARE TAKEN AS ROTATIONS AND TRANSLATIONS"
)


def _block_after(lines, start):
    block = []
    for line in lines[start:]:
        if len(line) == 0 or line.startswith("---"):
            break
        block.append(line.split())
    return block


class GamessLoader(OutputLoader):
    """
    Loader for GAMESS-US output files.

    Atom labels in GAMESS are free-form, so elements are taken from the
    nuclear charge column.
    """

    PROGRAM = ProgramKind.GAMESS

    @cached_property
    def _coordinate_rows(self):
        """Rows of (charge, x, y, z) in Angstrom from the last geometry."""
        optimized = [
            i
            for i, line in enumerate(self.contents)
            if line.startswith("COORDINATES OF ALL ATOMS ARE (ANGS)")
        ]
        if optimized:
            # column header and dashed line precede the rows
            block = _block_after(self.contents, optimized[-1] + 3)
            return [
                (float(row[1]), [float(x) for x in row[2:5]]) for row in block
            ]
        initial = [
            i
            for i, line in enumerate(self.contents)
            if line.startswith("ATOM") and "COORDINATES (BOHR)" in line
        ]
        if not initial:
            return []
        block = _block_after(self.contents, initial[-1] + 2)
        return [
            (
                float(row[1]),
                [float(x) * bohr_to_angstrom for x in row[2:5]],
            )
            for row in block
        ]

    @property
    def symbols(self):
        return [
            pt.to_symbol(int(round(charge)))
            for charge, _ in self._coordinate_rows
        ]

    @property
    def positions(self):
        return np.array([xyz for _, xyz in self._coordinate_rows])

    @property
    def energy(self):
        energy = None
        for line in self.contents:
            match = gamess_energy_pattern.search(line)
            if match:
                energy = float(match.group(1))
        return energy

    @property
    def multiplicity(self):
        for line in self.contents:
            match = gamess_multiplicity_pattern.search(line)
            if match:
                return int(match.group(1))
        return 1

    @cached_property
    def frequencies(self):
        """
        Wavenumbers of the last normal coordinate analysis. Imaginary
        modes are flagged by a trailing ``I`` and returned negative; the
        modes GAMESS takes as translations and rotations are dropped.
        """
        starts = [
            i
            for i, line in enumerate(self.contents)
            if "FREQUENCIES IN CM**-1" in line
        ]
        if not starts:
            return []
        section = self.contents[starts[-1] :]
        all_frequencies = []
        for line in section:
            if not line.startswith("FREQUENCY:"):
                continue
            tokens = line.split()[1:]
            for j, token in enumerate(tokens):
                if token == "I":
                    continue
                value = float(token)
                if j + 1 < len(tokens) and tokens[j + 1] == "I":
                    value = -value
                all_frequencies.append(value)

        skipped = set()
        for line in self.contents:
            match = gamess_trans_rot_pattern.search(line)
            if match:
                first, last = int(match.group(1)), int(match.group(2))
                skipped = set(range(first - 1, last))
        frequencies = [
            f for i, f in enumerate(all_frequencies) if i not in skipped
        ]
        logger.debug(f"Vibrational frequencies: {frequencies}")
        return frequencies

    @cached_property
    def file_masses(self):
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line == "ATOMIC WEIGHTS (AMU)"
        ]
        if not starts:
            return None
        masses = []
        for line in self.contents[starts[-1] + 1 :]:
            if len(line) == 0:
                if masses:
                    break
                continue
            masses.append(float(line.split()[-1]))
        return masses or None
