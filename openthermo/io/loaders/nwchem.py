import logging
import re
from functools import cached_property

import numpy as np

from openthermo.io.loaders.base import OutputLoader
from openthermo.utils.io import ProgramKind
from openthermo.utils.periodictable import PeriodicTable
from openthermo.utils.utils import fortran_float

logger = logging.getLogger(__name__)

pt = PeriodicTable()

nwchem_energy_pattern = re.compile(
    r"Total (?:DFT|SCF|CCSD\(T\)|MP2) energy\s*=\s*(-?\d+\.\d+)"
)
nwchem_multiplicity_pattern = re.compile(r"Spin multiplicity:\s+(\d+)")


class NWChemLoader(OutputLoader):
    """Loader for NWChem output files."""

    PROGRAM = ProgramKind.NWCHEM

    @cached_property
    def _last_geometry_block(self):
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line.startswith("Output coordinates in angstroms")
        ]
        if not starts:
            return []
        block = []
        # blank line, column header and dashed line precede the rows
        for line in self.contents[starts[-1] + 4 :]:
            if len(line) == 0:
                break
            block.append(line.split())
        return block

    @property
    def symbols(self):
        # tags may carry a suffix, e.g. "H1"; the charge column is exact
        return [
            pt.to_symbol(int(round(float(row[2]))))
            for row in self._last_geometry_block
        ]

    @property
    def positions(self):
        return np.array(
            [
                [float(x) for x in row[3:6]]
                for row in self._last_geometry_block
            ]
        )

    @property
    def energy(self):
        energy = None
        for line in self.contents:
            match = nwchem_energy_pattern.search(line)
            if match:
                energy = float(match.group(1))
        return energy

    @property
    def multiplicity(self):
        for line in self.contents:
            match = nwchem_multiplicity_pattern.search(line)
            if match:
                return int(match.group(1))
        return 1

    @cached_property
    def frequencies(self):
        """
        Projected wavenumbers of the last vibrational analysis; the
        zero entries of projected translations and rotations are dropped.
        """
        starts = [
            i
            for i, line in enumerate(self.contents)
            if "(Projected Frequencies expressed in cm-1)" in line
        ]
        if not starts:
            return []
        frequencies = []
        for line in self.contents[starts[-1] :]:
            if line.startswith("P.Frequency"):
                frequencies.extend(float(x) for x in line.split()[1:])
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
            if "Atom information" in line
        ]
        if not starts:
            return None
        masses = []
        for line in self.contents[starts[-1] + 1 :]:
            if line.startswith("---") or line.startswith("atom"):
                if masses:
                    break
                continue
            if len(line) == 0:
                break
            masses.append(fortran_float(line.split()[-1]))
        return masses or None
