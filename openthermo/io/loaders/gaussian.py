import logging
import re
from functools import cached_property

import numpy as np

from openthermo.io.loaders.base import OutputLoader
from openthermo.utils.io import ProgramKind
from openthermo.utils.periodictable import PeriodicTable

logger = logging.getLogger(__name__)

pt = PeriodicTable()

scf_energy_pattern = re.compile(r"SCF Done:\s+E\(.+\)\s+=\s+(-?\d+\.\d+)")
mass_pattern = re.compile(
    r"Atom\s+\d+\s+has atomic number\s+\d+\s+and mass\s+(\d+\.\d+)"
)


class GaussianLoader(OutputLoader):
    """Loader for Gaussian .log/.out files."""

    PROGRAM = ProgramKind.GAUSSIAN

    @cached_property
    def _last_orientation_block(self):
        """Rows of the last standard (else input) orientation table."""
        for header in ("Standard orientation:", "Input orientation:"):
            starts = [
                i for i, line in enumerate(self.contents) if line == header
            ]
            if not starts:
                continue
            block = []
            for line in self.contents[starts[-1] + 5 :]:
                if line.startswith("---"):
                    break
                block.append(line.split())
            return block
        return []

    @property
    def symbols(self):
        return [
            pt.to_symbol(int(row[1])) for row in self._last_orientation_block
        ]

    @property
    def positions(self):
        return np.array(
            [
                [float(x) for x in row[3:6]]
                for row in self._last_orientation_block
            ]
        )

    @property
    def energy(self):
        """Last SCF energy in the file."""
        energies = []
        for line in self.contents:
            match = scf_energy_pattern.search(line)
            if match:
                energies.append(float(match.group(1)))
        if energies:
            return energies[-1]
        return None

    @property
    def multiplicity(self):
        for line in self.contents:
            if "Charge =" in line and "Multiplicity =" in line:
                line_elem = line.split()
                return int(line_elem[5])
        return 1

    @cached_property
    def frequencies(self):
        """Wavenumbers of the last frequency analysis."""
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line.startswith("Harmonic frequencies")
        ]
        if not starts:
            return []
        section = self.contents[starts[-1] :]
        frequencies = []
        for line in section:
            # "Frequencies ---" lines repeat the modes in high precision
            if line.startswith("Frequencies --") and not line.startswith(
                "Frequencies ---"
            ):
                frequencies.extend(float(x) for x in line.split()[2:])
        logger.debug(f"Vibrational frequencies: {frequencies}")
        return frequencies

    @cached_property
    def file_masses(self):
        masses = []
        for line in self.contents:
            match = mass_pattern.search(line)
            if match:
                masses.append(float(match.group(1)))
        num_atoms = len(self._last_orientation_block)
        if not masses or num_atoms == 0:
            return None
        # one mass line per atom for each thermochemistry section
        return masses[-num_atoms:]


class XtbLoader(GaussianLoader):
    """
    Loader for the ``g98.out`` file written by xtb --hess, which follows
    the Gaussian 98 frequency layout. The file holds no electronic
    energy; use an external energy to supply one.
    """

    PROGRAM = ProgramKind.XTB

    @property
    def energy(self):
        energy = super().energy
        if energy is None:
            logger.warning(
                f"No electronic energy in {self.filename}; using 0.0 Hartree."
            )
            return 0.0
        return energy
