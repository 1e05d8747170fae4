import logging
import re
from functools import cached_property

import numpy as np
from ase import units

from openthermo.io.loaders.base import OutputLoader
from openthermo.utils.io import ProgramKind

logger = logging.getLogger(__name__)

vasp_mode_pattern = re.compile(r"^\d+\s+f(/i)?\s*=.*?(-?\d+\.\d+)\s+cm-1")
vasp_species_pattern = re.compile(r"VRHFIN\s*=\s*([A-Za-z]+)\s*:")


class VaspLoader(OutputLoader):
    """
    Loader for VASP OUTCAR files.

    Energies are printed in eV and converted to Hartree. Only the first
    listing of the dynamical-matrix eigenvalues is used; VASP prints the
    same modes again after mass weighting.
    """

    PROGRAM = ProgramKind.VASP

    @cached_property
    def _species(self):
        species = []
        for line in self.contents:
            match = vasp_species_pattern.search(line)
            if match:
                species.append(match.group(1))
        return species

    @cached_property
    def _ions_per_type(self):
        for line in self.contents:
            if line.startswith("ions per type ="):
                return [int(x) for x in line.split("=")[1].split()]
        return []

    @property
    def symbols(self):
        symbols = []
        for element, count in zip(self._species, self._ions_per_type):
            symbols.extend([element] * count)
        return symbols

    @property
    def positions(self):
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line.startswith("POSITION") and "TOTAL-FORCE" in line
        ]
        if not starts:
            return np.empty((0, 3))
        rows = []
        # dashed line follows the header
        for line in self.contents[starts[-1] + 2 :]:
            if line.startswith("---") or len(line) == 0:
                break
            rows.append([float(x) for x in line.split()[0:3]])
        return np.array(rows)

    @property
    def energy(self):
        energy_ev = None
        for line in self.contents:
            if "free  energy   TOTEN" in line:
                energy_ev = float(line.split("=")[1].split()[0])
        if energy_ev is None:
            return None
        return energy_ev / units.Hartree

    @property
    def multiplicity(self):
        """2S + 1 from the last reported total magnetization."""
        magnetization = None
        for line in self.contents:
            if (
                line.startswith("number of electron")
                and "magnetization" in line
            ):
                magnetization = float(line.split()[-1])
        if magnetization is None:
            return 1
        return int(round(abs(magnetization))) + 1

    @cached_property
    def frequencies(self):
        starts = [
            i
            for i, line in enumerate(self.contents)
            if line.startswith("Eigenvectors and eigenvalues of the dynamical")
        ]
        if not starts:
            return []
        frequencies = []
        for line in self.contents[starts[0] :]:
            if line.startswith("Eigenvectors after division by SQRT(mass)"):
                break
            match = vasp_mode_pattern.match(line)
            if match:
                value = float(match.group(2))
                frequencies.append(-value if match.group(1) else value)
        logger.debug(f"Vibrational frequencies: {frequencies}")
        return [x for x in frequencies if x != 0.0]

    @cached_property
    def file_masses(self):
        species_masses = []
        for line in self.contents:
            if line.startswith("POMASS") and "ZVAL" in line:
                mass = line.split("=")[1].split(";")[0]
                species_masses.append(float(mass))
        counts = self._ions_per_type
        if len(species_masses) != len(counts):
            return None
        masses = []
        for mass, count in zip(species_masses, counts):
            masses.extend([mass] * count)
        return masses or None

    def load(self):
        record = super().load()
        logger.info(
            "VASP output: for periodic or adsorbed systems consider "
            "ipmode = 1 to remove translational and rotational terms."
        )
        return record
