import logging
from functools import cached_property

import numpy as np

from openthermo.io.loaders.base import OutputLoader
from openthermo.utils.io import ProgramKind

logger = logging.getLogger(__name__)


class Cp2kLoader(OutputLoader):
    """
    Loader for CP2K output files.

    Rows of the QUICKSTEP coordinate table read
    ``Atom Kind Element Z X Y Z Z(eff) Mass``.
    """

    PROGRAM = ProgramKind.CP2K

    @cached_property
    def _last_coordinate_block(self):
        starts = [
            i
            for i, line in enumerate(self.contents)
            if "ATOMIC COORDINATES IN" in line.upper()
            and "ANGSTROM" in line.upper()
        ]
        if not starts:
            return []
        block = []
        # blank line, column header and blank line precede the rows
        for line in self.contents[starts[-1] + 4 :]:
            if len(line) == 0:
                break
            block.append(line.split())
        return block

    @property
    def symbols(self):
        return [row[2] for row in self._last_coordinate_block]

    @property
    def positions(self):
        return np.array(
            [
                [float(x) for x in row[4:7]]
                for row in self._last_coordinate_block
            ]
        )

    @property
    def energy(self):
        energy = None
        for line in self.contents:
            if line.startswith("ENERGY| Total FORCE_EVAL"):
                energy = float(line.split()[-1])
        return energy

    @property
    def multiplicity(self):
        for line in self.contents:
            if line.startswith("DFT| Multiplicity"):
                return int(line.split()[-1])
        return 1

    @cached_property
    def frequencies(self):
        frequencies = []
        for line in self.contents:
            if line.startswith("VIB|Frequency"):
                frequencies.extend(float(x) for x in line.split()[2:])
        logger.debug(f"Vibrational frequencies: {frequencies}")
        return [x for x in frequencies if x != 0.0]

    @cached_property
    def file_masses(self):
        masses = [float(row[8]) for row in self._last_coordinate_block]
        return masses or None

    def load(self):
        record = super().load()
        logger.info(
            "CP2K output: for condensed-phase or periodic systems consider "
            "ipmode = 1 to remove translational and rotational terms."
        )
        return record
