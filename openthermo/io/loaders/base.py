"""
Common interface of the program output loaders.

A loader turns one output file into a ``MolecularRecord`` holding atoms,
electronic energy, vibrational wavenumbers and spin multiplicity. Each
concrete loader declares the ``ProgramKind`` it reads in ``PROGRAM`` and
is registered automatically.
"""

import logging
from abc import abstractmethod
from functools import cached_property

from openthermo.io.record import Atom, MolecularRecord
from openthermo.utils.mixins import FileMixin, RegistryMixin
from openthermo.utils.periodictable import PeriodicTable
from openthermo.utils.utils import LoadFailure

logger = logging.getLogger(__name__)

pt = PeriodicTable()


class OutputLoader(RegistryMixin, FileMixin):
    """
    Base class for program output loaders.

    Subclasses implement ``symbols``, ``positions``, ``energy``,
    ``frequencies`` and ``multiplicity``; ``file_masses`` is optional.

    Args:
        filename (str): Path to the program output file.
    """

    PROGRAM = NotImplemented
    REGISTERABLE = True

    def __init__(self, filename):
        self.filename = filename

    def __repr__(self):
        return f"{self.__class__.__name__}<{self.filename}>"

    @classmethod
    def from_program(cls, program, filename):
        """Instantiate the loader registered for ``program``."""
        for loader_cls in cls.subclasses():
            if loader_cls.PROGRAM == program:
                return loader_cls(filename)
        raise LoadFailure(f"No loader available for {program.label}")

    @property
    @abstractmethod
    def symbols(self):
        """Element symbols in file order."""
        raise NotImplementedError

    @property
    @abstractmethod
    def positions(self):
        """Cartesian coordinates in Angstrom, one row per atom."""
        raise NotImplementedError

    @property
    @abstractmethod
    def energy(self):
        """Final electronic energy in Hartree."""
        raise NotImplementedError

    @property
    @abstractmethod
    def frequencies(self):
        """Vibrational wavenumbers in cm^-1, negative when imaginary."""
        raise NotImplementedError

    @property
    @abstractmethod
    def multiplicity(self):
        raise NotImplementedError

    @cached_property
    def file_masses(self):
        """Atomic masses printed by the program, or None."""
        return None

    def _build_atoms(self):
        symbols = [pt.to_element(symbol) for symbol in self.symbols]
        positions = self.positions
        if len(symbols) != len(positions):
            raise LoadFailure(
                f"Found {len(symbols)} element symbols but "
                f"{len(positions)} coordinates in {self.filename}"
            )
        masses = self.file_masses
        if masses is not None and len(masses) != len(symbols):
            logger.warning(
                f"Ignoring {len(masses)} masses read from {self.filename}: "
                f"the file has {len(symbols)} atoms."
            )
            masses = None
        return tuple(
            Atom(
                symbol=symbol,
                position=tuple(float(x) for x in position),
                mass=None if masses is None else float(masses[i]),
            )
            for i, (symbol, position) in enumerate(zip(symbols, positions))
        )

    def _create_record(self):
        return MolecularRecord(
            atoms=self._build_atoms(),
            frequencies=tuple(self.frequencies or ()),
            energy=float(self.energy or 0.0),
            multiplicity=int(self.multiplicity or 1),
            program=self.PROGRAM,
            source=self.filename,
        )

    def load(self):
        """
        Parse the file into a molecular record.

        Returns:
            MolecularRecord: Record with atoms, energy, frequencies and
                multiplicity; masses only if the program printed them.

        Raises:
            LoadFailure: If the file cannot be read or parsed.
        """
        logger.info(f"Processing {self.PROGRAM.label} output file...")
        try:
            record = self._create_record()
        except LoadFailure:
            raise
        except (OSError, ValueError, IndexError, KeyError, TypeError) as e:
            raise LoadFailure(
                f"Failed to load data from {self.filename}: {e}"
            ) from e
        logger.debug(
            f"Loaded {record.num_atoms} atoms and "
            f"{record.num_frequencies} frequencies from {self.filename}"
        )
        return record
