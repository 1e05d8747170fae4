"""
Molecular record: the data a loader extracts from one output file.

Records are frozen; every processing step that changes a record returns
a new one through ``MolecularRecord.replace``.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from openthermo.utils.io import ProgramKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Atom:
    """One atom: element symbol, mass (amu) and position (Angstrom).

    ``mass`` is None until a mass policy has been applied, unless the
    loader read it from the output file.
    """

    symbol: str
    position: tuple
    mass: Optional[float] = None

    def with_mass(self, mass):
        return dataclasses.replace(self, mass=float(mass))


@dataclass(frozen=True)
class ElectronicLevel:
    """Electronic state energy relative to the ground state (eV) and its
    degeneracy."""

    energy: float = 0.0
    degeneracy: int = 1

    def __post_init__(self):
        if self.degeneracy < 1:
            raise ValueError(
                f"Degeneracy must be at least 1, got {self.degeneracy}"
            )


@dataclass(frozen=True)
class MolecularRecord:
    """
    Aggregate of atoms, vibrational wavenumbers and energies for one input.

    Attributes:
        atoms (tuple[Atom]): Atoms in file order.
        frequencies (tuple[float]): Signed wavenumbers in cm^-1; negative
            values are imaginary modes.
        energy (float): Electronic energy in Hartree.
        multiplicity (int): Spin multiplicity.
        electronic_levels (tuple[ElectronicLevel]): Electronic levels;
            empty until post-processing adds the ground state.
        point_group_hint (str): Point group supplied by the user, may be
            empty.
        point_group (str): Detected point group.
        symmetry_number (int): Rotational symmetry number.
        moments_of_inertia (tuple[float]): Principal moments in
            amu*Bohr^2, ascending.
        total_mass (float): Sum of atomic masses in amu.
        is_linear (bool): Linear molecule.
        is_single_atom (bool): Single atom, no rotational inertia.
        program (ProgramKind): Program that wrote the source file.
        source (str): Path of the source file.
    """

    atoms: tuple = ()
    frequencies: tuple = ()
    energy: float = 0.0
    multiplicity: int = 1
    electronic_levels: tuple = ()
    point_group_hint: str = ""
    point_group: str = ""
    symmetry_number: int = 1
    moments_of_inertia: tuple = (0.0, 0.0, 0.0)
    total_mass: float = 0.0
    is_linear: bool = False
    is_single_atom: bool = False
    program: ProgramKind = ProgramKind.UNKNOWN
    source: str = ""
    metadata: dict = field(default_factory=dict, compare=False)

    def __post_init__(self):
        # sequences are stored as tuples
        object.__setattr__(self, "atoms", tuple(self.atoms))
        object.__setattr__(
            self, "frequencies", tuple(float(f) for f in self.frequencies)
        )
        object.__setattr__(
            self, "electronic_levels", tuple(self.electronic_levels)
        )
        object.__setattr__(
            self,
            "moments_of_inertia",
            tuple(float(i) for i in self.moments_of_inertia),
        )

    def replace(self, **changes):
        return dataclasses.replace(self, **changes)

    @property
    def num_atoms(self):
        return len(self.atoms)

    @property
    def num_frequencies(self):
        return len(self.frequencies)

    @property
    def symbols(self):
        return [atom.symbol for atom in self.atoms]

    @property
    def masses(self):
        return np.array(
            [
                atom.mass if atom.mass is not None else np.nan
                for atom in self.atoms
            ]
        )

    @property
    def positions(self):
        return np.array([atom.position for atom in self.atoms], dtype=float)

    @property
    def has_file_masses(self):
        return bool(self.atoms) and all(
            atom.mass is not None for atom in self.atoms
        )

    @property
    def real_frequencies(self):
        return [f for f in self.frequencies if f > 0.0]

    @property
    def imaginary_frequencies(self):
        return [f for f in self.frequencies if f < 0.0]

    @property
    def num_imaginary(self):
        return len(self.imaginary_frequencies)

    @property
    def empirical_formula(self):
        counts = {}
        for symbol in self.symbols:
            counts[symbol] = counts.get(symbol, 0) + 1
        return "".join(
            f"{symbol}{count if count > 1 else ''}"
            for symbol, count in counts.items()
        )

    def to_dict(self):
        """Plain-Python representation used by the checkpoint writer."""
        return {
            "source": self.source,
            "program": self.program.value,
            "energy": float(self.energy),
            "multiplicity": int(self.multiplicity),
            "point_group_hint": self.point_group_hint,
            "atoms": [
                {
                    "symbol": atom.symbol,
                    "mass": None if atom.mass is None else float(atom.mass),
                    "position": [float(x) for x in atom.position],
                }
                for atom in self.atoms
            ],
            "frequencies": [float(f) for f in self.frequencies],
            "electronic_levels": [
                {
                    "energy": float(level.energy),
                    "degeneracy": int(level.degeneracy),
                }
                for level in self.electronic_levels
            ],
        }

    @classmethod
    def from_dict(cls, data):
        atoms = tuple(
            Atom(
                symbol=atom["symbol"],
                position=tuple(float(x) for x in atom["position"]),
                mass=atom.get("mass"),
            )
            for atom in data.get("atoms") or []
        )
        levels = tuple(
            ElectronicLevel(
                energy=float(level.get("energy", 0.0)),
                degeneracy=int(level.get("degeneracy", 1)),
            )
            for level in data.get("electronic_levels") or []
        )
        return cls(
            atoms=atoms,
            frequencies=tuple(data.get("frequencies") or []),
            energy=float(data.get("energy", 0.0)),
            multiplicity=int(data.get("multiplicity", 1)),
            electronic_levels=levels,
            point_group_hint=data.get("point_group_hint") or "",
            program=ProgramKind(data.get("program", "unknown")),
            source=data.get("source", ""),
        )
