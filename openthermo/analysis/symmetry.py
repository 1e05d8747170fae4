"""
Symmetry and geometry analysis of a molecular record.

Principal moments of inertia decide whether the system is a single atom,
a linear rotor or a nonlinear rotor. The Schoenflies point group is
detected with pymatgen's ``PointGroupAnalyzer`` and mapped to the
rotational symmetry number used by the rotational partition function.
"""

import logging
import re

import numpy as np
from pymatgen.core import Molecule
from pymatgen.symmetry.analyzer import PointGroupAnalyzer

from openthermo.utils.constants import bohr_to_angstrom
from openthermo.utils.geometry import calculate_moments_of_inertia
from openthermo.utils.utils import NoAtomsLoaded

logger = logging.getLogger(__name__)

# amu*Bohr^2
SINGLE_ATOM_THRESHOLD = 1e-10
LINEAR_THRESHOLD = 1e-3

# Angstrom
DEFAULT_SYMMETRY_TOLERANCE = 0.1
RELAXED_SYMMETRY_TOLERANCE = 0.3


def normalize_point_group(name):
    """
    Canonical Schoenflies spelling, e.g. "c2v" -> "C2v" and the linear
    groups "D*h", "Dinfh" or "Dooh" -> "D∞h".
    """
    name = (name or "").strip()
    if not name:
        return ""
    name = re.sub(r"\*|inf|oo", "∞", name, flags=re.IGNORECASE)
    return name[0].upper() + name[1:].lower()


def symmetry_number(point_group):
    """
    Rotational symmetry number of a point group.

    Cn, Cnv, Cnh and S2n give n; Dn, Dnh and Dnd give 2n; the cubic
    groups give 12 (T), 24 (O) and 60 (I); D∞h gives 2. C∞v, Cs, Ci, C1
    and the atom group Kh give 1.
    """
    pg = normalize_point_group(point_group)
    if pg in ("C∞v", "Cs", "Ci", "C1", "Kh", ""):
        return 1
    if pg == "D∞h":
        return 2
    if pg in ("T", "Td", "Th"):
        return 12
    if pg in ("O", "Oh"):
        return 24
    if pg in ("I", "Ih"):
        return 60
    m_c = re.fullmatch(r"C(\d+)[vh]?", pg)
    if m_c:
        return int(m_c.group(1))
    m_d = re.fullmatch(r"D(\d+)[dh]?", pg)
    if m_d:
        return 2 * int(m_d.group(1))
    m_s = re.fullmatch(r"S(\d+)", pg)
    if m_s and int(m_s.group(1)) % 2 == 0:
        return int(m_s.group(1)) // 2
    logger.warning(
        f"Unknown point group {point_group}; using symmetry number 1."
    )
    return 1


class PointGroupDetector:
    """
    Detect the point group of a set of atoms.

    Symmetry operations are accepted when every atom is mapped onto an
    atom of the same element within ``tolerance`` Angstrom.

    Args:
        symbols (list[str]): Element symbols.
        coords (array-like): Cartesian coordinates in Angstrom.
        tolerance (float): Distance tolerance in Angstrom.
        hint (str): Point group supplied by the user. When detection
            disagrees, the hint is retried at a relaxed tolerance; if it
            is still not found, the detected group is kept and a warning
            is logged.
    """

    def __init__(
        self,
        symbols,
        coords,
        tolerance=DEFAULT_SYMMETRY_TOLERANCE,
        hint="",
    ):
        self.symbols = list(symbols)
        self.coords = np.asarray(coords, dtype=float).reshape(-1, 3)
        self.tolerance = tolerance
        self.hint = normalize_point_group(hint)

    def _analyze(self, tolerance):
        if len(self.symbols) == 1:
            return "Kh"
        molecule = Molecule(self.symbols, self.coords)
        analyzer = PointGroupAnalyzer(molecule, tolerance=tolerance)
        return normalize_point_group(analyzer.sch_symbol)

    def detect(self):
        """
        Returns:
            tuple[str, int]: Point group and rotational symmetry number.

        Raises:
            NoAtomsLoaded: If there are no atoms.
        """
        if not self.symbols:
            raise NoAtomsLoaded("Cannot detect the point group: no atoms.")
        point_group = self._analyze(self.tolerance)
        if self.hint:
            logger.info(f"Point group supplied: {self.hint}")
            if self.hint != point_group:
                relaxed = self._analyze(
                    max(self.tolerance, RELAXED_SYMMETRY_TOLERANCE)
                )
                if relaxed == self.hint:
                    logger.info(
                        f"Point group {self.hint} found with relaxed "
                        f"tolerance {RELAXED_SYMMETRY_TOLERANCE} Angstrom."
                    )
                    point_group = relaxed
                else:
                    logger.warning(
                        f"Supplied point group {self.hint} does not match "
                        f"the detected point group {point_group}; using "
                        f"{point_group}."
                    )
        sigma = symmetry_number(point_group)
        logger.debug(f"Point group {point_group}, symmetry number {sigma}")
        return point_group, sigma


def analyze_geometry(record, tolerance=DEFAULT_SYMMETRY_TOLERANCE):
    """
    Populate the geometry facts of a record whose masses are set.

    Computes total mass, principal moments of inertia (amu*Bohr^2,
    ascending), the single-atom and linear flags, the point group and the
    rotational symmetry number.

    Args:
        record (MolecularRecord): Record after post-processing.
        tolerance (float): Symmetry distance tolerance in Angstrom.

    Returns:
        MolecularRecord: New record with the geometry fields filled in.

    Raises:
        NoAtomsLoaded: If the record has no atoms.
    """
    if record.num_atoms == 0:
        raise NoAtomsLoaded(f"No atoms loaded from {record.source}")
    masses = record.masses
    if np.isnan(masses).any():
        raise ValueError("Atomic masses must be set before geometry analysis")
    positions = record.positions

    _, moments, _ = calculate_moments_of_inertia(masses, positions)
    moments = np.clip(moments / bohr_to_angstrom**2, 0.0, None)
    is_single_atom = float(np.sum(moments)) < SINGLE_ATOM_THRESHOLD
    is_linear = not is_single_atom and bool(
        np.any(moments < LINEAR_THRESHOLD)
    )

    detector = PointGroupDetector(
        record.symbols,
        positions,
        tolerance=tolerance,
        hint=record.point_group_hint,
    )
    if is_single_atom:
        point_group, sigma = "Kh", 1
    else:
        point_group, sigma = detector.detect()
        if is_linear and point_group not in ("C∞v", "D∞h"):
            linear_group = "D∞h" if point_group.endswith("h") else "C∞v"
            logger.warning(
                f"Detected point group {point_group} for a linear "
                f"molecule; using {linear_group}."
            )
            point_group = linear_group
            sigma = symmetry_number(point_group)

    return record.replace(
        total_mass=float(np.sum(masses)),
        moments_of_inertia=tuple(float(i) for i in moments),
        is_single_atom=is_single_atom,
        is_linear=is_linear,
        point_group=point_group,
        symmetry_number=sigma,
    )
