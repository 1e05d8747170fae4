"""Constants not found in ase units."""

import logging

from ase import units

logger = logging.getLogger(__name__)


atm_to_pa = 101325  # 1 atm = 101325 Pa
R = units._k * units._Nav  # Ideal gas constant
bohr_to_meter = (
    1 * units.Bohr / units.m
)  # 1 Bohr = 0.52917721067 Å = 0.52917721067e-10 m
bohr_to_angstrom = units.Bohr  # 0.52917721067
amu_to_kg = 1 * units._amu  # 1 amu = 1.66053906660e-27 kg
hartree_to_joules = 4.35974434e-18  # 1 Hartree = 4.35974434 × 10^-18 Joules
cal_to_joules = 4.184  # 1 Calorie = 4.184 Joules
ev_to_joules = units._e  # 1 eV = 1.602176634e-19 J

# wavenumber (cm^-1) to frequency (Hz)
wave_to_freq = units._c * 1e2
# Hartree to kJ/mol, used by the .UHG tables
hartree_to_kj_per_mol = hartree_to_joules * units._Nav / 1000

# Average moments of inertia (kg m^2) for the free-rotor reference.
# "grimme" is the Grimme 2012 value, "qchem" the Q-Chem quasi-RRHO value.
BAV_PRESETS = {
    "grimme": 1.0e-44,
    "qchem": 2.79e-46,
}
DEFAULT_BAV_PRESET = "grimme"

