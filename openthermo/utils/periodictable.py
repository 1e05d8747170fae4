"""
Periodic table utilities for element properties and conversions.

Element symbols and atomic masses come from ASE data: the IUPAC 2016
standard atomic weights for element-averaged masses and the mass of the
most common isotope for isotope-specific masses.
"""

from ase.data import atomic_masses_common, atomic_masses_iupac2016
from ase.data import chemical_symbols as elements


class PeriodicTable:
    """
    Periodic table interface for element symbols, atomic numbers and
    masses.
    """

    PERIODIC_TABLE = [str(element) for element in elements]

    @property
    def atomic_masses(self):
        """Element-averaged atomic masses indexed by atomic number."""
        return atomic_masses_iupac2016

    @property
    def most_abundant_masses(self):
        """Masses of the most abundant isotope indexed by atomic number."""
        return atomic_masses_common

    def to_element(self, element_str):
        """
        Normalize an element symbol's capitalization, e.g. "CL" -> "Cl".

        Atomic numbers given as strings ("6") are converted to symbols.
        """
        element_str = element_str.strip()
        if element_str.isdigit():
            return self.to_symbol(int(element_str))
        if len(element_str) == 1:
            return element_str.upper()
        return f"{element_str[0].upper()}{element_str[1:].lower()}"

    def to_atomic_number(self, symbol):
        """Convert an element symbol to its atomic number."""
        symbol = self.to_element(symbol)
        try:
            return self.PERIODIC_TABLE.index(symbol)
        except ValueError as e:
            raise ValueError(f"Unknown element symbol: {symbol}") from e

    def to_symbol(self, atomic_number):
        """Convert an atomic number to its element symbol."""
        return self.PERIODIC_TABLE[int(atomic_number)]

    def to_atomic_mass(self, symbol):
        """Element-averaged atomic mass in amu."""
        return float(self.atomic_masses[self.to_atomic_number(symbol)])

    def to_most_abundant_mass(self, symbol):
        """Mass of the most abundant isotope in amu."""
        return float(
            self.most_abundant_masses[self.to_atomic_number(symbol)]
        )
