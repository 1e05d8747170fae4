"""
Post-processing of a loaded record before geometry analysis.

Applies the mass policy, the default electronic level, the external
energy override, the imaginary-to-real threshold and the point-group
hint. Each step returns a new record.
"""

import logging

from openthermo.io.record import ElectronicLevel
from openthermo.utils.periodictable import PeriodicTable
from openthermo.utils.utils import InvalidConfiguration

logger = logging.getLogger(__name__)

pt = PeriodicTable()

ELEMENT_AVERAGE_MASSES = 1
MOST_ABUNDANT_MASSES = 2
FILE_MASSES = 3


def apply_masses(record, mass_mode=ELEMENT_AVERAGE_MASSES):
    """
    Assign atomic masses.

    Args:
        record (MolecularRecord): Loaded record.
        mass_mode (int): 1 element average (IUPAC 2016), 2 most abundant
            isotope, 3 masses printed in the output file. Mode 3 falls
            back to element averages when the file had none.
    """
    if mass_mode == FILE_MASSES:
        if record.has_file_masses:
            logger.info("Using atomic masses read from the output file.")
            return record
        logger.warning(
            f"No atomic masses found in {record.source}; using element "
            f"average masses."
        )
        mass_mode = ELEMENT_AVERAGE_MASSES
    if mass_mode == ELEMENT_AVERAGE_MASSES:
        to_mass = pt.to_atomic_mass
    elif mass_mode == MOST_ABUNDANT_MASSES:
        to_mass = pt.to_most_abundant_mass
    else:
        raise InvalidConfiguration(f"Unknown mass mode: {mass_mode}")
    atoms = tuple(
        atom.with_mass(to_mass(atom.symbol)) for atom in record.atoms
    )
    return record.replace(atoms=atoms)


def default_electronic_levels(record):
    """A single ground level of degeneracy = multiplicity, if none set."""
    if record.electronic_levels:
        return record
    degeneracy = record.multiplicity if record.multiplicity > 0 else 1
    return record.replace(
        electronic_levels=(ElectronicLevel(0.0, degeneracy),)
    )


def apply_external_energy(record, external_energy=0.0):
    if not external_energy:
        return record
    logger.info(
        f"Electronic energy {record.energy:.6f} a.u. replaced by external "
        f"energy {external_energy:.6f} a.u."
    )
    return record.replace(energy=float(external_energy))


def apply_imagreal(record, threshold=0.0):
    """Treat imaginary modes with |ν| below ``threshold`` as real."""
    if threshold <= 0:
        return record
    frequencies = []
    for i, freq in enumerate(record.frequencies):
        if freq < 0 and abs(freq) < threshold:
            logger.info(
                f"Mode {i + 1}: imaginary frequency {freq:.2f} cm^-1 "
                f"treated as real."
            )
            freq = abs(freq)
        frequencies.append(freq)
    return record.replace(frequencies=tuple(frequencies))


def postprocess(record, settings):
    """
    Apply all settings-driven changes to a loaded record.

    Args:
        record (MolecularRecord): Record as returned by a loader or a
            checkpoint.
        settings (ThermochemistryJobSettings): Job settings.

    Returns:
        MolecularRecord: Record ready for geometry analysis.
    """
    record = apply_masses(record, settings.mass_mode)
    record = default_electronic_levels(record)
    record = apply_external_energy(record, settings.external_energy)
    record = apply_imagreal(record, settings.imagreal)
    if settings.point_group:
        record = record.replace(point_group_hint=settings.point_group)
    if record.num_imaginary:
        logger.warning(
            f"{record.num_imaginary} imaginary frequencies in "
            f"{record.source} are ignored: "
            f"{', '.join(f'{f:.2f}' for f in record.imaginary_frequencies)}"
        )
    return record
