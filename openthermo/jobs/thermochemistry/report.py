"""
Console report of a thermochemistry run.

All output goes through logging; how much appears is decided by the
print level mapped onto the root logger.
"""

import logging

from openthermo.analysis.thermochemistry import ThermoData
from openthermo.jobs.thermochemistry.scan import (
    VIBCON_HEADER,
    format_mode_rows,
)

logger = logging.getLogger(__name__)

TREATMENT_DESCRIPTIONS = {
    "harmonic": "Harmonic approximation",
    "truhlar": "Raising low frequencies (Truhlar's treatment)",
    "grimme": "Grimme's entropy interpolation",
    "minenkov": "Minenkov's entropy and energy interpolation",
    "headgordon": "Head-Gordon's damped free-rotor interpolation",
}


def _log_lines(lines, level=logging.INFO):
    for line in lines:
        logger.log(level, line)


def parameter_lines(settings):
    lines = ["", "--- Summary of Current Parameters ---", ""]
    if settings.prtvib == 1:
        lines.append(
            "Printing individual contribution of vibration modes: Yes"
        )
    elif settings.prtvib == -1:
        lines.append(
            "Printing individual contribution of vibration modes: Yes, to "
            "<basename>.vibcon file"
        )
    else:
        lines.append("Printing individual contribution of vibration modes: No")
    if settings.temperature_step == 0:
        lines.append(f" Temperature: {settings.temperature:12.3f} K")
    else:
        lines.append(
            f" Temperature scan, from {settings.temperature_low:10.3f} to "
            f"{settings.temperature_high:10.3f}, step: "
            f"{settings.temperature_step:8.3f} K"
        )
    if settings.pressure_step == 0:
        lines.append(f" Pressure: {settings.pressure:12.3f} atm")
    else:
        lines.append(
            f" Pressure scan, from {settings.pressure_low:10.3f} to "
            f"{settings.pressure_high:10.3f}, step: "
            f"{settings.pressure_step:8.3f} atm"
        )
    lines += [
        f" Scaling factor of vibrational frequencies for ZPE:       "
        f"{settings.scale_zpe:8.4f}",
        f" Scaling factor of vibrational frequencies for U(T)-U(0): "
        f"{settings.scale_heat:8.4f}",
        f" Scaling factor of vibrational frequencies for S(T):      "
        f"{settings.scale_entropy:8.4f}",
        f" Scaling factor of vibrational frequencies for CV:        "
        f"{settings.scale_cv:8.4f}",
        f" Low frequencies treatment: "
        f"{TREATMENT_DESCRIPTIONS.get(settings.low_vib_treatment)}",
    ]
    if settings.low_vib_treatment == "truhlar":
        lines.append(
            f" Lower frequencies will be raised to {settings.ravib:.2f} "
            f"cm^-1 during calculating S, U(T)-U(0), CV and q"
        )
    elif settings.low_vib_treatment != "harmonic":
        lines.append(
            f" Vibrational frequencies below {settings.intpvib:.2f} cm^-1 "
            f"are interpolated"
        )
    if settings.imagreal:
        lines.append(
            f" Imaginary frequencies with |v| < {settings.imagreal:.2f} "
            f"cm^-1 are treated as real"
        )
    if settings.ipmode:
        lines.append(
            " Translation and rotation contributions are ignored (ipmode)"
        )
    return lines


def geometry_lines(record):
    lines = [
        "",
        f"Molecule: {record.empirical_formula} ({record.num_atoms} atoms)",
        f" Total mass: {record.total_mass:16.6f} amu",
        f" Point group: {record.point_group}, rotational symmetry number: "
        f"{record.symmetry_number}",
        " Principal moments of inertia (amu*Bohr^2): "
        + "  ".join(f"{i:12.6f}" for i in record.moments_of_inertia),
    ]
    if record.is_single_atom:
        lines.append(" This is a single atom system!")
    elif record.is_linear:
        lines.append(" This is a linear molecule!")
    else:
        lines.append(" This is not a linear molecule")
    lines.append(
        " Electronic energy levels (eV, degeneracy): "
        + ", ".join(
            f"{level.energy:.6f} ({level.degeneracy})"
            for level in record.electronic_levels
        )
    )
    return lines


def _contribution_line(name, contribution):
    return (
        f" {name:<12}{contribution.q:16.6e}"
        f"{ThermoData.to_cal_per_mol_k(contribution.entropy):12.3f}"
        f"{ThermoData.to_kcal_per_mol(contribution.energy):12.3f}"
        f"{ThermoData.to_cal_per_mol_k(contribution.heat_capacity):12.3f}"
    )


def thermo_lines(data):
    """Contributions and totals at one (T, P) point."""
    kcal = ThermoData.to_kcal_per_mol
    cal = ThermoData.to_cal_per_mol_k
    return [
        "",
        f"Thermochemistry at T = {data.temperature:.3f} K, "
        f"P = {data.pressure:.3f} atm",
        "",
        f" {'':<12}{'q':>16}{'S(cal/mol/K)':>12}{'U(kcal/mol)':>12}"
        f"{'CV(cal/mol/K)':>14}",
        _contribution_line("Translation", data.translation),
        _contribution_line("Rotation", data.rotation),
        _contribution_line("Vibration", data.vibration),
        _contribution_line("Electronic", data.electronic),
        "",
        f" Zero point energy (ZPE): {kcal(data.zpe):12.3f} kcal/mol "
        f"{ThermoData.to_kj_per_mol(data.zpe):12.3f} kJ/mol "
        f"{ThermoData.to_hartree(data.zpe):12.6f} a.u.",
        f" Thermal correction to U: {kcal(data.u_corr):12.3f} kcal/mol",
        f" Thermal correction to H: {kcal(data.h_corr):12.3f} kcal/mol",
        f" Thermal correction to G: {kcal(data.g_corr):12.3f} kcal/mol",
        f" Electronic energy: {data.energy:17.6f} a.u.",
        f" Sum of electronic energy and ZPE: {data.zpe_total:17.6f} a.u.",
        f" Sum of electronic energy and thermal correction to U: "
        f"{data.u_total:17.6f} a.u.",
        f" Sum of electronic energy and thermal correction to H: "
        f"{data.h_total:17.6f} a.u.",
        f" Sum of electronic energy and thermal correction to G: "
        f"{data.g_total:17.6f} a.u.",
        f" Total S: {cal(data.entropy):12.3f} cal/mol/K",
        f" Total CV: {cal(data.cv):12.3f} cal/mol/K",
        f" Total CP: {cal(data.cp):12.3f} cal/mol/K",
        f" Total q(V=0)/NA: {data.q_v0_per_molecule:16.6e}",
        f" Total q(bot)/NA: {data.q_bot_per_molecule:16.6e}",
    ]


def log_parameters(settings):
    _log_lines(parameter_lines(settings))


def log_geometry(record, prtlevel=1):
    # geometry details from print level 2
    if prtlevel >= 2:
        _log_lines(geometry_lines(record))
    else:
        logger.debug("\n".join(geometry_lines(record)))


def log_thermo(data):
    _log_lines(thermo_lines(data))


def log_mode_contributions(data, level=logging.INFO):
    if data.modes is None or not data.modes.num_modes:
        return
    lines = [
        "",
        "Contributions of individual vibrational modes",
        VIBCON_HEADER.rstrip("\n"),
    ]
    lines += [line.rstrip("\n") for line in format_mode_rows(data.modes)]
    _log_lines(lines, level=level)
