import logging
from dataclasses import dataclass, field

import numpy as np
from ase import units

from openthermo.analysis.lowfreq import ModeContributions, make_treatment
from openthermo.utils.constants import (
    R,
    amu_to_kg,
    atm_to_pa,
    bohr_to_meter,
    cal_to_joules,
    ev_to_joules,
    hartree_to_kj_per_mol,
)
from openthermo.utils.utils import NoAtomsLoaded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Contribution:
    """Partition function and thermodynamic functions of one motion.

    Energies in J mol^-1, entropy and heat capacity in J mol^-1 K^-1.
    """

    q: float = 1.0
    entropy: float = 0.0
    energy: float = 0.0
    heat_capacity: float = 0.0


@dataclass(frozen=True)
class ThermoData:
    """
    Thermochemistry of one record at one (T, P) point.

    Corrections are in J mol^-1, entropies and heat capacities in
    J mol^-1 K^-1, the electronic energy in Hartree. ``q_v0`` and
    ``q_bot`` are total partition functions with a molar translational
    volume; divide by N_A for the per-molecule value.
    """

    temperature: float
    pressure: float
    energy: float
    translation: Contribution
    rotation: Contribution
    vibration: Contribution
    electronic: Contribution
    zpe: float
    q_v0: float
    q_bot: float
    modes: ModeContributions = field(repr=False, compare=False, default=None)

    @property
    def u_corr(self):
        """U(T) - E = ZPE + thermal energy of all motions."""
        return (
            self.translation.energy
            + self.rotation.energy
            + self.vibration.energy
            + self.electronic.energy
            + self.zpe
        )

    @property
    def h_corr(self):
        """H = U + RT."""
        return self.u_corr + R * self.temperature

    @property
    def entropy(self):
        return (
            self.translation.entropy
            + self.rotation.entropy
            + self.vibration.entropy
            + self.electronic.entropy
        )

    @property
    def g_corr(self):
        """G = H - TS."""
        return self.h_corr - self.temperature * self.entropy

    @property
    def cv(self):
        return (
            self.translation.heat_capacity
            + self.rotation.heat_capacity
            + self.vibration.heat_capacity
            + self.electronic.heat_capacity
        )

    @property
    def cp(self):
        """Cp = Cv + R."""
        return self.cv + R

    @property
    def q_v0_per_molecule(self):
        return self.q_v0 / units._Nav

    @property
    def q_bot_per_molecule(self):
        return self.q_bot / units._Nav

    @staticmethod
    def to_kj_per_mol(value):
        return value / 1000

    @staticmethod
    def to_kcal_per_mol(value):
        return value / 1000 / cal_to_joules

    @staticmethod
    def to_cal_per_mol_k(value):
        return value / cal_to_joules

    @staticmethod
    def to_hartree(value):
        return value / 1000 / hartree_to_kj_per_mol

    @property
    def u_total(self):
        """E + U correction in Hartree."""
        return self.energy + self.to_hartree(self.u_corr)

    @property
    def h_total(self):
        return self.energy + self.to_hartree(self.h_corr)

    @property
    def g_total(self):
        return self.energy + self.to_hartree(self.g_corr)

    @property
    def zpe_total(self):
        return self.energy + self.to_hartree(self.zpe)


class ThermochemistryCalculator:
    """
    Partition functions and thermodynamic functions of an analyzed record.

    The calculator is immutable after construction; ``compute`` is a
    pure function of (T, P) and may be called from several threads.

    Args:
        record (MolecularRecord): Record after post-processing and
            geometry analysis.
        settings (ThermochemistryJobSettings): Job settings; ``ipmode``
            removes translation and rotation.
        treatment (LowFrequencyTreatment, optional): Treatment of the
            vibrational modes. Built from the settings when omitted.
    """

    def __init__(self, record, settings, treatment=None):
        if record.num_atoms == 0:
            raise NoAtomsLoaded(f"No atoms loaded from {record.source}")
        self.record = record
        self.settings = settings
        self.treatment = treatment or make_treatment(settings)
        self.ipmode = bool(settings.ipmode)
        # kg
        self.m = record.total_mass * amu_to_kg
        # kg m^2
        self.I = [
            i * amu_to_kg * bohr_to_meter**2
            for i in record.moments_of_inertia
        ]
        self.wavenumbers = np.array(record.real_frequencies, dtype=float)

    @property
    def num_modes(self):
        return len(self.wavenumbers)

    def translation(self, temperature, pressure):
        """
        Formula:
            q_t = (2 * pi * m * k_B * T / h^2)^(3/2) * (k_B * T / P)
            S_t = R * [ln(q_t) + 1 + 3/2]
            E_t = 3/2 * R * T
            C_t = 3/2 * R
        where P is in Pa.
        """
        if self.ipmode:
            return Contribution()
        p = pressure * atm_to_pa
        q = (
            2 * np.pi * self.m * units._k * temperature / units._hplanck**2
        ) ** (3 / 2) * (units._k * temperature / p)
        return Contribution(
            q=q,
            entropy=R * (np.log(q) + 5 / 2),
            energy=3 / 2 * R * temperature,
            heat_capacity=3 / 2 * R,
        )

    def rotation(self, temperature):
        """
        Formula:
            linear:    q_r = 1 / σ_r * (T / Θ_r)
                       S_r = R * (ln(q_r) + 1), E_r = R * T, C_r = R
            nonlinear: q_r = pi^(1/2) / σ_r * T^(3/2) / (Θ_x Θ_y Θ_z)^(1/2)
                       S_r = R * (ln(q_r) + 3/2), E_r = 3/2 * R * T,
                       C_r = 3/2 * R
        where Θ_i = h^2 / (8 * pi^2 * I_i * k_B). A single atom has no
        rotational contribution.
        """
        if self.ipmode or self.record.is_single_atom:
            return Contribution()
        sigma = self.record.symmetry_number
        if self.record.is_linear:
            theta_r = units._hplanck**2 / (
                8 * np.pi**2 * self.I[-1] * units._k
            )
            q = temperature / (sigma * theta_r)
            return Contribution(
                q=q,
                entropy=R * (np.log(q) + 1),
                energy=R * temperature,
                heat_capacity=R,
            )
        theta = [
            units._hplanck**2 / (8 * np.pi**2 * i * units._k) for i in self.I
        ]
        q = (
            np.pi ** (1 / 2)
            / sigma
            * (temperature ** (3 / 2) / np.prod(theta) ** (1 / 2))
        )
        return Contribution(
            q=q,
            entropy=R * (np.log(q) + 3 / 2),
            energy=3 / 2 * R * temperature,
            heat_capacity=3 / 2 * R,
        )

    def electronic(self, temperature):
        """
        Formula:
            q_e = Σ g_i * exp(-ε_i / k_B T)
            E_e = N_A * <ε>
            C_e = R * (<ε^2> - <ε>^2) / (k_B T)^2
            S_e = R * ln(q_e) + E_e / T
        with Boltzmann averages over the electronic levels.
        """
        levels = self.record.electronic_levels
        if not levels:
            g = max(int(self.record.multiplicity), 1)
            return Contribution(q=g, entropy=R * np.log(g))
        eps = np.array([level.energy for level in levels]) * ev_to_joules
        g = np.array([level.degeneracy for level in levels], dtype=float)
        kt = units._k * temperature
        boltzmann = g * np.exp(-eps / kt)
        q = float(np.sum(boltzmann))
        mean = float(np.sum(eps * boltzmann) / q)
        mean_sq = float(np.sum(eps**2 * boltzmann) / q)
        energy = units._Nav * mean
        return Contribution(
            q=q,
            entropy=R * np.log(q) + energy / temperature,
            energy=energy,
            heat_capacity=R * (mean_sq - mean**2) / kt**2,
        )

    def mode_contributions(self, temperature, wavenumbers=None):
        """Per-mode contributions of ``wavenumbers`` (default: all modes)."""
        if wavenumbers is None:
            wavenumbers = self.wavenumbers
        return self.treatment.mode_contributions(wavenumbers, temperature)

    def compute(self, temperature, pressure, modes=None):
        """
        Thermochemistry at one (T, P) point.

        Args:
            temperature (float): Temperature in K.
            pressure (float): Pressure in atm.
            modes (ModeContributions, optional): Precomputed per-mode
                contributions at ``temperature``.

        Returns:
            ThermoData: Contributions and totals.
        """
        if modes is None:
            modes = self.mode_contributions(temperature)
        translation = self.translation(temperature, pressure)
        rotation = self.rotation(temperature)
        electronic = self.electronic(temperature)
        vibration = Contribution(
            q=float(np.prod(modes.q_v0)),
            entropy=float(np.sum(modes.entropy)),
            energy=float(np.sum(modes.thermal_energy)),
            heat_capacity=float(np.sum(modes.heat_capacity)),
        )
        q_trans_molar = (
            translation.q * units._Nav if not self.ipmode else translation.q
        )
        q_rest = q_trans_molar * rotation.q * electronic.q
        return ThermoData(
            temperature=temperature,
            pressure=pressure,
            energy=self.record.energy,
            translation=translation,
            rotation=rotation,
            vibration=vibration,
            electronic=electronic,
            zpe=float(np.sum(modes.zpe)),
            q_v0=q_rest * float(np.prod(modes.q_v0)),
            q_bot=q_rest * float(np.prod(modes.q_bot)),
            modes=modes,
        )


class BoltzmannEnsemble:
    """
    Boltzmann-weighted summary of several structures at one temperature.

    Weights come from the absolute Gibbs energies G = E + G_corr.

    Args:
        labels (list[str]): Name of each member, e.g. its file path.
        data (list[ThermoData]): Thermochemistry of each member, all at
            the same temperature.
    """

    def __init__(self, labels, data):
        if not data:
            raise ValueError("List of structures cannot be empty.")
        temperatures = {d.temperature for d in data}
        if len(temperatures) > 1:
            raise ValueError(
                f"All structures must share one temperature, got "
                f"{sorted(temperatures)}"
            )
        self.labels = list(labels)
        self.data = list(data)
        self.temperature = self.data[0].temperature

    @property
    def gibbs_energies(self):
        """Absolute G of each member in J mol^-1."""
        return np.array(
            [d.g_total * hartree_to_kj_per_mol * 1000 for d in self.data]
        )

    @property
    def weights(self):
        # beta = 1 / (R * T) in J^-1 mol
        beta = 1.0 / (R * self.temperature)
        energies = self.gibbs_energies
        # shift to avoid overflow
        boltzmann_factors = np.exp(-beta * (energies - np.min(energies)))
        return boltzmann_factors / np.sum(boltzmann_factors)

    def _average(self, values):
        return float(np.sum(np.asarray(values) * self.weights))

    @property
    def electronic_energy(self):
        """Weighted electronic energy in Hartree."""
        return self._average([d.energy for d in self.data])

    @property
    def u_total(self):
        return self._average([d.u_total for d in self.data])

    @property
    def h_total(self):
        return self._average([d.h_total for d in self.data])

    @property
    def g_total(self):
        return self._average([d.g_total for d in self.data])

    @property
    def entropy(self):
        """Weighted entropy in J mol^-1 K^-1."""
        return self._average([d.entropy for d in self.data])

    @property
    def cv(self):
        return self._average([d.cv for d in self.data])

    @property
    def cp(self):
        return self._average([d.cp for d in self.data])

    def to_lines(self):
        """Table of weights followed by the weighted properties."""
        lines = [
            f"Boltzmann populations at {self.temperature:.2f} K "
            f"(weighted by G)",
            "",
            f"{'Weight (%)':>12}  {'G (a.u.)':>17}  File",
        ]
        for label, weight, d in zip(self.labels, self.weights, self.data):
            lines.append(f"{weight * 100:12.3f}  {d.g_total:17.6f}  {label}")
        lines += [
            "",
            f"Weighted E (a.u.): {self.electronic_energy:17.6f}",
            f"Weighted U (a.u.): {self.u_total:17.6f}",
            f"Weighted H (a.u.): {self.h_total:17.6f}",
            f"Weighted G (a.u.): {self.g_total:17.6f}",
            f"Weighted S (cal/mol/K): "
            f"{ThermoData.to_cal_per_mol_k(self.entropy):12.3f}",
            f"Weighted CV (cal/mol/K): "
            f"{ThermoData.to_cal_per_mol_k(self.cv):11.3f}",
            f"Weighted CP (cal/mol/K): "
            f"{ThermoData.to_cal_per_mol_k(self.cp):11.3f}",
        ]
        return lines
