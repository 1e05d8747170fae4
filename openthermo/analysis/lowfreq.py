"""
Treatments of low-frequency vibrational modes.

Every treatment turns an array of real wavenumbers (cm^-1) into the
per-mode contributions to the zero-point energy, the thermal part of the
internal energy, the entropy and the heat capacity, together with the
per-mode factors of the vibrational partition function. Each quantity
uses its own frequency scale factor.

Energies are in J mol^-1, entropies and heat capacities in
J mol^-1 K^-1.
"""

import logging
from dataclasses import dataclass

import numpy as np
from ase import units

from openthermo.utils.constants import (
    BAV_PRESETS,
    DEFAULT_BAV_PRESET,
    R,
    wave_to_freq,
)
from openthermo.utils.mixins import RegistryMixin
from openthermo.utils.references import (
    grimme_quasi_rrho_entropy_ref,
    head_gordon_damping_function_ref,
    head_gordon_quasi_rrho_enthalpy_ref,
    minenkov_quasi_rrho_ref,
    qrrho_header,
    truhlar_quasi_rrho_entropy_ref,
)
from openthermo.utils.utils import InvalidConfiguration

logger = logging.getLogger(__name__)

# interpolator exponent of the damping function
ALPHA = 4


def characteristic_temperature(wavenumbers):
    """Θ_v = h * c * ν / k_B in K for wavenumbers in cm^-1."""
    return (
        units._hplanck
        * np.asarray(wavenumbers, dtype=float)
        * wave_to_freq
        / units._k
    )


def harmonic_zpe(wavenumbers):
    """
    Formula:
        E_ZPE,K = R * Θ_v,K / 2
    """
    return 0.5 * R * characteristic_temperature(wavenumbers)


def harmonic_thermal_energy(wavenumbers, temperature):
    """
    Thermal internal energy above the zero-point level.

    Formula:
        E_v,K - E_ZPE,K = R * Θ_v,K / (exp(Θ_v,K / T) - 1)
    """
    theta = characteristic_temperature(wavenumbers)
    with np.errstate(over="ignore"):
        return R * theta / np.expm1(theta / temperature)


def harmonic_entropy(wavenumbers, temperature):
    """
    Formula:
        S_v,K = R * [(Θ_v,K / T) / (exp(Θ_v,K / T) - 1)
                     - ln(1 - exp(-Θ_v,K / T))]
    """
    x = characteristic_temperature(wavenumbers) / temperature
    with np.errstate(over="ignore"):
        return R * (x / np.expm1(x) - np.log(-np.expm1(-x)))


def harmonic_heat_capacity(wavenumbers, temperature):
    """
    Formula:
        C_v,K = R * x^2 * exp(-x) / (1 - exp(-x))^2,  x = Θ_v,K / T
    """
    x = characteristic_temperature(wavenumbers) / temperature
    return R * x**2 * np.exp(-x) / np.expm1(-x) ** 2


def partition_function_factors(wavenumbers, temperature):
    """
    Per-mode vibrational partition functions.

    Returns:
        tuple[np.ndarray, np.ndarray]: q referenced to the first level,
            1 / (1 - exp(-x)), and to the bottom of the well,
            exp(-x / 2) / (1 - exp(-x)).
    """
    x = characteristic_temperature(wavenumbers) / temperature
    q_v0 = 1.0 / -np.expm1(-x)
    q_bot = np.exp(-x / 2) * q_v0
    return q_v0, q_bot


def damping_function(wavenumbers, cutoff, alpha=ALPHA):
    """
    Head-Gordon damping weight.

    Formula:
        w(ν_K) = 1 / (1 + (ν_0 / ν_K)^α)
    """
    wavenumbers = np.asarray(wavenumbers, dtype=float)
    return 1.0 / (1.0 + (cutoff / wavenumbers) ** alpha)


def free_rotor_entropy(wavenumbers, temperature, bav):
    """
    Entropy of a free rotor with the moment of inertia of the mode.

    Formula:
        S_R,K = R * (1/2 + ln((8 * pi^3 * u'_K * k_B * T / h^2)^(1/2)))
    where:
        u'_K = u_K * B_av / (u_K + B_av)
        u_K = h / (8 * pi^2 * ν_K)
        B_av = average molecular moment of inertia (kg m^2)
    """
    frequencies = np.asarray(wavenumbers, dtype=float) * wave_to_freq
    mu = units._hplanck / (8 * np.pi**2 * frequencies)
    mu_prime = mu * bav / (mu + bav)
    return R * (
        0.5
        + np.log(
            np.sqrt(
                8
                * np.pi**3
                * mu_prime
                * units._k
                * temperature
                / units._hplanck**2
            )
        )
    )


@dataclass(frozen=True)
class ModeContributions:
    """Per-mode arrays produced by a treatment for one temperature."""

    wavenumbers: np.ndarray
    zpe: np.ndarray
    thermal_energy: np.ndarray
    entropy: np.ndarray
    heat_capacity: np.ndarray
    q_v0: np.ndarray
    q_bot: np.ndarray

    @classmethod
    def concatenate(cls, parts):
        """Join contributions computed for consecutive chunks of modes."""
        parts = list(parts)
        if not parts:
            empty = np.zeros(0)
            return cls(empty, empty, empty, empty, empty, empty, empty)
        return cls(
            *(
                np.concatenate([getattr(part, name) for part in parts])
                for name in cls.__dataclass_fields__
            )
        )

    @property
    def num_modes(self):
        return len(self.wavenumbers)


class LowFrequencyTreatment(RegistryMixin):
    """
    Base class of the low-frequency treatments.

    Args:
        scale_zpe (float): Frequency scale factor for the ZPE.
        scale_heat (float): Frequency scale factor for U - U(0).
        scale_entropy (float): Frequency scale factor for S and q.
        scale_cv (float): Frequency scale factor for Cv.
        ravib (float): Raising threshold of the Truhlar treatment, cm^-1.
        intpvib (float): Interpolation threshold, cm^-1.
        bav (float): Average moment of inertia, kg m^2.
        hg_energy (bool): Also damp ZPE and U (Head-Gordon only).
    """

    NAME = NotImplemented
    REFERENCES = ()

    def __init__(
        self,
        scale_zpe=1.0,
        scale_heat=1.0,
        scale_entropy=1.0,
        scale_cv=1.0,
        ravib=100.0,
        intpvib=100.0,
        bav=BAV_PRESETS[DEFAULT_BAV_PRESET],
        hg_energy=False,
    ):
        self.scale_zpe = scale_zpe
        self.scale_heat = scale_heat
        self.scale_entropy = scale_entropy
        self.scale_cv = scale_cv
        self.ravib = ravib
        self.intpvib = intpvib
        self.bav = bav
        self.hg_energy = hg_energy

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(ravib={self.ravib}, "
            f"intpvib={self.intpvib}, bav={self.bav})"
        )

    @classmethod
    def from_name(cls, name):
        for treatment_cls in cls.subclasses():
            if treatment_cls.NAME == name:
                return treatment_cls
        raise InvalidConfiguration(
            f"Unknown low-frequency treatment: {name}. Choose from "
            f"{[c.NAME for c in cls.subclasses()]}"
        )

    def zpe(self, wavenumbers):
        return harmonic_zpe(np.asarray(wavenumbers) * self.scale_zpe)

    def thermal_energy(self, wavenumbers, temperature):
        return harmonic_thermal_energy(
            np.asarray(wavenumbers) * self.scale_heat, temperature
        )

    def entropy(self, wavenumbers, temperature):
        return harmonic_entropy(
            np.asarray(wavenumbers) * self.scale_entropy, temperature
        )

    def heat_capacity(self, wavenumbers, temperature):
        return harmonic_heat_capacity(
            np.asarray(wavenumbers) * self.scale_cv, temperature
        )

    def partition_functions(self, wavenumbers, temperature):
        """Per-mode (q(V=0), q(bot)) with the entropy-scaled frequency."""
        return partition_function_factors(
            np.asarray(wavenumbers) * self.scale_entropy, temperature
        )

    def mode_contributions(self, wavenumbers, temperature):
        """
        Args:
            wavenumbers (array-like): Real, positive wavenumbers in cm^-1.
            temperature (float): Temperature in K.

        Returns:
            ModeContributions: Per-mode ZPE, U - U(0), S, Cv and q.
        """
        wavenumbers = np.asarray(wavenumbers, dtype=float)
        q_v0, q_bot = self.partition_functions(wavenumbers, temperature)
        return ModeContributions(
            wavenumbers=wavenumbers,
            zpe=self.zpe(wavenumbers),
            thermal_energy=self.thermal_energy(wavenumbers, temperature),
            entropy=self.entropy(wavenumbers, temperature),
            heat_capacity=self.heat_capacity(wavenumbers, temperature),
            q_v0=q_v0,
            q_bot=q_bot,
        )

    def log_references(self):
        if self.REFERENCES:
            logger.info(qrrho_header)
            for reference in self.REFERENCES:
                logger.info(reference)


class HarmonicTreatment(LowFrequencyTreatment):
    """Rigid-rotor harmonic-oscillator formulas for every mode."""

    NAME = "harmonic"


class TruhlarTreatment(LowFrequencyTreatment):
    """
    Scaled frequencies below ``ravib`` are raised to ``ravib`` for U, S,
    Cv and q. The ZPE keeps the unmodified frequency.
    """

    NAME = "truhlar"
    REFERENCES = (truhlar_quasi_rrho_entropy_ref,)

    def _raised(self, wavenumbers, scale):
        return np.maximum(np.asarray(wavenumbers) * scale, self.ravib)

    def thermal_energy(self, wavenumbers, temperature):
        return harmonic_thermal_energy(
            self._raised(wavenumbers, self.scale_heat), temperature
        )

    def entropy(self, wavenumbers, temperature):
        return harmonic_entropy(
            self._raised(wavenumbers, self.scale_entropy), temperature
        )

    def heat_capacity(self, wavenumbers, temperature):
        return harmonic_heat_capacity(
            self._raised(wavenumbers, self.scale_cv), temperature
        )

    def partition_functions(self, wavenumbers, temperature):
        return partition_function_factors(
            self._raised(wavenumbers, self.scale_entropy), temperature
        )


class GrimmeTreatment(LowFrequencyTreatment):
    """
    Entropy of modes below ``intpvib`` interpolated between the harmonic
    oscillator and a free rotor.

    Formula:
        S_K = w(ν_K) * S_v,K + (1 - w(ν_K)) * S_R,K
    """

    NAME = "grimme"
    REFERENCES = (grimme_quasi_rrho_entropy_ref,)

    def _interpolate(self, wavenumbers, harmonic, low_limit):
        """Blend towards ``low_limit`` strictly below ``intpvib``."""
        w = damping_function(wavenumbers, self.intpvib)
        blended = w * harmonic + (1 - w) * low_limit
        return np.where(wavenumbers < self.intpvib, blended, harmonic)

    def entropy(self, wavenumbers, temperature):
        scaled = np.asarray(wavenumbers) * self.scale_entropy
        return self._interpolate(
            scaled,
            harmonic_entropy(scaled, temperature),
            free_rotor_entropy(scaled, temperature, self.bav),
        )


class MinenkovTreatment(GrimmeTreatment):
    """
    Grimme entropy; U - U(0) and Cv of modes below ``intpvib`` are
    interpolated towards the free-rotor limits RT/2 and R/2.
    """

    NAME = "minenkov"
    REFERENCES = (grimme_quasi_rrho_entropy_ref, minenkov_quasi_rrho_ref)

    def thermal_energy(self, wavenumbers, temperature):
        scaled = np.asarray(wavenumbers) * self.scale_heat
        return self._interpolate(
            scaled,
            harmonic_thermal_energy(scaled, temperature),
            0.5 * R * temperature,
        )

    def heat_capacity(self, wavenumbers, temperature):
        scaled = np.asarray(wavenumbers) * self.scale_cv
        return self._interpolate(
            scaled, harmonic_heat_capacity(scaled, temperature), 0.5 * R
        )


class HeadGordonTreatment(GrimmeTreatment):
    """
    Damped entropy with a selectable Bav preset. With ``hg_energy`` the
    ZPE and U - U(0) of modes below ``intpvib`` are damped as well, so
    that their sum tends to the free-rotor value RT/2.
    """

    NAME = "headgordon"
    REFERENCES = (
        head_gordon_damping_function_ref,
        head_gordon_quasi_rrho_enthalpy_ref,
    )

    def zpe(self, wavenumbers):
        zpe = super().zpe(wavenumbers)
        if not self.hg_energy:
            return zpe
        scaled = np.asarray(wavenumbers) * self.scale_zpe
        return self._interpolate(scaled, zpe, 0.0)

    def thermal_energy(self, wavenumbers, temperature):
        energy = super().thermal_energy(wavenumbers, temperature)
        if not self.hg_energy:
            return energy
        scaled = np.asarray(wavenumbers) * self.scale_heat
        return self._interpolate(scaled, energy, 0.5 * R * temperature)


def normalize_treatment_name(name):
    """Lower-case treatment name without separators, e.g. "headgordon"."""
    name = (name or HarmonicTreatment.NAME).strip().lower()
    return name.replace("-", "").replace("_", "")


def resolve_bav(treatment_name, bav_preset, collector=None):
    """
    Average moment of inertia for a treatment.

    Presets are honored only by the Head-Gordon treatment; any other
    treatment uses the default preset, and a different preset request is
    reported as a configuration warning (logged and collected, never
    raised).

    Args:
        treatment_name (str): Name of the low-frequency treatment.
        bav_preset (str): Requested preset, may be empty.
        collector (ErrorCollector, optional): Receives the warning.

    Returns:
        float: Bav in kg m^2.
    """
    preset = (bav_preset or "").lower()
    if preset and preset not in BAV_PRESETS:
        raise InvalidConfiguration(
            f"Unknown Bav preset: {bav_preset}. Choose from "
            f"{list(BAV_PRESETS)}"
        )
    if not preset:
        return BAV_PRESETS[DEFAULT_BAV_PRESET]
    if treatment_name != HeadGordonTreatment.NAME:
        if preset != DEFAULT_BAV_PRESET:
            warning = InvalidConfiguration(
                f"Bav preset '{preset}' only applies to the Head-Gordon "
                f"treatment; using '{DEFAULT_BAV_PRESET}' for "
                f"'{treatment_name}'."
            )
            logger.warning(str(warning))
            if collector is not None:
                collector.add_warning(str(warning))
        return BAV_PRESETS[DEFAULT_BAV_PRESET]
    return BAV_PRESETS[preset]


def make_treatment(settings, collector=None):
    """
    Build the treatment selected in the settings.

    Args:
        settings (ThermochemistryJobSettings): Job settings.
        collector (ErrorCollector, optional): Receives configuration
            warnings.

    Returns:
        LowFrequencyTreatment: Treatment instance for one record.
    """
    name = normalize_treatment_name(settings.low_vib_treatment)
    treatment_cls = LowFrequencyTreatment.from_name(name)
    treatment = treatment_cls(
        scale_zpe=settings.scale_zpe,
        scale_heat=settings.scale_heat,
        scale_entropy=settings.scale_entropy,
        scale_cv=settings.scale_cv,
        ravib=settings.ravib,
        intpvib=settings.intpvib,
        bav=resolve_bav(name, settings.bav_preset, collector),
        hg_energy=settings.hg_energy,
    )
    logger.debug(f"Low-frequency treatment: {treatment}")
    return treatment
