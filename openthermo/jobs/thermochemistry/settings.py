"""
Settings configuration for thermochemistry jobs.

This module provides the ThermochemistryJobSettings class: conditions of
the calculation (temperature, pressure and scan ranges), the independent
frequency scale factors, the low-frequency treatment and its thresholds,
record overrides, verbosity and the parallel execution request.
"""

import logging

from openthermo.analysis.lowfreq import (
    LowFrequencyTreatment,
    normalize_treatment_name,
)
from openthermo.utils.constants import BAV_PRESETS
from openthermo.utils.mixins import YAMLFileMixin
from openthermo.utils.utils import InvalidConfiguration

logger = logging.getLogger(__name__)

SCAN_STRATEGIES = ("auto", "points", "modes")
MASS_MODES = (1, 2, 3)


class ThermochemistryJobSettings:
    """
    Configuration settings for thermochemistry calculations.

    Attributes:
        temperature (float): Temperature in K (default 298.15).
        pressure (float): Pressure in atm (default 1.0).
        temperature_low, temperature_high, temperature_step (float):
            Temperature scan in K; active when the step is non-zero.
        pressure_low, pressure_high, pressure_step (float): Pressure scan
            in atm; active when the step is non-zero.
        prtvib (int): 1 logs per-mode contributions, -1 writes them to
            ``<basename>.vibcon``, 0 disables them.
        mass_mode (int): 1 element average, 2 most abundant isotope,
            3 masses printed in the output file.
        ipmode (int): 1 removes translation and rotation (condensed
            phase or periodic systems).
        low_vib_treatment (str): harmonic, truhlar, grimme, minenkov or
            headgordon.
        scale_zpe, scale_heat, scale_entropy, scale_cv (float): Frequency
            scale factors for the ZPE, U - U(0), S and q, and Cv.
        ravib (float): Raising threshold of the Truhlar treatment, cm^-1.
        intpvib (float): Interpolation threshold, cm^-1.
        imagreal (float): Imaginary modes with |ν| below this value are
            treated as real, cm^-1.
        external_energy (float): Electronic energy override in Hartree,
            0 keeps the loaded energy.
        outotm (bool): Write a ``.otm`` checkpoint of each record.
        point_group (str): Point group hint.
        prtlevel (int): Verbosity 0-3.
        hg_energy (bool): Damp the ZPE and U of low modes as well
            (Head-Gordon only).
        bav_preset (str): "grimme" or "qchem"; empty for the default.
        threads (int): Requested thread count, 0 for automatic.
        memory_mb (int): Memory ceiling in MB, 0 for automatic.
        scan_strategy (str): auto, points or modes.
    """

    def __init__(
        self,
        temperature=298.15,
        pressure=1.0,
        temperature_low=0.0,
        temperature_high=0.0,
        temperature_step=0.0,
        pressure_low=0.0,
        pressure_high=0.0,
        pressure_step=0.0,
        prtvib=0,
        mass_mode=1,
        ipmode=0,
        low_vib_treatment="harmonic",
        scale_zpe=1.0,
        scale_heat=1.0,
        scale_entropy=1.0,
        scale_cv=1.0,
        ravib=100.0,
        intpvib=100.0,
        imagreal=0.0,
        external_energy=0.0,
        outotm=False,
        point_group="",
        prtlevel=1,
        hg_energy=False,
        bav_preset="",
        threads=0,
        memory_mb=0,
        scan_strategy="auto",
    ):
        logger.debug("Initializing ThermochemistryJobSettings")
        self.temperature = float(temperature)
        self.pressure = float(pressure)
        self.temperature_low = float(temperature_low)
        self.temperature_high = float(temperature_high)
        self.temperature_step = float(temperature_step)
        self.pressure_low = float(pressure_low)
        self.pressure_high = float(pressure_high)
        self.pressure_step = float(pressure_step)
        self.prtvib = int(prtvib)
        self.mass_mode = int(mass_mode)
        self.ipmode = int(ipmode)
        self.low_vib_treatment = normalize_treatment_name(low_vib_treatment)
        self.scale_zpe = float(scale_zpe)
        self.scale_heat = float(scale_heat)
        self.scale_entropy = float(scale_entropy)
        self.scale_cv = float(scale_cv)
        self.ravib = float(ravib)
        self.intpvib = float(intpvib)
        self.imagreal = float(imagreal)
        self.external_energy = float(external_energy)
        self.outotm = bool(outotm)
        self.point_group = point_group or ""
        self.prtlevel = int(prtlevel)
        self.hg_energy = bool(hg_energy)
        self.bav_preset = (bav_preset or "").lower()
        self.threads = int(threads)
        self.memory_mb = int(memory_mb)
        self.scan_strategy = (scan_strategy or "auto").lower()

    @property
    def is_scan(self):
        """A temperature or pressure scan is configured."""
        return self.temperature_step != 0 or self.pressure_step != 0

    def to_dict(self):
        return dict(vars(self))

    def copy(self):
        """
        Create a copy of the settings instance.

        Returns:
            ThermochemistryJobSettings: New instance with identical settings
        """
        return ThermochemistryJobSettings(**self.to_dict())

    def merge(self, other):
        """New settings with the keys of ``other`` (a dict) applied."""
        settings_dict = self.to_dict()
        settings_dict.update(other)
        return self.from_dict(settings_dict)

    @classmethod
    def from_dict(cls, settings_dict):
        """
        Create settings instance from a dictionary.

        Raises:
            InvalidConfiguration: If the dictionary holds unknown keys.
        """
        try:
            return cls(**settings_dict)
        except TypeError as e:
            raise InvalidConfiguration(f"Invalid settings: {e}") from e

    @classmethod
    def from_yaml(cls, filename):
        """Settings from a YAML mapping, e.g. ``settings.yaml``."""
        return cls.from_dict(ThermochemistrySettingsFile(filename).settings)

    def validate(self):
        """
        Check the settings for inconsistent values.

        Raises:
            InvalidConfiguration: On the first problem found.
        """
        if self.temperature <= 0 and self.temperature_step == 0:
            raise InvalidConfiguration(
                f"Temperature must be positive, got {self.temperature} K"
            )
        if self.pressure <= 0 and self.pressure_step == 0:
            raise InvalidConfiguration(
                f"Pressure must be positive, got {self.pressure} atm"
            )
        for axis, unit in (("temperature", "K"), ("pressure", "atm")):
            low = getattr(self, f"{axis}_low")
            high = getattr(self, f"{axis}_high")
            step = getattr(self, f"{axis}_step")
            if step == 0:
                continue
            if step < 0:
                raise InvalidConfiguration(
                    f"The {axis} scan step must be positive, got {step} {unit}"
                )
            if low <= 0:
                raise InvalidConfiguration(
                    f"The {axis} scan must start above zero, got {low} {unit}"
                )
            if high < low:
                raise InvalidConfiguration(
                    f"The {axis} scan ends below its start: {high} < {low}"
                )
        for name in ("scale_zpe", "scale_heat", "scale_entropy", "scale_cv"):
            if getattr(self, name) <= 0:
                raise InvalidConfiguration(
                    f"{name} must be positive, got {getattr(self, name)}"
                )
        if self.mass_mode not in MASS_MODES:
            raise InvalidConfiguration(
                f"Mass mode must be one of {MASS_MODES}, got {self.mass_mode}"
            )
        if self.scan_strategy not in SCAN_STRATEGIES:
            raise InvalidConfiguration(
                f"Scan strategy must be one of {SCAN_STRATEGIES}, got "
                f"{self.scan_strategy}"
            )
        if self.bav_preset and self.bav_preset not in BAV_PRESETS:
            raise InvalidConfiguration(
                f"Unknown Bav preset: {self.bav_preset}. Choose from "
                f"{list(BAV_PRESETS)}"
            )
        # raises for unknown names
        LowFrequencyTreatment.from_name(self.low_vib_treatment)
        if self.ravib < 0 or self.intpvib < 0 or self.imagreal < 0:
            raise InvalidConfiguration(
                "ravib, intpvib and imagreal must not be negative"
            )
        if not 0 <= self.prtlevel <= 3:
            raise InvalidConfiguration(
                f"Print level must be 0-3, got {self.prtlevel}"
            )
        return self

    def __repr__(self):
        return f"{self.__class__.__name__}({self.to_dict()})"


class ThermochemistrySettingsFile(YAMLFileMixin):
    """
    YAML settings file. Top-level keys are settings names; a
    ``thermochemistry`` section is used when present.
    """

    def __init__(self, filename):
        self.filename = filename

    @property
    def settings(self):
        data = self.yaml_contents_dict or {}
        if not isinstance(data, dict):
            raise InvalidConfiguration(
                f"Settings file {self.filename} must hold a mapping"
            )
        if "thermochemistry" in data:
            data = data["thermochemistry"] or {}
        logger.debug(f"Settings read from {self.filename}: {data}")
        return dict(data)
