import logging
import os

import pytest
from click.testing import CliRunner

from openthermo.cli.main import entry_point, settings_from_options


class TestCLI:
    """Parent class with useful fixtures and methods for testing the CLI."""

    @pytest.fixture(autouse=True)
    def _prevent_click_io_error(self, caplog):
        """Prevents click IOErrors when pytest logging is enabled.

        See https://github.com/pallets/click/issues/824
        """
        caplog.set_level(10000000)

    @pytest.fixture(autouse=True)
    def _restore_root_logger(self):
        """The CLI replaces the root handlers; put the originals back."""
        root = logging.getLogger()
        handlers, filters = root.handlers[:], root.filters[:]
        level = root.level
        yield
        root.handlers = handlers
        root.filters = filters
        root.setLevel(level)

    @pytest.fixture(autouse=True)
    def _cd_tmpdir(self, tmpdir, monkeypatch):
        """Changes the working directory to the temporary directory."""
        monkeypatch.chdir(tmpdir)
        yield
        monkeypatch.undo()

    @staticmethod
    def run_and_check(command, runner=None, obj=None):
        """Runs a command and raise an error if the command fails.

        Returns:
            results (click.testing.Result): The results of the command.
        """
        runner = runner or CliRunner()
        if obj is None:
            obj = {}
        results = runner.invoke(entry_point, command, obj=obj)
        if results.exception:
            raise results.exception
        return results

    @staticmethod
    def run(command, runner=None):
        runner = runner or CliRunner()
        return runner.invoke(entry_point, command, obj={})


class TestSingleFile(TestCLI):
    def test_single_point(self, gaussian_water_output):
        results = self.run_and_check(
            ["water.log", "-T", "373.15", "--no-settings", "--no-stream"]
        )
        assert results.exit_code == 0
        assert not os.path.exists("water.UHG")

    def test_temperature_scan(self, gaussian_water_output):
        self.run_and_check(
            [
                "water.log",
                "--temperature-scan",
                "200",
                "400",
                "25",
                "--no-settings",
                "--no-stream",
            ]
        )
        assert os.path.isfile("water.UHG")
        assert os.path.isfile("water.SCq")
        with open("water.UHG") as f:
            rows = [line for line in f.read().splitlines()[3:] if line]
        assert len(rows) == 9

    def test_options(self, gaussian_water_output):
        self.run_and_check(
            [
                "water.log",
                "-l",
                "headgordon",
                "--bav",
                "qchem",
                "--hg-energy",
                "--scale-zpe",
                "0.98",
                "--mass-mode",
                "2",
                "--point-group",
                "C2v",
                "--outotm",
                "--prtvib",
                "-1",
                "-n",
                "1",
                "--prtlevel",
                "3",
                "--no-settings",
                "--no-stream",
            ]
        )
        assert os.path.isfile("water.otm")
        assert os.path.isfile("water.vibcon")

    def test_unsupported_file(self, unknown_output):
        results = self.run(["notes.log", "--no-settings", "--no-stream"])
        assert results.exit_code == 1
        assert "Unsupported file format" in results.output

    def test_invalid_option_value(self, gaussian_water_output):
        results = self.run(["water.log", "--mass-mode", "5", "--no-stream"])
        assert results.exit_code == 2


class TestSettingsFile(TestCLI):
    def test_settings_yaml_is_read(self, gaussian_water_output):
        with open("settings.yaml", "w") as f:
            f.write("prtvib: -1\nlow_vib_treatment: grimme\n")
        self.run_and_check(["water.log", "--no-stream"])
        assert os.path.isfile("water.vibcon")

    def test_no_settings_ignores_yaml(self, gaussian_water_output):
        with open("settings.yaml", "w") as f:
            f.write("prtvib: -1\n")
        self.run_and_check(["water.log", "--no-settings", "--no-stream"])
        assert not os.path.exists("water.vibcon")

    def test_invalid_settings(self, gaussian_water_output):
        with open("settings.yaml", "w") as f:
            f.write("scale_zpe: -1.0\n")
        results = self.run(["water.log", "--no-stream"])
        assert results.exit_code == 2
        assert "scale_zpe" in results.output

    def test_command_line_overrides_yaml(self, tmpdir):
        with open("settings.yaml", "w") as f:
            f.write("temperature: 310.0\npressure: 2.0\n")
        settings = settings_from_options(
            {"temperature": 350.0, "pressure": None, "threads": 2}
        )
        assert settings.temperature == 350.0
        assert settings.pressure == 2.0
        assert settings.threads == 2

    def test_scan_options(self, tmpdir):
        settings = settings_from_options(
            {"temperature_scan": (200.0, 400.0, 25.0)},
            no_settings=True,
        )
        assert settings.temperature_low == 200.0
        assert settings.temperature_high == 400.0
        assert settings.temperature_step == 25.0
        assert settings.pressure_step == 0.0


class TestBatch(TestCLI):
    def test_failing_file_is_reported(
        self, gaussian_water_output, gaussian_malformed_output
    ):
        results = self.run(
            [
                "water.log",
                "broken.log",
                "--temperature-scan",
                "250",
                "350",
                "50",
                "--no-settings",
                "--no-stream",
            ]
        )
        assert results.exit_code == 1
        assert "broken.log" in results.output
        assert os.path.isfile("water.UHG")
        assert not os.path.exists("broken.UHG")

    def test_discovers_output_files(
        self, gaussian_water_output, gaussian_h2_output
    ):
        self.run_and_check(
            ["--temperature-scan", "250", "350", "50", "--no-settings"]
            + ["--no-stream"]
        )
        assert os.path.isfile("water.UHG")
        assert os.path.isfile("h2.UHG")

    def test_nothing_to_process(self):
        results = self.run(["--no-settings", "--no-stream"])
        assert results.exit_code == 2
        assert "No input files" in results.output

    def test_manifest(self, gaussian_water_output, gaussian_h2_output):
        with open("conformers.list", "w") as f:
            f.write("water.log\nh2.log\n")
        self.run_and_check(
            ["conformers.list", "--no-settings", "--no-stream"]
        )
        assert os.path.isfile("conformers.ensemble")
