"""Test cases for the buildfarm-run command line."""

import logging
from unittest.mock import patch

import click
import pytest
import yaml
from click.testing import CliRunner

from buildfarm.cli.run_cli import main, resolve_verbose, setup_logging
from buildfarm.core.exceptions import PreconditionError


@pytest.fixture
def config_file(tmp_path, build_root):
    path = tmp_path / "build-farm.yaml"
    path.write_text(yaml.safe_dump({
        'build_root': str(build_root),
        'animal': 'test_animal',
        'target': 'http://collector.invalid/cgi-bin/pgstatus.pl',
        'secret': 'sekrit',
    }))
    return path


@pytest.fixture
def runner_cls():
    with patch("buildfarm.cli.run_cli.BuildFarmRunner") as cls:
        cls.return_value.run.return_value = 0
        yield cls


@pytest.fixture
def cli():
    return CliRunner()


class TestRunCli:
    """Argument handling and exit codes"""

    def test_missing_config_file(self, cli, tmp_path, runner_cls):
        result = cli.invoke(main, ["--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Configuration file not found" in result.output
        runner_cls.assert_not_called()

    def test_defaults(self, cli, config_file, runner_cls):
        result = cli.invoke(main, ["--config", str(config_file)])
        assert result.exit_code == 0

        config, options = runner_cls.call_args[0]
        assert config.animal == "test_animal"
        assert options.branch == "HEAD"
        assert not options.nosend
        assert not options.nostatus
        assert not options.force
        assert not options.keepall
        assert options.verbose == 0

    def test_options_are_passed_through(self, cli, config_file, runner_cls):
        result = cli.invoke(main, [
            "--config", str(config_file), "--nosend", "--nostatus", "--force",
            "--keepall", "--verbose=2", "REL8_0_STABLE",
        ])
        assert result.exit_code == 0

        options = runner_cls.call_args[0][1]
        assert options.branch == "REL8_0_STABLE"
        assert options.nosend
        assert options.nostatus
        assert options.force
        assert options.keepall
        assert options.verbose == 2

    def test_bare_verbose_means_one(self, cli, config_file, runner_cls):
        cli.invoke(main, ["--config", str(config_file), "--verbose"])
        assert runner_cls.call_args[0][1].verbose == 1

    def test_bare_verbose_before_branch(self, cli, config_file, runner_cls):
        result = cli.invoke(main, ["--config", str(config_file), "--verbose", "REL7_4_STABLE"])
        assert result.exit_code == 0
        options = runner_cls.call_args[0][1]
        assert options.branch == "REL7_4_STABLE"
        assert options.verbose == 1

    def test_verbose_level_before_branch(self, cli, config_file, runner_cls):
        result = cli.invoke(main, [
            "--config", str(config_file), "--verbose", "2", "REL7_4_STABLE",
        ])
        assert result.exit_code == 0
        options = runner_cls.call_args[0][1]
        assert options.branch == "REL7_4_STABLE"
        assert options.verbose == 2

    def test_bad_verbose_with_branch_is_a_usage_error(self, cli, config_file, runner_cls):
        result = cli.invoke(main, [
            "--config", str(config_file), "--verbose=lots", "REL7_4_STABLE",
        ])
        assert result.exit_code == 2
        runner_cls.assert_not_called()

    def test_precondition_failure_exits_one(self, cli, config_file, runner_cls):
        runner_cls.return_value.run.side_effect = PreconditionError("buildroot x not absolute")
        result = cli.invoke(main, ["--config", str(config_file)])
        assert result.exit_code == 1
        assert "Error: buildroot x not absolute" in result.output

    def test_reporter_exit_status_is_kept(self, cli, config_file, runner_cls):
        runner_cls.return_value.run.side_effect = SystemExit(1)
        result = cli.invoke(main, ["--config", str(config_file)])
        assert result.exit_code == 1


class TestResolveVerbose:
    """Telling a verbosity level from a branch name"""

    @pytest.mark.parametrize("verbose,branch,given,expected", [
        ("0", "HEAD", False, ("HEAD", 0)),
        ("3", "REL8_0_STABLE", True, ("REL8_0_STABLE", 3)),
        ("REL7_4_STABLE", "HEAD", False, ("REL7_4_STABLE", 1)),
    ])
    def test_resolve(self, verbose, branch, given, expected):
        assert resolve_verbose(verbose, branch, given) == expected

    def test_word_with_explicit_branch(self):
        with pytest.raises(click.BadParameter):
            resolve_verbose("lots", "REL8_0_STABLE", True)


class TestSetupLogging:
    """--verbose levels"""

    @pytest.mark.parametrize("verbose,level", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_levels(self, verbose, level):
        with patch("buildfarm.cli.run_cli.logging.basicConfig") as basic_config:
            setup_logging(verbose)
        assert basic_config.call_args[1]["level"] == level
