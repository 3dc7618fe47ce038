#!/usr/bin/env python3
"""
Build farm run CLI

Runs one build farm cycle for a branch. Meant to be started from cron,
one entry per branch, e.g.:

    32 * * * * cd /path/to/client && buildfarm-run
    18 3 * * 3 cd /path/to/client && buildfarm-run REL7_4_STABLE
"""

import click
import logging
import sys
from typing import Tuple

from click.core import ParameterSource

from ..config.build_farm_config import load_config
from ..core.exceptions import BuildFarmError
from ..core.models import RunOptions
from ..manager import BuildFarmRunner


def setup_logging(verbose: int):
    """Map --verbose onto log levels: 1 shows progress, 2 or more shows stage logs"""
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def resolve_verbose(verbose: str, branch: str, branch_given: bool) -> Tuple[str, int]:
    """
    Split --verbose from the branch name.

    click hands the word after a bare --verbose to the option, so
    "--verbose REL7_4_STABLE" arrives as verbose="REL7_4_STABLE". Only an
    integer is a verbosity level; any other word is the branch and the
    bare flag means 1.

    Returns:
        Tuple of (branch, verbosity level)
    """
    try:
        return branch, int(verbose)
    except ValueError:
        pass
    if branch_given:
        raise click.BadParameter(f"{verbose!r} is not a valid integer", param_hint="'--verbose'")
    return verbose, 1


@click.command(context_settings={"help_option_names": ["--help"]})
@click.argument('branch', default='HEAD')
@click.option('--nosend', is_flag=True, help="Don't send results")
@click.option('--nostatus', is_flag=True, help="Don't set last.status file")
@click.option('--force', is_flag=True, help='Force a build run')
@click.option('--config', 'config_path', default='build-farm.yaml', show_default=True,
              help='Alternative location for config file')
@click.option('--keepall', is_flag=True, help='Keep directories if an error occurs')
@click.option('--verbose', default='0', is_flag=False, flag_value='1',
              help='Verbosity (default 1); 2 or more = huge output')
def main(branch: str, nosend: bool, nostatus: bool, force: bool, config_path: str,
         keepall: bool, verbose: str):
    """Run the build farm stages for BRANCH (default HEAD) and report the result.

    Except for debugging purposes, you should only need the --config option.
    """
    ctx = click.get_current_context()
    branch_given = ctx.get_parameter_source('branch') is not ParameterSource.DEFAULT
    branch, level = resolve_verbose(verbose, branch, branch_given)

    setup_logging(level)
    logger = logging.getLogger(__name__)

    options = RunOptions(
        branch=branch,
        nosend=nosend,
        nostatus=nostatus,
        force=force,
        keepall=keepall,
        verbose=level,
    )

    try:
        config = load_config(config_path)
        status = BuildFarmRunner(config, options).run()
    except BuildFarmError as e:
        logger.error(str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    sys.exit(status)


if __name__ == '__main__':
    main()
