"""
Stages that drive the installed database server.
"""
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING
import logging

from ..base import PipelineStage
from ...config.build_farm_config import BuildFarmConfig
from ...core.models import BuildWorkspace

if TYPE_CHECKING:
    from ...build.run_context import RunContext


DATA_DIR = "data"
SERVER_LOG = "logfile"


def stop_server_command() -> List[str]:
    return ["bin/pg_ctl", "-D", DATA_DIR, "stop"]


class DatabaseStage(PipelineStage):
    """Runs a server control binary from the install directory"""

    def __init__(self, name: str, config: BuildFarmConfig, workspace: BuildWorkspace,
                 args: List[str], description: str,
                 logger: Optional[logging.Logger] = None):
        super().__init__(name, config, workspace, logger)
        self.args = list(args)
        self.description = description

    def command(self) -> List[str]:
        return list(self.args)

    def cwd(self) -> Path:
        return self.workspace.install_dir


class InitdbStage(DatabaseStage):

    def __init__(self, config: BuildFarmConfig, workspace: BuildWorkspace):
        super().__init__("Initdb", config, workspace, ["bin/initdb", DATA_DIR],
                         "setting up db cluster")


class StartdbStage(DatabaseStage):

    def __init__(self, config: BuildFarmConfig, workspace: BuildWorkspace):
        # -w so later stages don't race the server's startup
        super().__init__("Startdb", config, workspace,
                         ["bin/pg_ctl", "-D", DATA_DIR, "-l", SERVER_LOG, "-w", "start"],
                         "starting db")

    def on_success(self, run: 'RunContext') -> None:
        run.db_started = True


class StopdbStage(DatabaseStage):

    def __init__(self, config: BuildFarmConfig, workspace: BuildWorkspace):
        super().__init__("Stopdb", config, workspace, stop_server_command(), "stopping db")

    def on_success(self, run: 'RunContext') -> None:
        run.db_started = False
