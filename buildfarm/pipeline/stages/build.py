"""
Configure, make and install stages.
"""
import shlex
from pathlib import Path
from typing import Dict, List, Optional
import logging

from ..base import PipelineStage
from ...config.build_farm_config import BuildFarmConfig
from ...core.models import BuildWorkspace


class ConfigureStage(PipelineStage):
    """Runs configure with the animal's options, install prefix and test port"""

    description = "configure"

    def __init__(self, config: BuildFarmConfig, workspace: BuildWorkspace, branch: str,
                 logger: Optional[logging.Logger] = None):
        super().__init__("Configure", config, workspace, logger)
        self.branch = branch

    def configure_args(self) -> List[str]:
        return [
            *self.config.config_opts,
            f"--prefix={self.workspace.install_dir}",
            f"--with-pgport={self.config.port_for(self.branch)}",
        ]

    def command(self) -> List[str]:
        return ["./configure", *self.configure_args()]

    def cwd(self) -> Path:
        return self.workspace.source_dir

    def environment(self) -> Optional[Dict[str, str]]:
        return dict(self.config.config_env) or None

    def artifacts(self, status: int) -> List[Path]:
        # config.log is only interesting when configure failed
        if status and self.workspace.config_log.exists():
            return [self.workspace.config_log]
        return []


class MakeStage(PipelineStage):
    """Runs make (optionally with a target) in a directory of the source tree"""

    def __init__(self, name: str, config: BuildFarmConfig, workspace: BuildWorkspace,
                 subdir: str = "", target: str = "", description: str = "",
                 logger: Optional[logging.Logger] = None):
        super().__init__(name, config, workspace, logger)
        self.subdir = subdir
        self.target = target
        self.description = description or " ".join(
            part for part in ("make", subdir, target) if part
        )

    def command(self) -> str:
        # make may carry its own arguments, e.g. "gmake -j4"
        if self.target:
            return f"{self.config.make} {shlex.quote(self.target)}"
        return self.config.make

    def cwd(self) -> Path:
        if self.subdir:
            return self.workspace.source_dir / self.subdir
        return self.workspace.source_dir
