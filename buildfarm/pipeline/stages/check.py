"""
Regression test stages. Their own output rarely says why a test failed,
so the per-test logs and regression diffs are appended to the stage log.
"""
from pathlib import Path
from typing import List, Optional, Sequence
import logging

from .build import MakeStage
from ...config.build_farm_config import BuildFarmConfig
from ...core.models import BuildWorkspace


class RegressionCheckStage(MakeStage):
    """make check / installcheck plus the diagnostic files it leaves behind"""

    def __init__(self, name: str, config: BuildFarmConfig, workspace: BuildWorkspace,
                 subdir: str, target: str, artifact_patterns: Sequence[str],
                 description: str = "", logger: Optional[logging.Logger] = None):
        super().__init__(name, config, workspace, subdir=subdir, target=target,
                         description=description, logger=logger)
        self.artifact_patterns = list(artifact_patterns)

    def artifacts(self, status: int) -> List[Path]:
        found = []
        base = self.cwd()
        for pattern in self.artifact_patterns:
            found.extend(sorted(p for p in base.glob(pattern) if p.is_file()))
        return found


def check_stage(config: BuildFarmConfig, workspace: BuildWorkspace) -> RegressionCheckStage:
    """make check against a temporary installation"""
    return RegressionCheckStage(
        "Check", config, workspace,
        subdir="src/test/regress", target="check",
        artifact_patterns=["logs/*.log", "regression.diffs"],
        description="make check",
    )


def install_check_stage(config: BuildFarmConfig, workspace: BuildWorkspace) -> RegressionCheckStage:
    """make installcheck against the running installed server"""
    return RegressionCheckStage(
        "InstallCheck", config, workspace,
        subdir="src/test/regress", target="installcheck",
        artifact_patterns=["regression.diffs"],
        description="make installcheck",
    )


def contrib_check_stage(config: BuildFarmConfig, workspace: BuildWorkspace) -> RegressionCheckStage:
    """make installcheck for every contrib module"""
    return RegressionCheckStage(
        "ContribCheck", config, workspace,
        subdir="contrib", target="installcheck",
        artifact_patterns=["*/regression.diffs"],
        description="make contrib installcheck",
    )
