import logging
from typing import List, Optional

from ..config.build_farm_config import BuildFarmConfig
from ..core.models import BuildWorkspace
from .base import Pipeline, PipelineStage, FailureHandler


class PipelineBuilder:
    """Builds the fixed build farm stage sequence for a branch"""

    def __init__(self, config: BuildFarmConfig, workspace: BuildWorkspace, branch: str,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.workspace = workspace
        self.branch = branch
        self.logger = logger

    def build_source_stage(self) -> PipelineStage:
        """First stage; runs before the change gate"""
        from .stages.source import source_stage_for
        return source_stage_for(self.config, self.workspace, self.branch)

    def build_stages(self) -> List[PipelineStage]:
        """Every stage after source sync, in the order they must run"""
        from .stages.build import ConfigureStage, MakeStage
        from .stages.check import check_stage, install_check_stage, contrib_check_stage
        from .stages.database import InitdbStage, StartdbStage, StopdbStage

        config, workspace = self.config, self.workspace
        return [
            ConfigureStage(config, workspace, self.branch),
            MakeStage("Make", config, workspace),
            check_stage(config, workspace),
            MakeStage("Contrib", config, workspace, subdir="contrib",
                      description="make contrib"),
            MakeStage("Install", config, workspace, target="install",
                      description="make install"),
            InitdbStage(config, workspace),
            StartdbStage(config, workspace),
            install_check_stage(config, workspace),
            MakeStage("ContribInstall", config, workspace, subdir="contrib",
                      target="install", description="make contrib install"),
            contrib_check_stage(config, workspace),
            StopdbStage(config, workspace),
        ]

    def build_pipeline(self, on_failure: FailureHandler) -> Pipeline:
        """Pipeline of the build and test stages"""
        return Pipeline(self.build_stages(), on_failure, self.logger)
