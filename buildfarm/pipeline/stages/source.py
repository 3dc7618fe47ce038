"""
Source sync stage: fetches the tree the rest of the pipeline builds.
"""
import shlex
from pathlib import Path
from typing import List, Optional, Union
import logging

from ..base import PipelineStage
from ...config.build_farm_config import BuildFarmConfig
from ...core.models import BuildWorkspace


class SourceSyncStage(PipelineStage):
    """
    Exports or updates the source tree.

    With the export method the tree is fetched fresh into the build
    directory each run. With the update method a pristine checkout is kept
    between runs and updated in place.
    """

    reports_config_summary = False

    def __init__(self, name: str, config: BuildFarmConfig, workspace: BuildWorkspace,
                 branch: str, logger: Optional[logging.Logger] = None):
        super().__init__(name, config, workspace, logger)
        self.branch = branch
        self.description = f"{name.lower()} {config.scm_method}"

    @property
    def checkout_name(self) -> str:
        return self.workspace.checkout_dir.name

    def cwd(self) -> Path:
        if self.config.scm_method == "update" and self.workspace.checkout_dir.is_dir():
            return self.workspace.checkout_dir
        return self.workspace.branch_dir

    def command(self) -> Union[str, List[str]]:
        if self.config.scm_method == "export":
            return self.export_command()
        if self.workspace.checkout_dir.is_dir():
            return self.update_command()
        return self.checkout_command()

    def export_command(self) -> Union[str, List[str]]:
        raise NotImplementedError

    def update_command(self) -> Union[str, List[str]]:
        raise NotImplementedError

    def checkout_command(self) -> Union[str, List[str]]:
        raise NotImplementedError


class CvsSyncStage(SourceSyncStage):
    """CVS export / update / checkout"""

    def __init__(self, config: BuildFarmConfig, workspace: BuildWorkspace, branch: str,
                 logger: Optional[logging.Logger] = None):
        super().__init__("CVS", config, workspace, branch, logger)

    def _revision_args(self) -> List[str]:
        # cvs misbehaves when given an explicit HEAD on checkout or update
        if self.branch == "HEAD":
            return []
        return ["-r", self.branch]

    def export_command(self) -> List[str]:
        # export always needs a tag
        return ["cvs", "-d", self.config.repository, "export", "-r", self.branch,
                self.checkout_name]

    def update_command(self) -> List[str]:
        return ["cvs", "-d", self.config.repository, "update", "-d", "-P",
                *self._revision_args()]

    def checkout_command(self) -> List[str]:
        return ["cvs", "-d", self.config.repository, "co", "-P",
                *self._revision_args(), self.checkout_name]


class GitSyncStage(SourceSyncStage):
    """git clone / pull"""

    def __init__(self, config: BuildFarmConfig, workspace: BuildWorkspace, branch: str,
                 logger: Optional[logging.Logger] = None):
        super().__init__("Git", config, workspace, branch, logger)

    @property
    def git_branch(self) -> str:
        return "master" if self.branch == "HEAD" else self.branch

    def export_command(self) -> str:
        target = shlex.quote(self.checkout_name)
        return (
            f"git clone -q --depth 1 --branch {shlex.quote(self.git_branch)} "
            f"{shlex.quote(self.config.repository)} {target} "
            f"&& rm -rf {target}/.git"
        )

    def update_command(self) -> List[str]:
        return ["git", "pull", "-q", "--ff-only", "origin", self.git_branch]

    def checkout_command(self) -> List[str]:
        return ["git", "clone", "-q", "--branch", self.git_branch,
                self.config.repository, self.checkout_name]


def source_stage_for(config: BuildFarmConfig, workspace: BuildWorkspace,
                     branch: str) -> SourceSyncStage:
    """Source sync stage for the configured scm"""
    if config.scm == "git":
        return GitSyncStage(config, workspace, branch)
    return CvsSyncStage(config, workspace, branch)
