import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union, TYPE_CHECKING
from datetime import datetime

from ..config.build_farm_config import BuildFarmConfig
from ..core.models import BuildWorkspace, StageResult
from ..utils.shell import run_command

if TYPE_CHECKING:
    from ..build.run_context import RunContext


FailureHandler = Callable[['PipelineStage', StageResult], Any]


def artifact_banner(path: Union[str, Path]) -> bytes:
    """Separator line written before an appended log file"""
    return f"\n\n================== {path} ==================\n".encode()


class PipelineStage(ABC):
    """
    Base class for all pipeline stages.

    A stage runs exactly one external command and hands back a StageResult.
    Stages never decide what happens to the run; the Pipeline does.
    """

    # progress text shown as "running <description> ..."
    description: str = ""
    # whether failure reports carry the configuration summary
    reports_config_summary: bool = True

    def __init__(self, name: str, config: BuildFarmConfig, workspace: BuildWorkspace,
                 logger: Optional[logging.Logger] = None):
        self.name = name
        self.config = config
        self.workspace = workspace
        self.logger = logger or logging.getLogger(f"{__name__}.{name}")

    @abstractmethod
    def command(self) -> Union[str, List[str]]:
        """The command this stage runs"""
        pass

    @abstractmethod
    def cwd(self) -> Path:
        """Directory the command runs in"""
        pass

    def environment(self) -> Optional[Dict[str, str]]:
        """Extra environment for the command (optional override)"""
        return None

    def artifacts(self, status: int) -> List[Path]:
        """Diagnostic files appended to the log after the command (optional override)"""
        return []

    def display_path(self, path: Path) -> Path:
        """Path as shown in logs, relative to the branch directory when possible"""
        try:
            return path.relative_to(self.workspace.branch_dir)
        except ValueError:
            return path

    def on_success(self, run: 'RunContext') -> None:
        """Record side effects of a successful stage on the run (optional override)"""
        pass

    def execute(self) -> StageResult:
        """Run the command, then append any diagnostic files to its log"""
        start = time.monotonic()
        status, log = run_command(self.command(), cwd=self.cwd(), env=self.environment())

        for path in self.artifacts(status):
            try:
                content = path.read_bytes()
            except OSError as e:
                self.logger.warning(f"Could not read {path}: {e}")
                continue
            log.append(artifact_banner(self.display_path(path)))
            log.extend(content.splitlines(keepends=True))

        return StageResult(
            stage_name=self.name,
            status=status,
            log=log,
            duration_ms=(time.monotonic() - start) * 1000
        )


@dataclass
class PipelineStats:
    """Statistics for pipeline execution"""
    stage_stats: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None


class Pipeline:
    """
    Runs stages strictly in order and stops at the first failure.

    Each stage assumes every stage before it succeeded; that ordering is
    the only dependency tracking there is. The failure handler is expected
    to end the process. If it returns, the pipeline still stops and hands
    back the failing result.
    """

    def __init__(self, stages: List[PipelineStage], on_failure: FailureHandler,
                 logger: Optional[logging.Logger] = None):
        self.stages = list(stages)
        self.on_failure = on_failure
        self.logger = logger or logging.getLogger(f"{__name__}.pipeline")
        self.stats = PipelineStats()

    def run_stage(self, stage: PipelineStage, run: 'RunContext') -> StageResult:
        """Run a single stage and report it if it fails"""
        run.current_stage = stage.name
        self.logger.info(f"running {stage.description or stage.name} ...")

        result = stage.execute()
        self.stats.stage_stats[stage.name] = {
            "status": result.status,
            "duration_ms": result.duration_ms,
        }

        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                f"======== {stage.description or stage.name} log ===========\n"
                f"{result.log_text()}"
            )

        if result.success:
            stage.on_success(run)
            return result

        self.logger.error(f"Stage {stage.name} failed with status {result.status}")
        run.mark_failed(stage.name)
        self.on_failure(stage, result)
        return result

    def execute(self, run: 'RunContext') -> Optional[StageResult]:
        """
        Run every stage in order.

        Returns:
            None if all stages succeeded, else the result of the failed stage
        """
        start = datetime.now()
        self.stats.start_time = start
        try:
            for stage in self.stages:
                result = self.run_stage(stage, run)
                if not result.success:
                    return result
        finally:
            self.stats.end_time = datetime.now()

        elapsed = (self.stats.end_time - start).total_seconds()
        self.logger.info(f"Pipeline completed in {elapsed:.2f}s")
        return None
