import logging
import os
import shutil
import time
from pathlib import Path
from typing import Callable, Optional

from .build.change_detector import ChangeDetector
from .build.lock import BranchLockManager
from .build.run_context import RunContext, install_signal_handlers
from .build.scanner import SourceScanner
from .build.status import LastStatusStore
from .config.build_farm_config import BuildFarmConfig
from .core.exceptions import PreconditionError, WorkspaceError
from .core.models import OK_STAGE, BuildWorkspace, RunOptions, StageResult
from .pipeline.base import PipelineStage
from .pipeline.pipeline_builder import PipelineBuilder
from .reporting.reporter import ResultReporter
from .utils.config_summary import extract_config_summary


class BuildFarmRunner:
    """Runs one build farm cycle for a branch"""

    def __init__(self, config: BuildFarmConfig, options: RunOptions,
                 pid: Optional[int] = None,
                 clock: Callable[[], float] = time.time,
                 handle_signals: bool = True):
        self.config = config
        self.options = options
        self.pid = pid if pid is not None else os.getpid()
        self.clock = clock
        self.handle_signals = handle_signals
        self.logger = logging.getLogger(f"{__name__}.BuildFarmRunner")

    def prepare_branch_dir(self) -> Path:
        """Check the build root and make sure the branch directory exists"""
        build_root = Path(self.config.build_root)
        if not build_root.is_absolute():
            raise PreconditionError(f"buildroot {build_root} not absolute")
        if not build_root.is_dir():
            raise PreconditionError(f"{build_root} does not exist or is not a directory")

        branch_dir = build_root / self.options.branch
        try:
            branch_dir.mkdir(exist_ok=True)
        except OSError as e:
            raise PreconditionError(f"creating {branch_dir}: {e}") from e
        return branch_dir

    def run(self) -> int:
        """
        Run the cycle.

        Returns:
            0 when the run was skipped, either because another builder holds
            the branch lock or because nothing changed. Every other outcome
            ends in the reporter, which exits the process.
        """
        for key, value in self.config.build_env.items():
            os.environ[key] = str(value)

        branch_dir = self.prepare_branch_dir()
        workspace = BuildWorkspace.for_branch(branch_dir, self.config.workspace_name(self.pid))

        lock = BranchLockManager(branch_dir)
        if not lock.try_acquire():
            # overlapping cron runs are expected, stay quiet
            return 0

        self.ensure_clean_workspace(workspace, lock)

        with RunContext(self.config, self.options, workspace, lock,
                        started_at=int(self.clock())) as run:
            if self.handle_signals:
                # from here on a signal unwinds through teardown
                install_signal_handlers()
            self._run_locked(run)
        return 0

    def ensure_clean_workspace(self, workspace: BuildWorkspace, lock: BranchLockManager):
        """
        Refuse to build on top of a previous run's directories.

        Raises:
            PreconditionError: If the build or install directory exists. The
                lock is given up without cleanup so the leftovers stay put.
        """
        if workspace.source_dir.exists() or workspace.install_dir.exists():
            lock.abandon()
            raise PreconditionError(
                f"{workspace.branch_dir} has {workspace.source_dir.name} or "
                f"{workspace.install_dir.name} directories!"
            )

    def _run_locked(self, run: RunContext):
        workspace = run.workspace
        reporter = ResultReporter(self.config, self.options, ts=run.started_at)

        def on_failure(stage: PipelineStage, result: StageResult):
            config_summary = None
            if stage.reports_config_summary:
                config_summary = extract_config_summary(workspace.config_log)
            reporter.send(stage.name, result.status, result.log, config_summary)

        builder = PipelineBuilder(self.config, workspace, self.options.branch)
        pipeline = builder.build_pipeline(on_failure)

        self.logger.info("checking out source ...")
        if not pipeline.run_stage(builder.build_source_stage(), run).success:
            return

        self.logger.info("checking if build run needed ...")
        status_store = LastStatusStore(workspace.branch_dir)
        detector = ChangeDetector(
            SourceScanner.for_scm(self.config.scm, self.config.scm_method),
            force=self.options.force,
            force_every=self.config.force_every,
        )
        decision = detector.detect(workspace.checkout_dir, status_store.read(), run.started_at)
        if not decision.needs_run:
            shutil.rmtree(workspace.source_dir, ignore_errors=True)
            run.mark_skipped()
            return

        if workspace.copies_checkout:
            self.copy_checkout(workspace)

        if not self.options.nostatus:
            status_store.write(int(self.clock()))

        if pipeline.execute(run) is not None:
            return

        config_summary = extract_config_summary(workspace.config_log)
        if not self.options.keepall:
            # only failed builds are kept
            for path in (workspace.source_dir, workspace.install_dir):
                shutil.rmtree(path, ignore_errors=True)

        run.mark_succeeded()
        self.logger.info("OK")
        reporter.send(OK_STAGE, 0, [], config_summary)

    def copy_checkout(self, workspace: BuildWorkspace):
        """Copy the pristine checkout to the per-run build directory"""
        self.logger.info(f"copying source to {workspace.source_dir.name} ...")
        try:
            shutil.copytree(workspace.checkout_dir, workspace.source_dir, symlinks=True)
        except (OSError, shutil.Error) as e:
            raise WorkspaceError(f"copying directories: {e}") from e
