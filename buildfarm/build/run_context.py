"""
Run context: the state of one build run and the cleanup every exit path goes through.
"""
import logging
import shutil
import signal
import time
from typing import Optional

from ..config.build_farm_config import BuildFarmConfig
from ..core.models import BuildWorkspace, RunOptions, RunOutcome
from ..pipeline.stages.database import stop_server_command
from ..utils.shell import run_command
from .lock import BranchLockManager


TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP, signal.SIGQUIT)

logger = logging.getLogger(__name__)


def interrupt_exit(signum, frame):
    """Turn a termination signal into a normal exit so cleanup runs"""
    name = signal.Signals(signum).name
    if name.startswith("SIG"):
        name = name[3:]
    print(f"Exiting on signal {name}")
    raise SystemExit(1)


def install_signal_handlers():
    for sig in TERMINATION_SIGNALS:
        signal.signal(sig, interrupt_exit)


class RunContext:
    """
    One build run for one branch, from lock acquisition to exit.

    Use as a context manager: ``teardown`` runs however the block is left,
    whether by a normal return, a SystemExit from the reporter or from a
    signal, or an unexpected exception.
    """

    def __init__(
        self,
        config: BuildFarmConfig,
        options: RunOptions,
        workspace: BuildWorkspace,
        lock: BranchLockManager,
        started_at: Optional[int] = None
    ):
        self.config = config
        self.options = options
        self.workspace = workspace
        self.lock = lock
        self.branch = options.branch
        self.started_at = int(started_at if started_at is not None else time.time())
        self.current_stage: Optional[str] = None
        self.outcome = RunOutcome.PENDING
        self.db_started = False

    def __enter__(self) -> 'RunContext':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.teardown()
        return False

    def mark_failed(self, stage_name: str):
        self.current_stage = stage_name
        self.outcome = RunOutcome.FAILED

    def mark_succeeded(self):
        self.outcome = RunOutcome.SUCCESS

    def mark_skipped(self):
        self.outcome = RunOutcome.SKIPPED

    def teardown(self):
        """
        Release everything the run holds.

        A workspace that still exists after a run that did not succeed
        means the run was cut short. It is archived if keep_error_builds is
        set, the test server is stopped if we started it, and the workspace
        and install directories are removed unless --keepall was given. A
        successful run is left as it is. The lock goes last.
        """
        if not self.lock.held:
            return
        try:
            if self.outcome is not RunOutcome.SUCCESS and self.workspace.source_dir.is_dir():
                self._clean_workspace()
        finally:
            self.lock.release()

    def _clean_workspace(self):
        logger.info(f"Cleaning up after unfinished run (stage {self.current_stage})")
        workspace = self.workspace

        if self.config.keep_error_builds:
            keep_dir = workspace.branch_dir / f"pgsqlkeep.{self.started_at}"
            try:
                workspace.source_dir.rename(keep_dir)
                logger.info(f"Kept failed build in {keep_dir}")
            except OSError as e:
                logger.error(f"Failed to keep {workspace.source_dir} as {keep_dir}: {e}")

        if self.db_started:
            status, _ = run_command(stop_server_command(), cwd=workspace.install_dir)
            if status:
                logger.error(f"Stopping the test server returned status {status}")
            self.db_started = False

        if self.options.keepall:
            return
        for path in (workspace.source_dir, workspace.install_dir):
            shutil.rmtree(path, ignore_errors=True)
