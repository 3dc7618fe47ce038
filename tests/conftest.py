"""Pytest configuration and fixtures for build farm client tests."""

import fcntl
import os
import signal
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple
import pytest
import logging

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from buildfarm.build.lock import LOCK_FILE_NAME
from buildfarm.config.build_farm_config import BuildFarmConfig
from buildfarm.core.models import BuildWorkspace, RunOptions

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeCommands:
    """
    Stands in for run_command.

    Commands are matched by substring against the command line. Every call
    is recorded as (command line, cwd). An optional action runs before the
    result is returned, e.g. to create the directory an export would.
    """

    def __init__(self):
        self.calls: List[Tuple[str, Optional[Path]]] = []
        self.results: Dict[str, Tuple[int, List[bytes]]] = {}
        self.actions: Dict[str, Callable[[Optional[Path]], None]] = {}

    def set_result(self, match: str, status: int, log: Optional[List[bytes]] = None):
        self.results[match] = (status, list(log or []))

    def on(self, match: str, action: Callable[[Optional[Path]], None]):
        self.actions[match] = action

    def commands(self) -> List[str]:
        return [command for command, _ in self.calls]

    def __call__(self, command, cwd=None, env=None):
        line = command if isinstance(command, str) else " ".join(command)
        cwd = Path(cwd) if cwd is not None else None
        self.calls.append((line, cwd))
        # longest match wins so "make check" beats "make"
        for match in sorted(self.actions, key=len, reverse=True):
            if match in line:
                self.actions[match](cwd)
                break
        for match in sorted(self.results, key=len, reverse=True):
            if match in line:
                status, log = self.results[match]
                return status, list(log)
        return 0, [f"{line}: ok\n".encode()]


@pytest.fixture
def build_root(tmp_path) -> Path:
    root = tmp_path / "buildroot"
    root.mkdir()
    return root


@pytest.fixture
def make_config(build_root) -> Callable[..., BuildFarmConfig]:
    """Factory for configs rooted in the temporary build root."""
    def factory(**overrides) -> BuildFarmConfig:
        data = {
            'build_root': str(build_root),
            'animal': 'test_animal',
            'target': 'http://collector.invalid/cgi-bin/pgstatus.pl',
            'secret': 'sekrit',
            'config_opts': ['--enable-debug'],
        }
        data.update(overrides)
        return BuildFarmConfig.from_dict(data)
    return factory


@pytest.fixture
def config(make_config) -> BuildFarmConfig:
    return make_config()


@pytest.fixture
def options() -> RunOptions:
    return RunOptions(branch="HEAD")


@pytest.fixture
def workspace(build_root) -> BuildWorkspace:
    branch_dir = build_root / "HEAD"
    branch_dir.mkdir()
    return BuildWorkspace.for_branch(branch_dir, "pgsql")


@pytest.fixture
def fake_commands(monkeypatch) -> FakeCommands:
    """Replace every external command with a FakeCommands instance."""
    fake = FakeCommands()
    monkeypatch.setattr("buildfarm.pipeline.base.run_command", fake)
    monkeypatch.setattr("buildfarm.build.run_context.run_command", fake)
    return fake


def populate_source_tree(root: Path, mtime: Optional[float] = None):
    """Create a small source tree shaped like the one the stages expect."""
    for rel in ("configure", "src/backend/main.c", "src/test/regress/GNUmakefile",
                "contrib/cube/cube.c"):
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"/* {rel} */\n")
        if mtime is not None:
            os.utime(path, (mtime, mtime))


@pytest.fixture
def restore_signals():
    """Put back whatever signal handlers a test replaced."""
    saved = {sig: signal.getsignal(sig) for sig in
             (signal.SIGINT, signal.SIGTERM, signal.SIGHUP, signal.SIGQUIT)}
    yield
    for sig, handler in saved.items():
        signal.signal(sig, handler)


def lock_is_free(branch_dir: Path) -> bool:
    """Whether a fresh descriptor can take the branch flock right now"""
    with open(branch_dir / LOCK_FILE_NAME, "a") as f:
        try:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            return False
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        return True
