"""
Models for a single build farm run.
"""
from dataclasses import dataclass, field
from typing import List, Optional
from pathlib import Path
from enum import Enum


OK_STAGE = "OK"


class RunOutcome(str, Enum):
    """Terminal outcome of a run"""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RunOptions:
    """Per-invocation switches taken from the command line"""
    branch: str = "HEAD"
    nosend: bool = False
    nostatus: bool = False
    force: bool = False
    keepall: bool = False
    verbose: int = 0


@dataclass
class StageResult:
    """Result of running one pipeline stage"""
    stage_name: str
    status: int
    log: List[bytes] = field(default_factory=list)
    duration_ms: Optional[float] = None
    
    @property
    def success(self) -> bool:
        return self.status == 0
    
    def log_bytes(self) -> bytes:
        """Captured log joined back into one byte string"""
        return b"".join(self.log)
    
    def log_text(self) -> str:
        """Captured log for human display"""
        return self.log_bytes().decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ResultPayload:
    """
    Signed result as it goes on the wire.
    
    ``log`` and ``conf`` hold the already encoded blobs, ``content`` the
    canonical string the signature was computed over.
    """
    branch: str
    res: int
    stage: str
    animal: str
    ts: int
    log: str
    conf: str
    content: str
    signature: str
    
    @property
    def is_success(self) -> bool:
        return self.stage == OK_STAGE


@dataclass(frozen=True)
class BuildWorkspace:
    """Directory layout of one branch under the build root"""
    branch_dir: Path
    checkout_dir: Path
    source_dir: Path
    install_dir: Path
    
    @classmethod
    def for_branch(cls, branch_dir: Path, source_name: str) -> 'BuildWorkspace':
        branch_dir = Path(branch_dir)
        return cls(
            branch_dir=branch_dir,
            checkout_dir=branch_dir / "pgsql",
            source_dir=branch_dir / source_name,
            install_dir=branch_dir / "inst",
        )
    
    @property
    def config_log(self) -> Path:
        return self.source_dir / "config.log"
    
    @property
    def regress_dir(self) -> Path:
        return self.source_dir / "src" / "test" / "regress"
    
    @property
    def contrib_dir(self) -> Path:
        return self.source_dir / "contrib"
    
    @property
    def copies_checkout(self) -> bool:
        """Whether builds run in a copy of the checkout rather than the checkout itself"""
        return self.source_dir != self.checkout_dir
