"""
Models for the change detection gate.
"""
from dataclasses import dataclass, field
from typing import List, Optional
from pathlib import Path


@dataclass
class ChangeDecision:
    """Outcome of checking whether a build run is needed"""
    last_status: int
    effective_last_status: int
    changed_files: List[Path] = field(default_factory=list)
    forced_reason: Optional[str] = None
    
    @property
    def needs_run(self) -> bool:
        """A run is needed unless there was a previous run and nothing changed since"""
        return not (self.effective_last_status and not self.changed_files)
