"""
Decides whether a build run is needed at all.
"""
from pathlib import Path
from typing import Optional
import logging

from .models import ChangeDecision
from .scanner import SourceScanner


SECONDS_PER_HOUR = 3600


class ChangeDetector:
    """
    Gate in front of the expensive part of a run.
    
    The check is mtime based: a run happens when any file in the fresh
    checkout is newer than the last recorded run, when a run is forced,
    or when the last run is older than the force_every heartbeat.
    """
    
    def __init__(
        self,
        scanner: SourceScanner,
        force: bool = False,
        force_every: Optional[float] = None
    ):
        """
        Initialize change detector.
        
        Args:
            scanner: SourceScanner for the checked out tree
            force: Run regardless of changes
            force_every: Run at least once every this many hours
        """
        self.scanner = scanner
        self.force = force
        self.force_every = force_every
        self.logger = logging.getLogger(__name__)
    
    def effective_last_status(self, last_status: int, now: int) -> int:
        """Last status after applying the force rules, 0 meaning "must run" """
        if (last_status and self.force_every
                and last_status + self.force_every * SECONDS_PER_HOUR < now):
            return 0
        if self.force:
            return 0
        return last_status
    
    def detect(self, source_dir: Path, last_status: int, now: int) -> ChangeDecision:
        """
        Check whether the checkout needs building.
        
        Args:
            source_dir: Freshly synced source tree
            last_status: Timestamp of the last run, 0 if none
            now: Current epoch seconds
            
        Returns:
            ChangeDecision
        """
        effective = self.effective_last_status(last_status, now)
        decision = ChangeDecision(
            last_status=last_status,
            effective_last_status=effective
        )
        
        if not last_status:
            decision.forced_reason = "no previous run recorded"
        elif self.force:
            decision.forced_reason = "forced from command line"
        elif not effective:
            decision.forced_reason = f"no run in the last {self.force_every} hours"
        
        if effective:
            decision.changed_files = self.scanner.changed_files(source_dir, effective)
        
        if decision.needs_run:
            self.logger.info(
                f"Build run needed: "
                f"{decision.forced_reason or f'{len(decision.changed_files)} changed files'}"
            )
        else:
            self.logger.info(f"No changes in {source_dir} since {effective}, skipping run")
        
        return decision
