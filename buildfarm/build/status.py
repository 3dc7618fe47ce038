"""
Persists the time of the last build run for a branch.
"""
from pathlib import Path
from typing import Optional
import logging
import time

from ..core.exceptions import PreconditionError


STATUS_FILE_NAME = "last.status"


class LastStatusStore:
    """Reads and writes the last.status timestamp of a branch"""
    
    def __init__(self, branch_dir: Path):
        self.path = Path(branch_dir) / STATUS_FILE_NAME
        self.logger = logging.getLogger(__name__)
    
    def read(self) -> int:
        """
        Load the last status timestamp.
        
        Returns:
            Epoch seconds, or 0 if no run has been recorded
        """
        try:
            with open(self.path, 'r') as f:
                value = f.readline().strip()
        except FileNotFoundError:
            return 0
        except OSError as e:
            self.logger.warning(f"Could not read {self.path}: {e}")
            return 0
        
        try:
            return int(value)
        except ValueError:
            self.logger.warning(f"Ignoring malformed last status {value!r} in {self.path}")
            return 0
    
    def write(self, timestamp: Optional[int] = None) -> int:
        """
        Record that work began.
        
        Args:
            timestamp: Epoch seconds to store, defaults to now
            
        Returns:
            The stored timestamp
        """
        if timestamp is None:
            timestamp = int(time.time())
        try:
            with open(self.path, 'w') as f:
                f.write(f"{timestamp}\n")
        except OSError as e:
            raise PreconditionError(f"opening {self.path}: {e}") from e
        
        self.logger.debug(f"Last status set to {timestamp}")
        return timestamp
