"""
Run bookkeeping: locking, change detection and cleanup.
"""

from .models import ChangeDecision
from .lock import BranchLockManager
from .status import LastStatusStore
from .scanner import SourceScanner
from .change_detector import ChangeDetector
from .run_context import RunContext, install_signal_handlers, interrupt_exit

__all__ = [
    'ChangeDecision',
    'BranchLockManager',
    'LastStatusStore',
    'SourceScanner',
    'ChangeDetector',
    'RunContext',
    'install_signal_handlers',
    'interrupt_exit',
]
