"""
Per-branch lock so only one builder runs against a branch at a time.
"""
from pathlib import Path
import errno
import logging
import os
import fcntl

from ..core.exceptions import PreconditionError


LOCK_FILE_NAME = "builder.LCK"

# a lock won on a file that was unlinked meanwhile is retried this often
OPEN_ATTEMPTS = 2


class BranchLockManager:
    """
    Manages the branch lock.
    Uses an advisory flock on a file in the branch directory; the kernel
    drops it if we die without cleaning up.
    """

    def __init__(self, branch_dir: Path):
        """
        Initialize branch lock manager.

        Args:
            branch_dir: Directory of the branch under the build root
        """
        self.branch_dir = Path(branch_dir)
        self.lock_file_path = self.branch_dir / LOCK_FILE_NAME
        self.lock_file = None
        self.logger = logging.getLogger(__name__)

    @property
    def held(self) -> bool:
        return self.lock_file is not None

    def try_acquire(self) -> bool:
        """
        Try once to take the lock, without waiting.

        Returns:
            True if we hold the lock, False if another builder holds it

        Raises:
            PreconditionError: If the lock file cannot be opened or locked
                for any reason other than contention
        """
        self.logger.debug(f"Attempting to acquire branch lock: {self.lock_file_path}")

        for _ in range(OPEN_ATTEMPTS):
            lock_file = self._open_and_lock()
            if lock_file is None:
                self.logger.info("Branch lock held by another builder")
                return False

            if self._is_current_file(lock_file):
                break
            # the holder released and unlinked the file between our open and flock
            lock_file.close()
        else:
            self.logger.info("Branch lock file keeps changing, another builder is active")
            return False

        lock_file.truncate(0)
        lock_file.write(f"{os.getpid()}\n")
        lock_file.flush()
        self.lock_file = lock_file

        self.logger.info("Branch lock acquired")
        return True

    def _open_and_lock(self):
        """Open the lock file and flock it, None on contention"""
        try:
            # append mode so a losing contender leaves the holder's file alone
            lock_file = open(self.lock_file_path, 'a')
        except OSError as e:
            raise PreconditionError(f"opening lockfile {self.lock_file_path}: {e}") from e

        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            lock_file.close()
            if e.errno in (errno.EWOULDBLOCK, errno.EAGAIN, errno.EACCES):
                return None
            raise PreconditionError(f"locking {self.lock_file_path}: {e}") from e
        return lock_file

    def _is_current_file(self, lock_file) -> bool:
        """Whether the locked file is still the one at the lock path"""
        try:
            on_disk = os.stat(self.lock_file_path)
        except FileNotFoundError:
            return False
        opened = os.fstat(lock_file.fileno())
        return (opened.st_dev, opened.st_ino) == (on_disk.st_dev, on_disk.st_ino)

    def abandon(self):
        """Drop the lock but leave the lock file in place"""
        if not self.lock_file:
            return
        self.lock_file.close()
        self.lock_file = None

    def release(self):
        """Release the lock and remove the lock file"""
        if not self.lock_file:
            return

        lock_file, self.lock_file = self.lock_file, None
        try:
            # unlink first; a contender that locks the old file sees the inode change
            self.lock_file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.error(f"Failed to remove branch lock file: {e}")

        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
            self.logger.info("Branch lock released")
        except OSError as e:
            self.logger.error(f"Failed to release branch lock: {e}")
        finally:
            lock_file.close()
