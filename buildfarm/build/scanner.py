"""
Scans a checked out source tree for files modified since a point in time.
"""
import os
import stat
from pathlib import Path
from typing import Iterable, List
import logging


SCM_METADATA_DIRS = {
    "cvs": ("CVS",),
    "git": (".git",),
}


class SourceScanner:
    """Finds regular files in a source tree newer than a timestamp"""
    
    def __init__(self, prune_dirs: Iterable[str] = ()):
        """
        Initialize scanner.
        
        Args:
            prune_dirs: Directory names not to descend into
        """
        self.prune_dirs = frozenset(prune_dirs)
        self.logger = logging.getLogger(__name__)
    
    @classmethod
    def for_scm(cls, scm: str, scm_method: str) -> 'SourceScanner':
        """
        Scanner for a checkout made with the given scm and method.
        
        Only update-in-place checkouts carry metadata directories worth skipping;
        exported trees have none.
        """
        if scm_method == "update":
            return cls(SCM_METADATA_DIRS.get(scm, ()))
        return cls()
    
    def changed_files(self, root: Path, since: int) -> List[Path]:
        """
        Recursively collect files modified after a timestamp.
        
        Args:
            root: Top of the source tree
            since: Epoch seconds; files with a later mtime are returned
            
        Returns:
            Sorted list of changed file paths. Symlinks are not followed
            and never count as changed files.
        """
        root = Path(root)
        changed = []
        
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = [d for d in dirnames if d not in self.prune_dirs]
            for name in filenames:
                path = Path(dirpath) / name
                try:
                    st = os.lstat(path)
                except OSError:
                    continue
                if stat.S_ISREG(st.st_mode) and int(st.st_mtime) > since:
                    changed.append(path)
        
        changed.sort()
        self.logger.debug(f"Found {len(changed)} files in {root} changed since {since}")
        return changed
