import hashlib
import os
from pathlib import Path
from typing import Optional

from ..models import CacheEntry


class ChangeDetector:
    """
    Decides whether a file must go through the pipeline again.

    The fingerprint is the modification time truncated to whole seconds;
    FAT/exFAT and WSL 9p mounts report sub-second parts inconsistently.
    """

    def __init__(self, force: bool = False):
        self.force = force

    def fingerprint(self, path: Path) -> int:
        return int(os.stat(path).st_mtime)

    def needs_reconsideration(self,
                              path: Path,
                              cached: Optional[CacheEntry],
                              current: Optional[int] = None) -> bool:
        """
        Returns False (skip) only when a cached entry exists and its
        fingerprint equals the file's current one.

        Pass `current` when the caller already stat'ed the file.
        """
        if self.force or cached is None:
            return True
        if current is None:
            current = self.fingerprint(path)
        return cached.fingerprint != current


def slot_key(path: str) -> str:
    """
    Collision-resistant identifier for a path.
    Paths can contain characters that are unsafe in file names, so result
    slots are named by digest instead of path text.
    """
    return hashlib.sha256(path.encode('utf-8', 'surrogateescape')).hexdigest()
