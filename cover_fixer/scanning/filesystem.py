import os
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Set

from .. import config


class AudioScanner:
    """Enumerates the audio files under a scan root."""

    def __init__(self, extensions: Optional[Set[str]] = None):
        self.extensions = {e.lower() for e in (extensions or config.AUDIO_EXTS)}

    def scan(self, root: Path) -> List[Path]:
        files = list(self._iter_files(root))
        logging.info(f"Found {len(files)} audio files under {root}")
        return files

    def _is_audio(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in self.extensions

    def _iter_files(self, root: Path) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except (OSError, PermissionError):
                logging.warning(f"Permission denied: {current}")
                continue

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False) and self._is_audio(e.name):
                    files.append(Path(e.path))

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f
