import logging
import tempfile
from pathlib import Path
from typing import Callable, Mapping, Optional

from .. import config
from ..audio.container import FlacContainer
from ..exceptions import ContainerError, NoCoverError, NormalizeError, ReplaceError
from ..imaging.inspect import accept, inspect
from ..imaging.normalize import normalize
from ..models import CacheEntry, CoverInfo, FileResult, Outcome
from ..scanning.fingerprint import ChangeDetector


class CoverPipeline:
    """
    Runs one file through the decision steps and returns exactly one
    FileResult:

        cache check -> extract -> inspect -> evaluate -> normalize -> replace

    The cache snapshot is read-only and shared by every worker. Cover bytes
    live in a scratch directory owned by the call and removed on every exit
    path.
    """

    def __init__(self,
                 cache: Mapping[str, CacheEntry],
                 detector: Optional[ChangeDetector] = None,
                 container: Optional[FlacContainer] = None,
                 inspector: Callable[[bytes], CoverInfo] = inspect,
                 normalizer: Callable[[bytes], bytes] = normalize,
                 scratch_root: Optional[Path] = None):
        self.cache = cache
        self.detector = detector or ChangeDetector()
        self.container = container or FlacContainer()
        self.inspector = inspector
        self.normalizer = normalizer
        self.scratch_root = scratch_root

    def process(self, path: Path) -> FileResult:
        key = str(path)
        try:
            return self._run(path, key)
        except (NormalizeError, ReplaceError, ContainerError, OSError) as e:
            kind = _error_kind(e)
            logging.error(f"{kind} for {path}: {e}")
            return FileResult(
                path=key,
                outcome=Outcome.ERROR,
                error_kind=kind,
                error=str(e),
                partial=getattr(e, 'partial', False),
            )

    def _run(self, path: Path, key: str) -> FileResult:
        cached = self.cache.get(key)

        fingerprint = self.detector.fingerprint(path)
        if not self.detector.needs_reconsideration(path, cached, current=fingerprint):
            logging.debug(f"Unchanged since last run: {path}")
            return FileResult(
                path=key,
                outcome=Outcome.CACHE_HIT,
                fingerprint=cached.fingerprint,
                cached_outcome=cached.outcome,
            )

        with tempfile.TemporaryDirectory(prefix=config.SCRATCH_PREFIX, dir=self.scratch_root) as tmp:
            scratch = Path(tmp)

            try:
                cover = self.container.extract_picture(path)
            except NoCoverError:
                logging.debug(f"No cover: {path}")
                return FileResult(path=key, outcome=Outcome.NO_COVER, fingerprint=fingerprint)

            original = scratch / 'cover_orig'
            original.write_bytes(cover)

            info = self.inspector(cover)
            if accept(info):
                logging.debug(f"Cover OK ({info.width}x{info.height}): {path}")
                return FileResult(path=key, outcome=Outcome.ALREADY_OK, fingerprint=fingerprint)

            logging.info(f"Fixing: {path} ({info.encoding.value}, {info.width}x{info.height})")
            fixed = scratch / 'cover_fixed.jpg'
            fixed.write_bytes(self.normalizer(original.read_bytes()))

            self.container.replace_picture(path, fixed)

        # The write bumped the mtime; record the new value so the next run
        # sees this file as handled.
        return FileResult(
            path=key,
            outcome=Outcome.FIXED,
            fingerprint=self.detector.fingerprint(path),
        )


def _error_kind(e: Exception) -> str:
    if isinstance(e, NormalizeError):
        return 'normalize'
    if isinstance(e, ReplaceError):
        return 'replace_partial' if e.partial else 'replace'
    if isinstance(e, ContainerError):
        return 'container'
    return 'io'
