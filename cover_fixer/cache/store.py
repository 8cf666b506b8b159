"""
Persistent decision cache.

On disk: one record per line, `path<TAB>fingerprint<TAB>outcome`. The file
is read once when a run starts and replaced wholesale when it ends.
"""
import logging
import os
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .. import config
from ..exceptions import CacheError
from ..models import CacheEntry, Outcome, PERSISTABLE_OUTCOMES

_TAGS = {o.value: o for o in PERSISTABLE_OUTCOMES}


class CacheStore(Mapping[str, CacheEntry]):
    """Keyed store of path -> (fingerprint, outcome). At most one entry per path."""

    def __init__(self, entries: Optional[Dict[str, CacheEntry]] = None):
        self._entries: Dict[str, CacheEntry] = dict(entries or {})

    # --- Mapping protocol ---

    def __getitem__(self, path: str) -> CacheEntry:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    # --- Mutation ---

    def put(self, path: str, fingerprint: int, outcome: Outcome) -> None:
        if outcome not in PERSISTABLE_OUTCOMES:
            raise ValueError(f"Outcome {outcome.value} cannot be cached")
        self._entries[path] = CacheEntry(int(fingerprint), outcome)

    def merge(self, other: Mapping[str, CacheEntry]) -> None:
        """Entries from `other` overwrite ours for the same path."""
        for path, entry in other.items():
            self.put(path, entry.fingerprint, entry.outcome)

    # --- Persistence ---

    @classmethod
    def load(cls, cache_file: Path) -> 'CacheStore':
        """A missing file is an empty store, not an error."""
        store = cls()
        if not cache_file.exists():
            logging.info(f"No cache at {cache_file}, starting fresh")
            return store

        try:
            with cache_file.open('r', encoding='utf-8', errors='surrogateescape') as f:
                for lineno, line in enumerate(f, 1):
                    line = line.rstrip('\n').rstrip('\r')
                    if not line:
                        continue
                    parsed = _parse_line(line)
                    if parsed is None:
                        logging.warning(f"Ignoring malformed cache line {lineno} in {cache_file}")
                        continue
                    path, fingerprint, outcome = parsed
                    store._entries[path] = CacheEntry(fingerprint, outcome)
        except OSError as e:
            raise CacheError(f"Failed to read cache {cache_file}: {e}") from e

        logging.info(f"Loaded {len(store)} cache entries from {cache_file}")
        return store

    def save(self, cache_file: Path) -> None:
        """
        Atomically replaces `cache_file` with the current entries.
        Either the old file or the complete new one is on disk, never a mix.
        """
        tmp = cache_file.with_name(f"{cache_file.name}.tmp")
        skipped = 0
        try:
            with tmp.open('w', encoding='utf-8', errors='surrogateescape', newline='\n') as f:
                for path in sorted(self._entries):
                    if '\t' in path or '\n' in path or '\r' in path:
                        skipped += 1
                        continue
                    entry = self._entries[path]
                    f.write(config.CACHE_FIELD_SEP.join((path, str(entry.fingerprint), entry.outcome.value)))
                    f.write('\n')
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, cache_file)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise CacheError(f"Failed to write cache {cache_file}: {e}") from e

        if skipped:
            logging.warning(f"{skipped} paths contain tab/newline characters and were not cached")
        logging.info(f"Wrote {len(self) - skipped} cache entries to {cache_file}")


def _parse_line(line: str) -> Optional[Tuple[str, int, Outcome]]:
    parts = line.split(config.CACHE_FIELD_SEP)
    if len(parts) != 3:
        return None
    path, fingerprint, tag = parts
    if not path or tag not in _TAGS:
        return None
    try:
        return path, int(fingerprint), _TAGS[tag]
    except ValueError:
        return None
