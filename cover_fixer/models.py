from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Outcome(str, Enum):
    """Terminal status of one file."""
    FIXED = 'fixed'
    ALREADY_OK = 'already_ok'
    NO_COVER = 'no_cover'
    CACHE_HIT = 'cache_hit'
    ERROR = 'error'


# Outcomes that may be written to the cache file
PERSISTABLE_OUTCOMES = (Outcome.FIXED, Outcome.ALREADY_OK, Outcome.NO_COVER)


class Encoding(str, Enum):
    BASELINE = 'baseline'
    PROGRESSIVE = 'progressive'
    UNKNOWN = 'unknown'


@dataclass(frozen=True)
class CacheEntry:
    """What the previous run decided about one path."""
    fingerprint: int
    outcome: Outcome


@dataclass(frozen=True)
class CoverInfo:
    """Classification of one extracted cover image."""
    encoding: Encoding
    width: int
    height: int


@dataclass
class FileResult:
    """
    The outcome record a worker emits for a single file.
    """
    path: str
    outcome: Outcome
    fingerprint: Optional[int] = None

    # Set on CACHE_HIT: the stored outcome being re-affirmed
    cached_outcome: Optional[Outcome] = None

    # Set on ERROR
    error_kind: Optional[str] = None
    error: Optional[str] = None
    partial: bool = False

    def to_dict(self) -> dict:
        return {
            'path': self.path,
            'outcome': self.outcome.value,
            'fingerprint': self.fingerprint,
            'cached_outcome': self.cached_outcome.value if self.cached_outcome else None,
            'error_kind': self.error_kind,
            'error': self.error,
            'partial': self.partial,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FileResult':
        cached = data.get('cached_outcome')
        return cls(
            path=data['path'],
            outcome=Outcome(data['outcome']),
            fingerprint=data.get('fingerprint'),
            cached_outcome=Outcome(cached) if cached else None,
            error_kind=data.get('error_kind'),
            error=data.get('error'),
            partial=bool(data.get('partial', False)),
        )

    @property
    def stored_outcome(self) -> Optional[Outcome]:
        """Outcome to persist in the cache, or None if nothing should be kept."""
        if self.outcome == Outcome.CACHE_HIT:
            return self.cached_outcome
        if self.outcome in PERSISTABLE_OUTCOMES:
            return self.outcome
        return None


@dataclass(frozen=True)
class ScanSummary:
    """Aggregate result of a full run. Built once by the aggregator."""
    counts: Dict[Outcome, int]
    total: int
    fixed_files: List[str] = field(default_factory=list)
    fixed_omitted: int = 0
    errors: List[Tuple[str, str, str]] = field(default_factory=list)
    partial_failures: int = 0
    cache_saved: bool = True

    def count(self, outcome: Outcome) -> int:
        return self.counts.get(outcome, 0)
