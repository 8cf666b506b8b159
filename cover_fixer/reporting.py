import logging
from typing import Dict, Iterable, List, Set, Tuple

from . import config
from .cache.store import CacheStore
from .models import FileResult, Outcome, ScanSummary


class Aggregator:
    """
    Folds outcome records into the next cache and the run summary.

    Merge order does not matter: counters commute and the cache is keyed by
    path. The fixed-files list keeps the first N fixed records seen, which
    follows worker completion order, not scan order.
    """

    def __init__(self, report_limit: int = config.FIXED_REPORT_LIMIT):
        self.report_limit = report_limit

    def collect(self, records: Iterable[FileResult], expected: Iterable[str]) -> Tuple[CacheStore, ScanSummary]:
        cache = CacheStore()
        counts: Dict[Outcome, int] = {o: 0 for o in Outcome}
        fixed: List[str] = []
        fixed_total = 0
        errors: List[Tuple[str, str, str]] = []
        partial = 0
        seen: Set[str] = set()

        for rec in records:
            if rec.path in seen:
                logging.error(f"Duplicate outcome record for {rec.path}, keeping the first")
                continue
            seen.add(rec.path)
            counts[rec.outcome] += 1

            if rec.outcome == Outcome.FIXED:
                fixed_total += 1
                if len(fixed) < self.report_limit:
                    fixed.append(rec.path)
            elif rec.outcome == Outcome.ERROR:
                errors.append((rec.path, rec.error_kind or 'unknown', rec.error or ''))
                if rec.partial:
                    partial += 1

            stored = rec.stored_outcome
            if stored is not None and rec.fingerprint is not None:
                cache.put(rec.path, rec.fingerprint, stored)

        # Every enumerated file must be accounted for
        for path in expected:
            if path not in seen:
                seen.add(path)
                counts[Outcome.ERROR] += 1
                errors.append((path, 'missing_result', 'Worker produced no result'))

        summary = ScanSummary(
            counts=counts,
            total=sum(counts.values()),
            fixed_files=fixed,
            fixed_omitted=fixed_total - len(fixed),
            errors=errors,
            partial_failures=partial,
        )
        return cache, summary


_LABELS = [
    (Outcome.FIXED, "Fixed"),
    (Outcome.ALREADY_OK, "Already OK"),
    (Outcome.NO_COVER, "No cover"),
    (Outcome.CACHE_HIT, "Cached (unchanged)"),
    (Outcome.ERROR, "Errors"),
]


def format_lines(summary: ScanSummary) -> List[str]:
    """Plain-text summary, one line per entry."""
    lines = [f"Files scanned: {summary.total}"]
    for outcome, label in _LABELS:
        lines.append(f"  {label}: {summary.count(outcome)}")
    if summary.partial_failures:
        lines.append(f"  Partially modified (cover removed, new one missing): {summary.partial_failures}")

    if summary.fixed_files:
        lines.append("Fixed files:")
        lines.extend(f"  {p}" for p in summary.fixed_files)
        if summary.fixed_omitted:
            lines.append(f"  ... and {summary.fixed_omitted} more")

    if summary.errors:
        lines.append("Failed files:")
        lines.extend(f"  [{kind}] {path}: {msg}" for path, kind, msg in summary.errors)
    return lines


def log_summary(summary: ScanSummary) -> None:
    for line in format_lines(summary):
        logging.info(line)
