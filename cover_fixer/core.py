import logging
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Optional

from . import config
from .cache.store import CacheStore
from .exceptions import CacheError, ConfigError
from .models import ScanSummary
from .pipeline.decision import CoverPipeline
from .pipeline.distributor import WorkDistributor
from .pipeline.slots import ResultSlots
from .reporting import Aggregator
from .scanning.filesystem import AudioScanner
from .scanning.fingerprint import ChangeDetector


class CoverFixerApp:
    def __init__(self, root: Path, cache_file: Optional[Path] = None):
        self.root = root
        self.cache_file = cache_file or root / config.CACHE_FILENAME

    def run(self,
            force: bool = False,
            max_workers: int = config.DEFAULT_WORKERS,
            report_limit: int = config.FIXED_REPORT_LIMIT,
            show_progress: bool = True,
            pipeline: Optional[CoverPipeline] = None) -> ScanSummary:
        """
        Executes one full repair run.
        1. Enumerate audio files
        2. Load cache snapshot
        3. Distribute files to workers (each writes one result slot)
        4. Aggregate slots into the new cache + summary
        5. Replace the cache file

        Args:
            force: Ignore cached decisions and reconsider every file
            pipeline: Pre-built pipeline (its cache snapshot is replaced)
        """
        if not self.root.is_dir():
            raise ConfigError(f"'{self.root}' is not a directory")

        # --- Step 1: Enumerate ---
        logging.info(f"Scanning {self.root}")
        files = AudioScanner().scan(self.root)

        # --- Step 2: Cache snapshot ---
        if force:
            logging.info("Force mode: cache ignored, every file will be reconsidered")
        try:
            previous = CacheStore.load(self.cache_file)
        except CacheError as e:
            logging.error(f"{e}; every file will be reconsidered")
            previous = CacheStore()

        if pipeline is None:
            pipeline = CoverPipeline(cache=previous, detector=ChangeDetector(force=force))
        else:
            pipeline.cache = previous
            pipeline.detector.force = force

        # --- Steps 3 + 4: Fan out, fan in ---
        with tempfile.TemporaryDirectory(prefix=f"{config.SCRATCH_PREFIX}slots_") as slot_dir:
            slots = ResultSlots(Path(slot_dir))
            WorkDistributor(pipeline, slots, max_workers=max_workers,
                            show_progress=show_progress).run(files)
            cache, summary = Aggregator(report_limit).collect(slots.drain(), [str(f) for f in files])

        # --- Step 5: Persist ---
        # Only reached once every worker is done; an interrupted run leaves
        # the previous cache untouched.
        try:
            cache.save(self.cache_file)
        except CacheError as e:
            logging.error(f"{e} (previous cache left intact)")
            return replace(summary, cache_saved=False)
        return summary
