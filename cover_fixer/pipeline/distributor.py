import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List

from tqdm import tqdm

from ..models import FileResult, Outcome
from .decision import CoverPipeline
from .slots import ResultSlots


class WorkDistributor:
    """
    Fans the file list out over a bounded thread pool, one task per file.

    Workers share nothing mutable except their own result slot. A failed
    task is never retried; its failure is written to its slot instead.
    """

    def __init__(self, pipeline: CoverPipeline, slots: ResultSlots, max_workers: int = 1,
                 show_progress: bool = True):
        self.pipeline = pipeline
        self.slots = slots
        self.max_workers = max(1, int(max_workers))
        self.show_progress = show_progress

    def run(self, files: List[Path]) -> int:
        """
        Processes every file once. Returns the number of slots written.
        """
        unique = list(dict.fromkeys(files))
        if len(unique) != len(files):
            logging.warning(f"Dropped {len(files) - len(unique)} duplicate paths from the work list")

        logging.info(f"Processing {len(unique)} files with {self.max_workers} workers")

        written = 0
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_path = {
                executor.submit(self._work, path): path
                for path in unique
            }

            try:
                for future in tqdm(as_completed(future_to_path), total=len(future_to_path),
                                   desc="Checking covers", disable=not self.show_progress):
                    path = future_to_path[future]
                    try:
                        future.result()
                        written += 1
                    except Exception as e:
                        # Slot could not be written; the aggregator reports it as missing
                        logging.error(f"Worker failed for {path}: {e}")
            except KeyboardInterrupt:
                # Let in-flight files finish, drop everything still queued
                logging.warning("Interrupted: cancelling queued files")
                executor.shutdown(wait=True, cancel_futures=True)
                raise

        return written

    def _work(self, path: Path) -> None:
        try:
            result = self.pipeline.process(path)
        except Exception as e:
            logging.exception(f"Unexpected failure processing {path}")
            result = FileResult(
                path=str(path),
                outcome=Outcome.ERROR,
                error_kind='unexpected',
                error=f"{type(e).__name__}: {e}",
            )
        self.slots.write(result)
