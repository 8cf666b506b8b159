import json
import logging
import os
from pathlib import Path
from typing import Iterator

from .. import config
from ..models import FileResult
from ..scanning.fingerprint import slot_key


class ResultSlots:
    """
    One file per outcome record, named by the digest of the file path.

    Each slot has exactly one writer (the worker for that path) and is read
    exactly once by the aggregator, which removes it after reading.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def slot_path(self, path: str) -> Path:
        return self.directory / f"{slot_key(path)}{config.SLOT_SUFFIX}"

    def write(self, result: FileResult) -> Path:
        target = self.slot_path(result.path)
        if target.exists():
            raise FileExistsError(f"Result slot already written for {result.path}")

        tmp = target.with_suffix('.part')
        with open(tmp, 'w', encoding='utf-8') as f:
            json.dump(result.to_dict(), f)
        os.rename(tmp, target)
        return target

    def drain(self) -> Iterator[FileResult]:
        """Yields every written slot once, deleting it afterwards."""
        for slot in sorted(self.directory.glob(f"*{config.SLOT_SUFFIX}")):
            try:
                with open(slot, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                record = FileResult.from_dict(data)
            except (OSError, ValueError, KeyError) as e:
                logging.error(f"Unreadable result slot {slot.name}: {e}")
                continue
            finally:
                slot.unlink(missing_ok=True)
            yield record
