import threading
import time
from pathlib import Path

import pytest

from cover_fixer.exceptions import NormalizeError
from cover_fixer.models import FileResult, Outcome
from cover_fixer.pipeline.distributor import WorkDistributor
from cover_fixer.pipeline.slots import ResultSlots


class StubPipeline:
    """Outcome decided by file name; records which thread ran each file."""

    def __init__(self):
        self.calls = []
        self.lock = threading.Lock()

    def process(self, path):
        with self.lock:
            self.calls.append(str(path))
        name = Path(path).name
        if name.startswith("crash"):
            raise RuntimeError("bug in worker")
        if name.startswith("bad"):
            return FileResult(path=str(path), outcome=Outcome.ERROR, error_kind="normalize",
                              error=str(NormalizeError("no")))
        return FileResult(path=str(path), outcome=Outcome.ALREADY_OK, fingerprint=1)


def _paths(*names):
    return [Path("/music") / n for n in names]


def test_every_file_gets_exactly_one_slot(tmp_path):
    files = _paths(*(f"{i:03d}.flac" for i in range(50)))
    pipeline = StubPipeline()
    slots = ResultSlots(tmp_path)

    written = WorkDistributor(pipeline, slots, max_workers=8, show_progress=False).run(files)

    assert written == 50
    assert sorted(pipeline.calls) == sorted(str(f) for f in files)
    assert sorted(r.path for r in slots.drain()) == sorted(str(f) for f in files)


def test_duplicate_paths_are_submitted_once(tmp_path):
    files = _paths("a.flac", "b.flac", "a.flac")
    pipeline = StubPipeline()

    written = WorkDistributor(pipeline, ResultSlots(tmp_path), max_workers=2, show_progress=False).run(files)

    assert written == 2
    assert sorted(pipeline.calls) == ["/music/a.flac", "/music/b.flac"]


def test_failures_are_isolated_to_their_slot(tmp_path):
    files = _paths("good1.flac", "bad.flac", "crash.flac", "good2.flac")
    slots = ResultSlots(tmp_path)

    WorkDistributor(StubPipeline(), slots, max_workers=3, show_progress=False).run(files)

    records = {Path(r.path).name: r for r in slots.drain()}
    assert records["good1.flac"].outcome == Outcome.ALREADY_OK
    assert records["good2.flac"].outcome == Outcome.ALREADY_OK
    assert records["bad.flac"].error_kind == "normalize"
    assert records["crash.flac"].outcome == Outcome.ERROR
    assert records["crash.flac"].error_kind == "unexpected"
    assert "bug in worker" in records["crash.flac"].error


def test_unwritable_slot_does_not_stop_the_batch(tmp_path, monkeypatch):
    files = _paths("a.flac", "b.flac", "c.flac")
    slots = ResultSlots(tmp_path)
    real_write = slots.write

    def flaky_write(result):
        if result.path.endswith("b.flac"):
            raise OSError("disk full")
        return real_write(result)

    monkeypatch.setattr(slots, "write", flaky_write)

    written = WorkDistributor(StubPipeline(), slots, max_workers=2, show_progress=False).run(files)

    assert written == 2
    assert sorted(Path(r.path).name for r in slots.drain()) == ["a.flac", "c.flac"]


def test_pool_size_is_at_least_one(tmp_path):
    d = WorkDistributor(StubPipeline(), ResultSlots(tmp_path), max_workers=0, show_progress=False)
    assert d.max_workers == 1
    assert d.run(_paths("x.flac")) == 1


def test_interrupt_cancels_queued_files(tmp_path, monkeypatch):
    from cover_fixer.pipeline import distributor

    class SlowPipeline(StubPipeline):
        def process(self, path):
            time.sleep(0.05)
            return super().process(path)

    def interrupting_tqdm(iterable, **kwargs):
        for i, item in enumerate(iterable):
            if i == 2:
                raise KeyboardInterrupt
            yield item

    monkeypatch.setattr(distributor, "tqdm", interrupting_tqdm)
    files = _paths(*(f"{i:03d}.flac" for i in range(40)))
    pipeline = SlowPipeline()

    with pytest.raises(KeyboardInterrupt):
        WorkDistributor(pipeline, ResultSlots(tmp_path), max_workers=2, show_progress=False).run(files)

    assert len(pipeline.calls) < len(files)
