"""Unit tests for the concurrent batch engine."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from webp_converter.application.options import BatchOptions
from webp_converter.application.results import ProgressEvent
from webp_converter.engine import batch as batch_module
from webp_converter.engine.batch import BatchEngine, default_worker_count
from webp_converter.errors import BatchValidationError


def test_default_worker_count_is_bounded(monkeypatch: pytest.MonkeyPatch) -> None:
    """Use min(cpu_count, items), never less than one."""
    monkeypatch.setattr(batch_module.os, "cpu_count", lambda: 8)
    assert default_worker_count(3) == 3
    assert default_worker_count(100) == 8
    monkeypatch.setattr(batch_module.os, "cpu_count", lambda: None)
    assert default_worker_count(100) == 4


def test_run_rejects_empty_worklist(fake_codec_factory: Callable[..., object]) -> None:
    """Fail validation for an empty worklist."""
    with pytest.raises(BatchValidationError):
        BatchEngine(codec=fake_codec_factory()).run([], BatchOptions())


@pytest.mark.parametrize("quality", [0, 101])
def test_run_rejects_bad_quality_before_touching_files(
    quality: int,
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """Reject invalid quality before any item is opened."""
    paths = write_inputs("a.png", "b.png")
    codec = fake_codec_factory()

    with pytest.raises(BatchValidationError, match="quality"):
        BatchEngine(codec=codec).run(paths, BatchOptions(quality=quality))

    assert codec.decoded == []
    assert not any(p.with_suffix(".webp").exists() for p in paths)


def test_stream_validates_eagerly(fake_codec_factory: Callable[..., object]) -> None:
    """Raise on call rather than on first iteration."""
    with pytest.raises(BatchValidationError):
        BatchEngine(codec=fake_codec_factory()).stream([], BatchOptions())


def test_run_isolates_item_failures(
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """A failing item does not prevent or corrupt its siblings."""
    paths = write_inputs("1.jpg", "2.jpg", "3.jpg", "4.jpg", "5.jpg")
    codec = fake_codec_factory(fail_decode={"3.jpg"})

    report = BatchEngine(codec=codec).run(paths, BatchOptions(max_workers=3))

    assert report.total == 5
    assert report.succeeded == 4
    assert report.failed == 1
    (failure,) = report.failures
    assert failure.input_path.name == "3.jpg"
    assert failure.failure is not None
    assert failure.failure.phase == "decoding image"
    assert "decoding image" in (failure.reason or "")
    for path in paths:
        output = path.with_suffix(".webp")
        assert output.exists() == (path.name != "3.jpg")


def test_run_isolates_entries_without_a_file_name(
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """A directory-like entry fails alone instead of aborting the batch."""
    (good,) = write_inputs("good.png")

    report = BatchEngine(codec=fake_codec_factory()).run(
        [good, Path("/")], BatchOptions(max_workers=2)
    )

    assert (report.total, report.succeeded) == (2, 1)
    (failure,) = report.failures
    assert failure.input_path == Path("/")
    assert failure.failure is not None
    assert failure.failure.phase == "opening file"
    assert good.with_suffix(".webp").exists()
    assert not Path("/image.webp").exists()


def test_run_reports_progress_in_completion_order(
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """Notify once per item with an increasing completed count."""
    paths = write_inputs("a.png", "b.png", "c.png", "d.png")
    events: list[ProgressEvent] = []
    seen_threads: set[int] = set()

    def observer(event: ProgressEvent) -> None:
        seen_threads.add(threading.get_ident())
        events.append(event)

    report = BatchEngine(codec=fake_codec_factory()).run(
        paths, BatchOptions(max_workers=2), observer=observer
    )

    assert [e.completed for e in events] == [1, 2, 3, 4]
    assert {e.total for e in events} == {4}
    assert {e.result.input_path for e in events} == set(paths)
    assert seen_threads == {threading.get_ident()}
    assert report.results == tuple(e.result for e in events)


def test_run_survives_observer_errors(
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """Log observer failures without aborting the batch."""
    paths = write_inputs("a.png", "b.png")

    def observer(event: ProgressEvent) -> None:
        raise RuntimeError("display went away")

    report = BatchEngine(codec=fake_codec_factory()).run(
        paths, BatchOptions(), observer=observer
    )

    assert (report.total, report.succeeded) == (2, 2)


def test_run_writes_into_output_directory(
    tmp_path: Path,
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """Write every output into the chosen directory with the given quality."""
    paths = write_inputs("one.PNG", "two.bmp")
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    report = BatchEngine(codec=fake_codec_factory()).run(
        paths, BatchOptions(quality=33, output_directory=out_dir)
    )

    assert report.succeeded == 2
    assert sorted(p.name for p in out_dir.iterdir()) == ["one.webp", "two.webp"]
    assert (out_dir / "one.webp").read_bytes().startswith(b"RIFFq=33;")


def test_run_twice_overwrites_with_identical_content(
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """Running the same batch twice leaves the same final content."""
    paths = write_inputs("a.png", "b.png")
    engine = BatchEngine(codec=fake_codec_factory())

    engine.run(paths, BatchOptions())
    first = [p.with_suffix(".webp").read_bytes() for p in paths]
    engine.run(paths, BatchOptions())
    second = [p.with_suffix(".webp").read_bytes() for p in paths]

    assert first == second


def test_run_cancelled_before_start_cancels_every_item(
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """Resolve every item as cancelled and write nothing."""
    paths = write_inputs("a.png", "b.png", "c.png")
    cancel = threading.Event()
    cancel.set()

    report = BatchEngine(codec=fake_codec_factory()).run(
        paths, BatchOptions(max_workers=2), cancel_event=cancel
    )

    assert (report.total, report.succeeded) == (3, 0)
    assert {r.failure.phase for r in report.results if r.failure} == {"cancelled"}
    assert not any(p.with_suffix(".webp").exists() for p in paths)


def test_run_cancelled_mid_batch_skips_queued_items(
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """Cancel queued items and keep the in-flight one from committing."""
    paths = write_inputs("a.png", "b.png", "c.png", "d.png", "e.png")
    cancel = threading.Event()

    def on_decode(name: str) -> None:
        cancel.set()
        # Hold the only worker until the engine has observed the cancellation.
        time.sleep(0.3)

    codec = fake_codec_factory(on_decode=on_decode)
    report = BatchEngine(codec=codec).run(
        paths, BatchOptions(max_workers=1), cancel_event=cancel
    )

    assert report.total == 5
    assert report.succeeded == 0
    assert {r.failure.phase for r in report.results if r.failure} == {"cancelled"}
    assert len(codec.decoded) == 1
    assert not any(p.with_suffix(".webp").exists() for p in paths)


def test_run_times_out_hung_item_while_siblings_finish(
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """Report a hung item as timed out without blocking the batch."""
    paths = write_inputs("fast1.png", "slow.png", "fast2.png")
    release = threading.Event()
    codec = fake_codec_factory(block_on={"slow.png"}, release=release)

    try:
        started = time.monotonic()
        report = BatchEngine(codec=codec).run(
            paths, BatchOptions(max_workers=3, task_timeout=0.2)
        )
        elapsed = time.monotonic() - started
    finally:
        release.set()

    assert elapsed < 4
    assert (report.total, report.succeeded) == (3, 2)
    (timed_out,) = report.failures
    assert timed_out.input_path.name == "slow.png"
    assert timed_out.failure is not None
    assert timed_out.failure.phase == "timeout"
    assert timed_out.failure.error_type == "TimeoutError"
    # Released after the deadline, the abandoned worker stops before committing.
    time.sleep(0.2)
    assert not paths[1].with_suffix(".webp").exists()


def test_stream_closed_early_aborts_remaining_items(
    write_inputs: Callable[..., list[Path]],
    fake_codec_factory: Callable[..., object],
) -> None:
    """Closing the event stream keeps unfinished items from committing."""
    paths = write_inputs("a.png", "b.png", "c.png")
    release = threading.Event()
    codec = fake_codec_factory(block_on={"b.png", "c.png"}, release=release)
    engine = BatchEngine(codec=codec)

    events = engine.stream(paths, BatchOptions(max_workers=3))
    first = next(events)
    events.close()
    release.set()

    assert first.result.input_path.name == "a.png"
    assert first.result.succeeded
    assert not any(p.with_suffix(".webp").exists() for p in paths[1:])
