"""Concurrent batch conversion engine."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Iterator, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from webp_converter.adapters.codec import PillowWebpCodec
from webp_converter.application.options import BatchOptions
from webp_converter.application.ports import ImageCodec, ProgressObserver
from webp_converter.application.results import (
    BatchReport,
    ConversionFailure,
    ConversionRequest,
    ConversionResult,
    ProgressEvent,
)
from webp_converter.application.use_cases import (
    build_requests,
    convert_file,
    validate_batch_options,
    validate_worklist,
)
from webp_converter.types import PathLikeStr

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.05


def default_worker_count(item_count: int) -> int:
    """Return ``min(cpu_count, item_count)``, at least one."""
    return max(1, min(os.cpu_count() or 4, item_count))


def _cancelled_result(request: ConversionRequest) -> ConversionResult:
    return ConversionResult(
        input_path=request.input_path,
        output_path=request.output_path,
        failure=ConversionFailure(
            phase="cancelled",
            reason="cancelled: batch was cancelled before this file was converted",
            error_type="ConversionCancelled",
        ),
    )


def _timeout_result(request: ConversionRequest, timeout: float) -> ConversionResult:
    return ConversionResult(
        input_path=request.input_path,
        output_path=request.output_path,
        failure=ConversionFailure(
            phase="timeout",
            reason=f"timeout: conversion did not finish within {timeout:g}s",
            error_type="TimeoutError",
        ),
    )


class BatchEngine:
    """Fan conversions out over a bounded worker pool and aggregate results.

    Workers only run the single-item converter and return its result; every
    counter, progress event and observer call happens on the thread that
    iterates :meth:`stream` or calls :meth:`run`.
    """

    def __init__(self, codec: ImageCodec | None = None) -> None:
        self._codec = codec or PillowWebpCodec()

    def prepare(
        self,
        paths: Sequence[PathLikeStr],
        options: BatchOptions,
    ) -> tuple[BatchOptions, list[ConversionRequest]]:
        """Validate options and worklist, then build the requests.

        Raises
        ------
        BatchValidationError
            If the options are invalid or the worklist is empty.
        """
        validated = validate_batch_options(options)
        worklist = validate_worklist(paths)
        return validated, build_requests(worklist, validated)

    def stream(
        self,
        paths: Sequence[PathLikeStr],
        options: BatchOptions,
        *,
        cancel_event: threading.Event | None = None,
    ) -> Iterator[ProgressEvent]:
        """Validate eagerly, then yield one progress event per item.

        Events arrive in completion order. Iteration ends once every item
        has a result (converted, failed, cancelled or timed out).
        """
        validated, requests = self.prepare(paths, options)
        return self._events(validated, requests, cancel_event or threading.Event())

    def run(
        self,
        paths: Sequence[PathLikeStr],
        options: BatchOptions,
        *,
        observer: ProgressObserver | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchReport:
        """Convert every path and block until all items are resolved.

        Parameters
        ----------
        paths : Sequence[str | PathLike]
            Worklist of input image paths.
        options : BatchOptions
            Quality, output directory, pool size and per-task timeout.
        observer : ProgressObserver | None, default=None
            Called with each :class:`ProgressEvent`. Observer errors are
            logged and never abort the batch.
        cancel_event : threading.Event | None, default=None
            Set from another thread to abort items that have not finished.

        Returns
        -------
        BatchReport
            Aggregate counts plus every per-item result.

        Raises
        ------
        BatchValidationError
            Before any work starts, if options or worklist are invalid.
        """
        results: list[ConversionResult] = []
        for event in self.stream(paths, options, cancel_event=cancel_event):
            results.append(event.result)
            if observer is not None:
                self._notify(observer, event)
        report = BatchReport.from_results(tuple(results))
        logger.info(
            "Complete! %d/%d files converted successfully", report.succeeded, report.total
        )
        return report

    @staticmethod
    def _notify(observer: ProgressObserver, event: ProgressEvent) -> None:
        try:
            observer(event)
        except Exception:
            logger.exception("progress observer raised; continuing batch")

    @staticmethod
    def _collect(future: Future[ConversionResult], request: ConversionRequest) -> ConversionResult:
        try:
            return future.result()
        except Exception as exc:
            logger.exception("worker crashed converting %s", request.input_path)
            return ConversionResult(
                input_path=request.input_path,
                output_path=request.output_path,
                failure=ConversionFailure(
                    phase="converting",
                    reason=f"converting: {exc}",
                    error_type=type(exc).__name__,
                ),
            )

    def _events(
        self,
        options: BatchOptions,
        requests: list[ConversionRequest],
        cancel_event: threading.Event,
    ) -> Iterator[ProgressEvent]:
        total = len(requests)
        workers = min(options.max_workers or default_worker_count(total), total)
        logger.info("converting %d file(s) with %d worker(s)", total, workers)

        aborts = [threading.Event() for _ in requests]
        if cancel_event.is_set():
            for abort in aborts:
                abort.set()
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="webp-convert")
        futures: dict[Future[ConversionResult], int] = {
            executor.submit(convert_file, request, codec=self._codec, abort=abort): index
            for index, (request, abort) in enumerate(zip(requests, aborts, strict=True))
        }
        pending = set(futures)
        started_at: dict[Future[ConversionResult], float] = {}
        abandoned = False
        completed = 0

        try:
            while pending:
                done, _ = wait(pending, timeout=POLL_INTERVAL_SECONDS, return_when=FIRST_COMPLETED)
                for future in done:
                    pending.discard(future)
                    completed += 1
                    result = self._collect(future, requests[futures[future]])
                    yield ProgressEvent(completed=completed, total=total, result=result)

                if cancel_event.is_set():
                    for future in list(pending):
                        index = futures[future]
                        aborts[index].set()
                        if future.cancel():
                            pending.discard(future)
                            completed += 1
                            logger.warning("cancelled %s", requests[index].input_path)
                            yield ProgressEvent(
                                completed=completed,
                                total=total,
                                result=_cancelled_result(requests[index]),
                            )

                if options.task_timeout is not None:
                    now = time.monotonic()
                    for future in list(pending):
                        if not future.running():
                            continue
                        if now - started_at.setdefault(future, now) < options.task_timeout:
                            continue
                        index = futures[future]
                        aborts[index].set()
                        pending.discard(future)
                        abandoned = True
                        completed += 1
                        logger.warning(
                            "timed out converting %s after %gs",
                            requests[index].input_path,
                            options.task_timeout,
                        )
                        yield ProgressEvent(
                            completed=completed,
                            total=total,
                            result=_timeout_result(requests[index], options.task_timeout),
                        )
        finally:
            if pending:
                # Consumer stopped early: nothing left may commit output.
                for abort in aborts:
                    abort.set()
            executor.shutdown(wait=not (abandoned or pending), cancel_futures=True)
