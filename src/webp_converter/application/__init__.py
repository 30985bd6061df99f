"""Application-layer use-cases and option objects."""

from __future__ import annotations

import threading
from collections.abc import Sequence

from webp_converter.application.options import BatchOptions
from webp_converter.application.ports import ImageCodec, ProgressObserver
from webp_converter.application.results import (
    BatchReport,
    ConversionFailure,
    ConversionRequest,
    ConversionResult,
    ProgressEvent,
)
from webp_converter.types import PathLikeStr


def build_batch_options(
    *,
    quality: int = 80,
    output_directory: PathLikeStr | None = None,
    max_workers: int | None = None,
    task_timeout: float | None = None,
) -> BatchOptions:
    """Build typed batch options via lazy use-case import."""
    from webp_converter.application.use_cases import build_batch_options as _impl

    return _impl(
        quality=quality,
        output_directory=output_directory,
        max_workers=max_workers,
        task_timeout=task_timeout,
    )


def convert_file(
    request: ConversionRequest,
    *,
    codec: ImageCodec | None = None,
    abort: threading.Event | None = None,
) -> ConversionResult:
    """Convert one request via lazy use-case import."""
    from webp_converter.application.use_cases import convert_file as _impl

    return _impl(request, codec=codec, abort=abort)


def run_batch(
    paths: Sequence[PathLikeStr],
    options: BatchOptions,
    *,
    codec: ImageCodec | None = None,
    observer: ProgressObserver | None = None,
    cancel_event: threading.Event | None = None,
) -> BatchReport:
    """Run a batch conversion via lazy use-case import."""
    from webp_converter.application.use_cases import run_batch as _impl

    return _impl(
        paths,
        options,
        codec=codec,
        observer=observer,
        cancel_event=cancel_event,
    )


__all__ = [
    "BatchOptions",
    "BatchReport",
    "ConversionFailure",
    "ConversionRequest",
    "ConversionResult",
    "ProgressEvent",
    "build_batch_options",
    "convert_file",
    "run_batch",
]
