"""Application use-cases orchestrating WebP conversion workflows."""

from __future__ import annotations

import logging
import os
import threading
import uuid
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import BinaryIO, cast

from pydantic import ValidationError

from webp_converter.adapters.codec import PillowWebpCodec
from webp_converter.application.options import DEFAULT_QUALITY, BatchOptions
from webp_converter.application.ports import ImageCodec, ProgressObserver
from webp_converter.application.results import (
    BatchReport,
    ConversionFailure,
    ConversionRequest,
    ConversionResult,
)
from webp_converter.errors import (
    BatchValidationError,
    ConversionCancelled,
    CreateOutputError,
    DecodeError,
    EncodeError,
    ItemConversionError,
    OpenError,
)
from webp_converter.paths import resolve_output_path
from webp_converter.schemas import BatchOptionsConfig, WorklistConfig
from webp_converter.types import ConversionPhase, PathLikeStr

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


def validate_batch_options(options: BatchOptions) -> BatchOptions:
    """Validate batch options once, before any work starts.

    Raises
    ------
    BatchValidationError
        If quality is outside ``[1, 100]``, the output directory is missing
        or not a directory, or worker/timeout settings are not positive.
    """
    try:
        config = BatchOptionsConfig(
            quality=options.quality,
            output_directory=options.output_directory,
            max_workers=options.max_workers,
            task_timeout=options.task_timeout,
        )
    except ValidationError as exc:
        raise BatchValidationError(
            f"Invalid batch options: {_describe_validation_error(exc)}"
        ) from exc
    return BatchOptions(
        quality=config.quality,
        output_directory=config.output_directory,
        max_workers=config.max_workers,
        task_timeout=config.task_timeout,
    )


def validate_worklist(paths: Sequence[PathLikeStr]) -> list[Path]:
    """Validate the batch worklist.

    Raises
    ------
    BatchValidationError
        If the worklist is empty.
    """
    try:
        config = WorklistConfig(paths=[Path(path) for path in paths])
    except ValidationError as exc:
        raise BatchValidationError("No files selected: the worklist is empty.") from exc
    return config.paths


def build_requests(
    paths: Sequence[PathLikeStr], options: BatchOptions
) -> list[ConversionRequest]:
    """Resolve output paths and build one request per worklist item."""
    return [
        ConversionRequest(
            input_path=path,
            output_path=resolve_output_path(path, options.output_directory),
            quality=options.quality,
        )
        for path in (Path(item) for item in paths)
    ]


def _check_abort(abort: threading.Event | None) -> None:
    if abort is not None and abort.is_set():
        raise ConversionCancelled("conversion aborted before completion")


def _decode(request: ConversionRequest, codec: ImageCodec) -> object:
    try:
        source = request.input_path.open("rb")
    except OSError as exc:
        raise OpenError(exc.strerror or str(exc)) from exc
    with source:
        try:
            return codec.decode(source, request.input_path.name)
        except ItemConversionError:
            raise
        except Exception as exc:
            raise DecodeError(str(exc) or type(exc).__name__) from exc


def _write_output(
    output_path: Path,
    write: Callable[[BinaryIO], None],
    abort: threading.Event | None,
) -> int:
    """Write to a sibling temp file and move it over ``output_path``.

    The temp file is removed on every failure path, so a failed attempt
    never leaves a truncated output or clobbers an existing one.
    """
    tmp_path = output_path.with_name(f".{output_path.name}.{uuid.uuid4().hex}.tmp")
    try:
        handle = tmp_path.open("xb")
    except OSError as exc:
        raise CreateOutputError(exc.strerror or str(exc)) from exc

    committed = False
    try:
        with handle:
            try:
                write(handle)
            except ItemConversionError:
                raise
            except Exception as exc:
                raise EncodeError(str(exc) or type(exc).__name__) from exc
            size = handle.tell()
        _check_abort(abort)
        try:
            os.replace(tmp_path, output_path)
        except OSError as exc:
            raise CreateOutputError(exc.strerror or str(exc)) from exc
        committed = True
    finally:
        if not committed:
            tmp_path.unlink(missing_ok=True)
    return size


def _failure_from(exc: ItemConversionError) -> ConversionFailure:
    return ConversionFailure(
        phase=cast(ConversionPhase, exc.phase),
        reason=f"{exc.phase}: {exc}",
        error_type=type(exc).__name__,
    )


def convert_file(
    request: ConversionRequest,
    *,
    codec: ImageCodec | None = None,
    abort: threading.Event | None = None,
) -> ConversionResult:
    """Use-case: convert one image file to WebP.

    Opens the input, decodes it, creates the output and encodes into it.
    Any failure short-circuits the remaining steps and is returned as data;
    this function does not raise for a bad file.

    Parameters
    ----------
    request : ConversionRequest
        Input path, resolved output path and quality.
    codec : ImageCodec | None, default=None
        Codec adapter. Defaults to :class:`PillowWebpCodec`.
    abort : threading.Event | None, default=None
        When set, the conversion stops at the next phase boundary and
        nothing is committed.

    Returns
    -------
    ConversionResult
        Success with the written size, or a failure naming the phase.
    """
    codec = codec or PillowWebpCodec()
    try:
        _check_abort(abort)
        image = _decode(request, codec)
        _check_abort(abort)
        size = _write_output(
            request.output_path,
            lambda handle: codec.encode(image, request.quality, handle),
            abort,
        )
    except ItemConversionError as exc:
        failure = _failure_from(exc)
        logger.warning("failed to convert %s: %s", request.input_path, failure.reason)
        return ConversionResult(
            input_path=request.input_path,
            output_path=request.output_path,
            failure=failure,
        )
    except Exception as exc:
        logger.exception("unexpected error converting %s", request.input_path)
        return ConversionResult(
            input_path=request.input_path,
            output_path=request.output_path,
            failure=ConversionFailure(
                phase="converting",
                reason=f"converting: {exc}",
                error_type=type(exc).__name__,
            ),
        )

    logger.debug("converted %s -> %s (%d bytes)", request.input_path, request.output_path, size)
    return ConversionResult(
        input_path=request.input_path,
        output_path=request.output_path,
        output_size_bytes=size,
    )


def convert_single_file(
    *,
    input_path: PathLikeStr,
    output_path: PathLikeStr | None,
    quality: int = DEFAULT_QUALITY,
    codec: ImageCodec | None = None,
) -> ConversionResult:
    """Use-case: validate quality and convert a single file.

    ``output_path`` defaults to the input path with a ``.webp`` extension.
    """
    options = validate_batch_options(BatchOptions(quality=quality))
    source = Path(input_path)
    request = ConversionRequest(
        input_path=source,
        output_path=Path(output_path) if output_path else resolve_output_path(source),
        quality=options.quality,
    )
    return convert_file(request, codec=codec)


def run_batch(
    paths: Sequence[PathLikeStr],
    options: BatchOptions,
    *,
    codec: ImageCodec | None = None,
    observer: ProgressObserver | None = None,
    cancel_event: threading.Event | None = None,
) -> BatchReport:
    """Use-case: convert a worklist concurrently and aggregate the results."""
    from webp_converter.engine.batch import BatchEngine

    engine = BatchEngine(codec=codec)
    return engine.run(paths, options, observer=observer, cancel_event=cancel_event)


def build_batch_options(
    *,
    quality: int = DEFAULT_QUALITY,
    output_directory: PathLikeStr | None = None,
    max_workers: int | None = None,
    task_timeout: float | None = None,
) -> BatchOptions:
    """Build typed option object from command/API params."""
    return BatchOptions(
        quality=quality,
        output_directory=(
            Path(output_directory)
            if output_directory is not None and str(output_directory).strip()
            else None
        ),
        max_workers=max_workers,
        task_timeout=task_timeout,
    )
