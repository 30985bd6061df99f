"""Public file-based conversion API (delegates to application use-cases)."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional
from typing import Sequence

from webp_converter.application.ports import ProgressObserver
from webp_converter.application.results import BatchReport
from webp_converter.application.use_cases import build_batch_options
from webp_converter.application.use_cases import convert_single_file
from webp_converter.application.use_cases import run_batch
from webp_converter.errors import ConversionError
from webp_converter.types import PathLikeStr


def convert_image_file_to_webp(
    input_path: PathLikeStr,
    output_path: Optional[PathLikeStr] = None,
    quality: int = 80,
) -> Path:
    """Convert a single image file to WebP and return the output path.

    Raises
    ------
    BatchValidationError
        If ``quality`` is outside ``[1, 100]``.
    ConversionError
        If the file could not be converted; the message names the phase.
    """
    result = convert_single_file(
        input_path=input_path,
        output_path=output_path,
        quality=quality,
    )
    if result.failure is not None:
        raise ConversionError(f"{Path(input_path).name}: {result.failure.reason}")
    return result.output_path


def convert_image_files_to_webp(
    paths: Sequence[PathLikeStr],
    quality: int = 80,
    output_directory: Optional[PathLikeStr] = None,
    max_workers: Optional[int] = None,
    task_timeout: Optional[float] = None,
    observer: Optional[ProgressObserver] = None,
    cancel_event: Optional[threading.Event] = None,
) -> BatchReport:
    """Convert a worklist of image files to WebP concurrently."""
    options = build_batch_options(
        quality=quality,
        output_directory=output_directory,
        max_workers=max_workers,
        task_timeout=task_timeout,
    )
    return run_batch(
        paths,
        options,
        observer=observer,
        cancel_event=cancel_event,
    )
