"""Top-level API for image-to-WebP conversion."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from pathlib import Path

from webp_converter.application.ports import ProgressObserver
from webp_converter.application.results import BatchReport
from webp_converter.types import PathLikeStr

__version__ = "0.1.0"


def convert_image_to_webp(
    input_path: PathLikeStr,
    output_path: PathLikeStr | None = None,
    quality: int = 80,
) -> Path:
    """Convert one image file to lossy WebP.

    Parameters
    ----------
    input_path : str | PathLike
        Source image (JPEG, PNG, BMP, or any format Pillow can sniff).
    output_path : str | PathLike, optional
        Destination path. Defaults to ``input_path`` with a ``.webp``
        extension. An existing file there is overwritten.
    quality : int, default=80
        WebP quality in ``[1, 100]``.

    Returns
    -------
    Path
        Path to the written WebP file.
    """
    from .api import convert_image_file_to_webp as _impl

    return _impl(input_path=input_path, output_path=output_path, quality=quality)


def convert_images_to_webp(
    paths: Sequence[PathLikeStr],
    quality: int = 80,
    output_directory: PathLikeStr | None = None,
    *,
    max_workers: int | None = None,
    task_timeout: float | None = None,
    observer: ProgressObserver | None = None,
    cancel_event: threading.Event | None = None,
) -> BatchReport:
    """Convert a batch of image files to lossy WebP.

    Parameters
    ----------
    paths : Sequence[str | PathLike]
        Worklist of input images. Must not be empty.
    quality : int, default=80
        WebP quality in ``[1, 100]``.
    output_directory : str | PathLike, optional
        Existing directory for every output. Defaults to each input's
        directory.
    max_workers : int, optional
        Worker pool size. Defaults to ``min(cpu_count, len(paths))``.
    task_timeout : float, optional
        Seconds before a single item is reported as timed out.
    observer : ProgressObserver, optional
        Called with a :class:`ProgressEvent` as each item completes.
    cancel_event : threading.Event, optional
        Set to abort items that have not finished.

    Returns
    -------
    BatchReport
        ``total``, ``succeeded`` and every per-item result.
    """
    from .api import convert_image_files_to_webp as _impl

    return _impl(
        paths=paths,
        quality=quality,
        output_directory=output_directory,
        max_workers=max_workers,
        task_timeout=task_timeout,
        observer=observer,
        cancel_event=cancel_event,
    )


__all__ = [
    "convert_image_to_webp",
    "convert_images_to_webp",
]
