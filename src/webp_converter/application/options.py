"""Typed option objects shared across conversion use-cases."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_QUALITY = 80


@dataclass(frozen=True)
class BatchOptions:
    """Batch conversion options.

    Parameters
    ----------
    quality : int, default=80
        Lossy WebP quality in ``[1, 100]``.
    output_directory : Path | None, default=None
        Existing directory receiving every output. ``None`` writes each
        output next to its input.
    max_workers : int | None, default=None
        Worker pool size. ``None`` uses ``min(cpu_count, len(paths))``.
    task_timeout : float | None, default=None
        Seconds a single item may run before it is reported as timed out.
        The worker is abandoned, not killed: it stops at its next phase
        boundary. A worker that already passed its last abort check before
        the deadline still commits its output, so the file can exist while
        the report says ``timeout``. Abandoned threads are joined by
        ``concurrent.futures`` at interpreter exit, so a truly hung decode
        still delays process shutdown.
    """

    quality: int = DEFAULT_QUALITY
    output_directory: Path | None = None
    max_workers: int | None = None
    task_timeout: float | None = None
