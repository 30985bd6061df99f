"""Application ports for clean architecture boundaries."""

from __future__ import annotations

from typing import BinaryIO, Protocol

from webp_converter.application.results import ProgressEvent
from webp_converter.types import ImageLike


class ImageCodec(Protocol):
    """Decode source images and encode them as WebP."""

    def decode(self, stream: BinaryIO, source_name: str) -> ImageLike:
        """Decode the whole stream into a materialized image.

        Raise ``DecodeError`` (or ``UnsupportedFormatError``) on failure.
        """

    def encode(self, image: ImageLike, quality: int, stream: BinaryIO) -> None:
        """Write ``image`` to ``stream`` as lossy WebP.

        Raise ``EncodeError`` on failure.
        """


class ProgressObserver(Protocol):
    """Receive progress notifications on the thread that runs the batch."""

    def __call__(self, event: ProgressEvent) -> None:
        """Handle one completed item."""
