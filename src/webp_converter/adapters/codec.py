"""Pillow-backed image codec adapter."""

from __future__ import annotations

from typing import BinaryIO

from PIL import Image, UnidentifiedImageError

from webp_converter.errors import DecodeError, EncodeError, UnsupportedFormatError
from webp_converter.formats import detect_decoder, pillow_formats
from webp_converter.schemas import MAX_QUALITY, MIN_QUALITY

_WEBP_MODES = frozenset({"RGB", "RGBA"})


def _prepare_for_webp(image: Image.Image) -> Image.Image:
    """Convert colour models WebP cannot store into RGB or RGBA."""
    if image.mode in _WEBP_MODES:
        return image
    if image.has_transparency_data:
        return image.convert("RGBA")
    return image.convert("RGB")


class PillowWebpCodec:
    """Decode raster images with Pillow and encode them as lossy WebP."""

    def decode(self, stream: BinaryIO, source_name: str) -> Image.Image:
        """Decode the whole stream into an in-memory image.

        Parameters
        ----------
        stream : BinaryIO
            Readable binary stream positioned at the start of the image.
        source_name : str
            File name used to choose the decoder by extension.

        Returns
        -------
        PIL.Image.Image
            Fully loaded image, independent of ``stream``.

        Raises
        ------
        UnsupportedFormatError
            If auto-detection recognises no registered format.
        DecodeError
            If the data is truncated, malformed or not of the format its
            extension names.
        """
        kind = detect_decoder(source_name)
        formats = pillow_formats(kind)
        try:
            with Image.open(stream, formats=formats) as opened:
                opened.load()
                image = opened.copy()
        except UnidentifiedImageError as exc:
            if formats is None:
                raise UnsupportedFormatError(f"unsupported image format: {exc}") from exc
            raise DecodeError(f"not a valid {kind.upper()} image: {exc}") from exc
        except Exception as exc:
            raise DecodeError(str(exc) or type(exc).__name__) from exc
        return image

    def encode(self, image: Image.Image, quality: int, stream: BinaryIO) -> None:
        """Write ``image`` to ``stream`` as lossy WebP.

        Parameters
        ----------
        image : PIL.Image.Image
            Decoded image.
        quality : int
            WebP quality in ``[1, 100]``.
        stream : BinaryIO
            Writable binary stream.

        Raises
        ------
        EncodeError
            If the image has zero dimensions, the quality is out of range, or
            the encoder rejects the image.
        """
        width, height = image.size
        if width <= 0 or height <= 0:
            raise EncodeError(f"image has zero dimensions ({width}x{height})")
        if not MIN_QUALITY <= quality <= MAX_QUALITY:
            raise EncodeError(
                f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
            )
        try:
            prepared = _prepare_for_webp(image)
            prepared.save(stream, format="WEBP", quality=quality, lossless=False)
        except Exception as exc:
            raise EncodeError(str(exc) or type(exc).__name__) from exc

