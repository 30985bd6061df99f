"""In-memory single image conversion used by the HTTP transport."""

from __future__ import annotations

from dataclasses import dataclass
from hashlib import sha256
from io import BytesIO
from pathlib import PurePosixPath

from pydantic import ValidationError

from webp_converter.adapters.codec import PillowWebpCodec
from webp_converter.application.ports import ImageCodec
from webp_converter.errors import BatchValidationError
from webp_converter.paths import WEBP_SUFFIX
from webp_converter.schemas import SingleImageConfig


@dataclass(frozen=True)
class ConversionOutcome:
    """Conversion output metadata."""

    output_bytes: bytes
    output_filename: str
    output_sha256: str
    output_size_bytes: int


def digest_bytes(data: bytes) -> str:
    """Compute SHA-256 digest for byte payload."""
    return sha256(data).hexdigest()


def safe_filename(filename: str) -> str:
    """Return the base name of an uploaded filename, or ``image``."""
    raw = filename.strip()
    if not raw:
        return "image"
    # Normalize Windows-style separators before basename extraction.
    candidate = PurePosixPath(raw.replace("\\", "/")).name
    if candidate in {"", ".", ".."}:
        return "image"
    return candidate


def output_filename_for(filename: str) -> str:
    """Return the WebP filename for an uploaded image name."""
    return f"{PurePosixPath(safe_filename(filename)).stem or 'image'}{WEBP_SUFFIX}"


def convert_image_bytes(
    data: bytes,
    *,
    filename: str,
    quality: int = 80,
    codec: ImageCodec | None = None,
) -> tuple[str, ConversionOutcome]:
    """Convert image bytes to WebP and return input/output integrity metadata.

    The upload filename only selects the decoder by extension; nothing is
    written to disk.

    Raises
    ------
    BatchValidationError
        If ``quality`` is outside ``[1, 100]``.
    DecodeError
        If the payload is not a decodable image.
    EncodeError
        If WebP encoding fails.
    """
    try:
        config = SingleImageConfig(filename=safe_filename(filename), quality=quality)
    except ValidationError as exc:
        raise BatchValidationError(f"Invalid conversion parameters: {exc}") from exc

    codec = codec or PillowWebpCodec()
    image = codec.decode(BytesIO(data), config.filename)
    buffer = BytesIO()
    codec.encode(image, config.quality, buffer)
    output_bytes = buffer.getvalue()
    outcome = ConversionOutcome(
        output_bytes=output_bytes,
        output_filename=output_filename_for(config.filename),
        output_sha256=digest_bytes(output_bytes),
        output_size_bytes=len(output_bytes),
    )
    return digest_bytes(data), outcome
