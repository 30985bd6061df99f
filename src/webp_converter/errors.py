"""Error taxonomy for WebP conversion."""

from __future__ import annotations

from typing import ClassVar


class ConversionError(Exception):
    """Base class for conversion failures."""

    exit_code: ClassVar[int] = 1


class BatchValidationError(ConversionError):
    """Batch-fatal validation failure raised before any file is touched."""

    exit_code: ClassVar[int] = 2


class DependencyError(ConversionError):
    """Optional runtime dependency is missing or lacks required support."""


class ItemConversionError(ConversionError):
    """Failure confined to a single file's conversion.

    Subclasses set ``phase`` to the label of the step that failed; the label
    prefixes the human-readable reason recorded in the item's result.
    """

    phase: ClassVar[str] = "converting"


class OpenError(ItemConversionError):
    """Input file could not be opened for reading."""

    phase: ClassVar[str] = "opening file"


class DecodeError(ItemConversionError):
    """Input bytes could not be decoded into an image."""

    phase: ClassVar[str] = "decoding image"


class UnsupportedFormatError(DecodeError):
    """No registered decoder recognised the input."""


class CreateOutputError(ItemConversionError):
    """Destination file could not be created."""

    phase: ClassVar[str] = "creating output"


class EncodeError(ItemConversionError):
    """Image could not be encoded as WebP."""

    phase: ClassVar[str] = "encoding webp"


class ConversionCancelled(ItemConversionError):
    """Item was aborted before its output was committed."""

    phase: ClassVar[str] = "cancelled"
