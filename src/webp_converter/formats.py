"""Decoder selection by file extension."""

from __future__ import annotations

from pathlib import PurePath

from webp_converter.types import DecoderKind, PathLikeStr

_DECODERS_BY_EXTENSION: dict[str, DecoderKind] = {
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
    ".bmp": "bmp",
}

_PILLOW_FORMATS: dict[DecoderKind, tuple[str, ...] | None] = {
    "jpeg": ("JPEG",),
    "png": ("PNG",),
    "bmp": ("BMP",),
    # Pillow sniffs the leading bytes against every registered plugin.
    "auto": None,
}

SUPPORTED_EXTENSIONS: tuple[str, ...] = tuple(_DECODERS_BY_EXTENSION)

# Extensions picked up when expanding directories; anything else still goes
# through the auto-detecting decoder when named explicitly. ".webp" is left
# out so a second run over a directory does not pick up its own outputs.
IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {*SUPPORTED_EXTENSIONS, ".gif", ".tif", ".tiff", ".ico", ".tga"}
)


def detect_decoder(path: PathLikeStr) -> DecoderKind:
    """Return the decoder kind for a file path.

    Parameters
    ----------
    path : str | PathLike
        Input file path. Only the extension is inspected.

    Returns
    -------
    DecoderKind
        ``"jpeg"``, ``"png"`` or ``"bmp"`` for the matching extensions
        (case-insensitive), otherwise ``"auto"``.
    """
    suffix = PurePath(path).suffix.lower()
    return _DECODERS_BY_EXTENSION.get(suffix, "auto")


def pillow_formats(kind: DecoderKind) -> tuple[str, ...] | None:
    """Map a decoder kind to the Pillow format whitelist used by ``Image.open``."""
    return _PILLOW_FORMATS[kind]
