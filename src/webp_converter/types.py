"""Shared type aliases and protocols for conversion modules."""

from __future__ import annotations

from os import PathLike
from typing import Literal, Protocol

type DecoderKind = Literal["jpeg", "png", "bmp", "auto"]

type ConversionPhase = Literal[
    "opening file",
    "decoding image",
    "creating output",
    "encoding webp",
    "converting",
    "cancelled",
    "timeout",
]

type PathLikeStr = str | PathLike[str]


class ImageLike(Protocol):
    """Marker protocol for decoded in-memory images."""

    @property
    def size(self) -> tuple[int, int]: ...

    @property
    def mode(self) -> str: ...
