"""Shared pytest configuration, marker assignment and image fixtures."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import BinaryIO

import pytest
from PIL import Image

from webp_converter.errors import DecodeError, EncodeError

ImageFactory = Callable[..., Path]


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Attach suite markers based on test file path."""
    del config
    for item in items:
        path = Path(str(item.fspath))
        parts = set(path.parts)
        if "e2e_tests" in parts:
            item.add_marker(pytest.mark.e2e)
        elif "integration_tests" in parts:
            item.add_marker(pytest.mark.integration)
        elif "unit_tests" in parts:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def make_image() -> ImageFactory:
    """Write a small solid-colour image; the format follows the suffix."""

    def _make(
        path: Path,
        *,
        size: tuple[int, int] = (16, 12),
        mode: str = "RGB",
        image_format: str | None = None,
    ) -> Path:
        image = Image.new("RGB", size, (200, 30, 60))
        if mode != "RGB":
            image = image.convert(mode)
        image.save(path, format=image_format)
        return path

    return _make


class FakeCodec:
    """In-memory codec: "decodes" raw bytes and "encodes" them with a header.

    Names in ``fail_decode``/``fail_encode`` raise the matching item error;
    names in ``block_on`` wait for ``release`` before decoding.
    """

    def __init__(
        self,
        *,
        fail_decode: Iterable[str] = (),
        fail_encode: Iterable[str] = (),
        block_on: Iterable[str] = (),
        release: threading.Event | None = None,
        on_decode: Callable[[str], None] | None = None,
    ) -> None:
        self.fail_decode = set(fail_decode)
        self.fail_encode = set(fail_encode)
        self.block_on = set(block_on)
        self.release = release or threading.Event()
        self.on_decode = on_decode
        self._lock = threading.Lock()
        self.decoded: list[str] = []

    def decode(self, stream: BinaryIO, source_name: str) -> bytes:
        data = stream.read()
        with self._lock:
            self.decoded.append(source_name)
        if self.on_decode is not None:
            self.on_decode(source_name)
        if source_name in self.block_on:
            self.release.wait(5)
        if source_name in self.fail_decode:
            raise DecodeError("corrupt data")
        return source_name.encode() + b":" + data

    def encode(self, image: bytes, quality: int, stream: BinaryIO) -> None:
        stream.write(b"RIFF")
        name = image.split(b":", 1)[0].decode()
        if name in self.fail_encode:
            raise EncodeError("encoder rejected image")
        stream.write(f"q={quality};".encode() + image)


@pytest.fixture
def fake_codec_factory() -> Callable[..., FakeCodec]:
    """Build :class:`FakeCodec` instances."""
    return FakeCodec


@pytest.fixture
def write_inputs(tmp_path: Path) -> Callable[..., list[Path]]:
    """Write placeholder input files named ``names`` into ``tmp_path/in``."""

    def _write(*names: str) -> list[Path]:
        directory = tmp_path / "in"
        directory.mkdir(exist_ok=True)
        paths = []
        for name in names:
            path = directory / name
            path.write_bytes(f"payload-{name}".encode())
            paths.append(path)
        return paths

    return _write
