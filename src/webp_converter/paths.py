"""Output path resolution and worklist expansion."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from webp_converter.formats import IMAGE_EXTENSIONS
from webp_converter.types import PathLikeStr

WEBP_SUFFIX = ".webp"


def resolve_output_path(
    input_path: PathLikeStr,
    output_directory: PathLikeStr | None = None,
) -> Path:
    """Compute the WebP destination for an input image.

    Parameters
    ----------
    input_path : str | PathLike
        Source image path.
    output_directory : str | PathLike | None, default=None
        Directory override. ``None`` or a blank string keeps the output next
        to the input.

    Returns
    -------
    Path
        Input name with its extension replaced by ``.webp``, either in the
        input's directory or in ``output_directory``.

    Notes
    -----
    The destination is not checked for existence; an existing file there is
    overwritten by a successful conversion. Paths without a file name
    (``/``, ``.``, ``a/..``) map to ``image.webp``; opening such an input
    fails later as an item error.
    """
    source = Path(input_path)
    if output_directory is None or not str(output_directory).strip():
        return source.parent / _output_name(source)
    return Path(output_directory) / _output_name(source)


def _output_name(source: Path) -> str:
    if source.name in {"", ".", ".."}:
        return f"image{WEBP_SUFFIX}"
    stem = source.stem
    # "photo." has no extension but loses its trailing dot.
    if len(stem) > 1 and stem.endswith("."):
        stem = stem[:-1]
    return f"{stem}{WEBP_SUFFIX}"


def expand_inputs(paths: Iterable[PathLikeStr], *, recursive: bool = False) -> list[Path]:
    """Expand directory arguments into the image files they contain.

    Files named explicitly are kept as given, whatever their extension.
    Directory entries are filtered by known image extensions and sorted.
    Duplicate paths are dropped, keeping the first occurrence.
    """
    expanded: list[Path] = []
    seen: set[Path] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            candidates = sorted(
                child
                for child in path.glob(pattern)
                if child.is_file() and child.suffix.lower() in IMAGE_EXTENSIONS
            )
        else:
            candidates = [path]
        for candidate in candidates:
            if candidate in seen:
                continue
            seen.add(candidate)
            expanded.append(candidate)
    return expanded
