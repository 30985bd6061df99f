#!/usr/bin/env python3
"""Architecture boundary checks."""

from __future__ import annotations

from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _assert_no_imports(path: Path, banned: list[str]) -> None:
    text = _read(path)
    for token in banned:
        if token in text:
            raise SystemExit(f"Architecture violation in {path}: found '{token}'")


def main() -> None:
    """Run repository architecture boundary checks."""
    cli_path = ROOT / "src/webp_converter/cli/cli.py"
    _assert_no_imports(
        cli_path,
        [
            "from PIL import Image",
            "import fastapi",
            "ThreadPoolExecutor",
        ],
    )

    app_dir = ROOT / "src/webp_converter/application"
    for path in app_dir.glob("*.py"):
        _assert_no_imports(
            path,
            [
                "import typer",
                "from typer",
                "import fastapi",
                "from fastapi",
                "from PIL",
                "ThreadPoolExecutor",
            ],
        )

    # Byte-level conversion must stay usable without the server extra.
    _assert_no_imports(
        ROOT / "src/webp_converter/service/core.py",
        ["import fastapi", "from fastapi", "import uvicorn"],
    )
    _assert_no_imports(
        ROOT / "src/webp_converter/adapters/codec.py",
        ["import typer", "ThreadPoolExecutor", "import fastapi"],
    )

    print("Architecture checks passed.")


if __name__ == "__main__":
    main()
