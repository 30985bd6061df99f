"""Pydantic schemas for runtime validation of conversion inputs."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_QUALITY = 1
MAX_QUALITY = 100


class BatchOptionsConfig(BaseModel):
    """Validated batch options."""

    model_config = ConfigDict(extra="forbid")

    quality: int = Field(default=80, ge=MIN_QUALITY, le=MAX_QUALITY)
    output_directory: Path | None = None
    max_workers: int | None = Field(default=None, ge=1)
    task_timeout: float | None = Field(default=None, gt=0.0)

    @field_validator("output_directory", mode="before")
    @classmethod
    def _blank_directory_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("output_directory")
    @classmethod
    def _validate_output_directory(cls, value: Path | None) -> Path | None:
        if value is None:
            return None
        if not value.exists():
            raise ValueError(f"output directory does not exist: {value}")
        if not value.is_dir():
            raise ValueError(f"output directory is not a directory: {value}")
        return value


class WorklistConfig(BaseModel):
    """Validated batch worklist."""

    model_config = ConfigDict(extra="forbid")

    paths: list[Path] = Field(min_length=1)


class SingleImageConfig(BaseModel):
    """Validated input for in-memory single image conversion."""

    model_config = ConfigDict(extra="forbid")

    filename: str
    quality: int = Field(default=80, ge=MIN_QUALITY, le=MAX_QUALITY)
