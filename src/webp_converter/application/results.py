"""Application-layer request and result objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from webp_converter.types import ConversionPhase


@dataclass(frozen=True)
class ConversionRequest:
    """One worklist item, created at dispatch time."""

    input_path: Path
    output_path: Path
    quality: int


@dataclass(frozen=True)
class ConversionFailure:
    """Captured item-local failure.

    ``reason`` starts with the phase label, e.g.
    ``"decoding image: cannot identify image file"``.
    """

    phase: ConversionPhase
    reason: str
    error_type: str


@dataclass(frozen=True)
class ConversionResult:
    """Structured outcome of converting one file."""

    input_path: Path
    output_path: Path
    failure: ConversionFailure | None = None
    output_size_bytes: int | None = None

    @property
    def succeeded(self) -> bool:
        """Whether the file was converted."""
        return self.failure is None

    @property
    def reason(self) -> str | None:
        """Failure reason, or ``None`` on success."""
        return None if self.failure is None else self.failure.reason


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification emitted as each item completes."""

    completed: int
    total: int
    result: ConversionResult


@dataclass(frozen=True)
class BatchReport:
    """Aggregate outcome of one batch run."""

    total: int
    succeeded: int
    results: tuple[ConversionResult, ...] = field(default_factory=tuple)

    @property
    def failed(self) -> int:
        """Number of items that did not convert."""
        return self.total - self.succeeded

    @property
    def failures(self) -> tuple[ConversionResult, ...]:
        """Results carrying a failure, in completion order."""
        return tuple(result for result in self.results if not result.succeeded)

    @classmethod
    def from_results(cls, results: tuple[ConversionResult, ...]) -> BatchReport:
        """Build a report from the full set of item results."""
        return cls(
            total=len(results),
            succeeded=sum(1 for result in results if result.succeeded),
            results=results,
        )
