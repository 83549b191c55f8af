"""Error taxonomy and recoverable issue records for generation runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from modelgen.models import GenerationReport

MALFORMED_ROW = "malformed_row"
UNRESOLVED_TYPE = "unresolved_type"
DUPLICATE_FIELD = "duplicate_field"
DUPLICATE_MODEL = "duplicate_model"
AMBIGUOUS_HEADING = "ambiguous_heading"


@dataclass(frozen=True)
class GenerationIssue:
    """A recoverable problem recorded during a run instead of being raised."""

    kind: str
    message: str
    document: Optional[str] = None
    model: Optional[str] = None
    line: Optional[int] = None

    def __str__(self) -> str:
        location = self.document or "<input>"
        if self.line is not None:
            location = f"{location}:{self.line}"
        if self.model:
            location = f"{location} ({self.model})"
        return f"{location}: {self.message}"


class ModelGenError(RuntimeError):
    """Base class for generator failures."""


class SourceUnavailable(ModelGenError):
    """Raised when a document cannot be fetched or read."""

    def __init__(self, document: str, reason: str) -> None:
        super().__init__(f"{document}: {reason}")
        self.document = document
        self.reason = reason


class MalformedRow(ModelGenError):
    """Raised for a table row that cannot become a field record."""

    def __init__(self, line: int, reason: str) -> None:
        super().__init__(f"line {line}: {reason}")
        self.line = line
        self.reason = reason


class UnresolvedType(ModelGenError):
    """Raised when a documented type string cannot be mapped."""

    def __init__(self, raw_type: str, detail: str) -> None:
        super().__init__(f"{raw_type!r}: {detail}")
        self.raw_type = raw_type
        self.detail = detail


class DuplicateFieldError(ModelGenError):
    """Raised when one model declares the same field name twice."""

    def __init__(self, model: str, field_name: str) -> None:
        super().__init__(f"{model} declares field '{field_name}' more than once")
        self.model = model
        self.field_name = field_name


class NoModelsProducedError(ModelGenError):
    """Raised when an entire run yields zero models."""

    def __init__(self, report: "GenerationReport") -> None:
        failed = len(report.failed)
        super().__init__(
            f"No models were produced ({len(report.succeeded)} documents parsed, {failed} failed)"
        )
        self.report = report


__all__ = [
    "AMBIGUOUS_HEADING",
    "DUPLICATE_FIELD",
    "DUPLICATE_MODEL",
    "DuplicateFieldError",
    "GenerationIssue",
    "MALFORMED_ROW",
    "MalformedRow",
    "ModelGenError",
    "NoModelsProducedError",
    "SourceUnavailable",
    "UNRESOLVED_TYPE",
    "UnresolvedType",
]
