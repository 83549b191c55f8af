"""Core data models shared across modelgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .errors import GenerationIssue


@dataclass(frozen=True)
class DocumentRef:
    """Logical path of one Markdown document (relative path, file path or URL)."""

    path: str

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class FieldRecord:
    """One row of a documentation field table."""

    name: str
    raw_type: str
    description: str
    optional: bool = False
    raw_name: Optional[str] = None
    line: Optional[int] = None

    @property
    def name_cell(self) -> str:
        return self.raw_name if self.raw_name is not None else self.name


class TypeKind(str, Enum):
    PRIMITIVE = "primitive"
    REFERENCE = "reference"
    ARRAY = "array"
    NULLABLE = "nullable"
    VARIANT = "variant"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResolvedType:
    """Semantic type descriptor produced from a documented type string.

    ``ARRAY`` and ``NULLABLE`` wrap exactly one ``element``; ``VARIANT`` holds
    its members in ``alternatives``. ``detail`` explains an ``UNKNOWN`` result
    and does not take part in equality.
    """

    kind: TypeKind
    name: Optional[str] = None
    element: Optional["ResolvedType"] = None
    alternatives: Tuple["ResolvedType", ...] = ()
    detail: Optional[str] = field(default=None, compare=False)

    @classmethod
    def primitive(cls, name: str) -> "ResolvedType":
        return cls(TypeKind.PRIMITIVE, name=name)

    @classmethod
    def reference(cls, name: str) -> "ResolvedType":
        return cls(TypeKind.REFERENCE, name=name)

    @classmethod
    def array_of(cls, element: "ResolvedType") -> "ResolvedType":
        return cls(TypeKind.ARRAY, element=element)

    @classmethod
    def nullable(cls, element: "ResolvedType") -> "ResolvedType":
        return cls(TypeKind.NULLABLE, element=element)

    @classmethod
    def variant(cls, alternatives: Tuple["ResolvedType", ...]) -> "ResolvedType":
        return cls(TypeKind.VARIANT, alternatives=tuple(alternatives))

    @classmethod
    def unknown(cls, detail: str) -> "ResolvedType":
        return cls(TypeKind.UNKNOWN, detail=detail)

    @property
    def is_nullable(self) -> bool:
        return self.kind is TypeKind.NULLABLE

    def children(self) -> Tuple["ResolvedType", ...]:
        if self.element is not None:
            return (self.element,)
        return self.alternatives

    def walk(self) -> Iterator["ResolvedType"]:
        """Yield this type and every nested type, depth first."""
        yield self
        for child in self.children():
            yield from child.walk()

    def references(self) -> Iterator[str]:
        for node in self.walk():
            if node.kind is TypeKind.REFERENCE and node.name:
                yield node.name

    def unknowns(self) -> Iterator["ResolvedType"]:
        for node in self.walk():
            if node.kind is TypeKind.UNKNOWN:
                yield node

    def __str__(self) -> str:
        if self.kind is TypeKind.PRIMITIVE:
            return f"Primitive({self.name})"
        if self.kind is TypeKind.REFERENCE:
            return f"Reference({self.name})"
        if self.kind is TypeKind.ARRAY:
            return f"ArrayOf({self.element})"
        if self.kind is TypeKind.NULLABLE:
            return f"Nullable({self.element})"
        if self.kind is TypeKind.VARIANT:
            return "Variant(" + ", ".join(str(alt) for alt in self.alternatives) + ")"
        return "Unknown"


@dataclass(frozen=True)
class ModelField:
    """A parsed row paired with its resolved type."""

    record: FieldRecord
    type: ResolvedType

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def optional(self) -> bool:
        """The field may be absent from the payload."""
        return self.record.optional

    @property
    def nullable(self) -> bool:
        """The field may be present with a null value."""
        return self.type.is_nullable


@dataclass(frozen=True)
class ModelDefinition:
    """Named aggregate of fields in table row order."""

    name: str
    document: str
    heading: str
    fields: Tuple[ModelField, ...] = ()
    anchor: str = ""

    def field_names(self) -> List[str]:
        return [item.name for item in self.fields]


@dataclass
class GenerationReport:
    """Outcome of a generation run."""

    succeeded: List[DocumentRef] = field(default_factory=list)
    failed: List[Tuple[DocumentRef, str]] = field(default_factory=list)
    models: List[str] = field(default_factory=list)
    skipped_models: List[Tuple[str, str]] = field(default_factory=list)
    issues: List[GenerationIssue] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return bool(self.models)

    def issues_of(self, kind: str) -> List[GenerationIssue]:
        return [issue for issue in self.issues if issue.kind == kind]

    def summary(self) -> str:
        parts = [
            f"{len(self.models)} models written",
            f"{len(self.succeeded)} documents parsed",
            f"{len(self.failed)} failed",
        ]
        if self.skipped_models:
            parts.append(f"{len(self.skipped_models)} models skipped")
        if self.issues:
            parts.append(f"{len(self.issues)} warnings")
        if self.cancelled:
            parts.append("cancelled")
        return ", ".join(parts)
