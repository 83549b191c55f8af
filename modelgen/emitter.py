"""Renders model definitions into Python source through Jinja2 templates."""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, Dict, List, Mapping, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .errors import DuplicateFieldError
from .models import ModelDefinition, ModelField, ResolvedType, TypeKind
from .naming import python_identifier, to_snake_case
from .runtime import DiscordModel
from .sources import docs_page_url, source_page_url

DEFAULT_TYPE_MAP: Dict[str, str] = {
    "string": "str",
    "integer": "int",
    "float": "float",
    "boolean": "bool",
    "snowflake": "Snowflake",
    "timestamp": "datetime",
    "binary": "bytes",
}

OPAQUE_ANNOTATION = "OpaquePayload"
RUNTIME_MODULE = "modelgen.runtime"
DEFAULT_DOCS_SITE = "https://discord.com/developers/docs"

# Names a `types:` override may use without saying where to import them from.
BUILTIN_ANNOTATIONS = frozenset(
    {"str", "int", "float", "bool", "bytes", "datetime", "Snowflake", "OpaquePayload"}
)

RESERVED_ATTRIBUTES = frozenset(name for name in dir(DiscordModel) if not name.startswith("_"))

_TYPING_NAMES = ("Any", "Dict", "List", "Optional", "Union")
_RUNTIME_NAMES = ("OpaquePayload", "Snowflake")
_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_]\w*")
_IMPORTED_OVERRIDE = re.compile(r"^([A-Za-z_][\w.]*):([A-Za-z_]\w*)$")


@dataclass(frozen=True)
class EmittedField:
    attribute: str
    wire_name: str
    annotation: str
    optional: bool
    description: str

    @property
    def alias(self) -> str | None:
        return self.wire_name if self.wire_name != self.attribute else None

    @property
    def declaration(self) -> str:
        line = f"{self.attribute}: {self.annotation}"
        if self.alias:
            default = "default=None, " if self.optional else ""
            return f'{line} = Field({default}alias="{self.alias}")'
        if self.optional:
            return f"{line} = None"
        return line

    @property
    def doc(self) -> str | None:
        return docstring_literal(self.description) if self.description else None


@dataclass(frozen=True)
class EmittedModel:
    """Rendered source for one model."""

    name: str
    module: str
    source: str
    document: str

    @property
    def filename(self) -> str:
        return f"{self.module}.py"


class ModelEmitter:
    """Turns a ``ModelDefinition`` into a pydantic model module."""

    def __init__(
        self,
        templates_dir: Path | None = None,
        *,
        type_overrides: Mapping[str, str] | None = None,
        docs_root: str | None = None,
        docs_site: str | None = None,
    ) -> None:
        self.type_map = dict(DEFAULT_TYPE_MAP)
        self.override_imports: Dict[str, str] = {}
        for primitive, value in (type_overrides or {}).items():
            annotation, import_line = parse_type_override(value)
            self.type_map[primitive] = annotation
            if import_line:
                self.override_imports[annotation] = import_line
        self.docs_root = docs_root
        self.docs_site = docs_site
        self._env = self._create_env(templates_dir)

    def check(self, model: ModelDefinition) -> List[EmittedField]:
        """Build the field list, raising ``DuplicateFieldError`` on collisions."""
        fields: List[EmittedField] = []
        wire_names: set[str] = set()
        attributes: set[str] = set()
        for item in model.fields:
            attribute = python_identifier(item.name, RESERVED_ATTRIBUTES)
            if item.name in wire_names or attribute in attributes:
                raise DuplicateFieldError(model.name, item.name)
            wire_names.add(item.name)
            attributes.add(attribute)
            fields.append(
                EmittedField(
                    attribute=attribute,
                    wire_name=item.name,
                    annotation="",
                    optional=item.optional,
                    description=item.record.description,
                )
            )
        return fields

    def emit(self, model: ModelDefinition, known_models: AbstractSet[str]) -> EmittedModel:
        checked = self.check(model)
        fields = [
            EmittedField(
                attribute=emitted.attribute,
                wire_name=emitted.wire_name,
                annotation=self.field_annotation(item, known_models),
                optional=emitted.optional,
                description=emitted.description,
            )
            for emitted, item in zip(checked, model.fields)
        ]
        template = self._env.get_template("model.py.j2")
        source = template.render(
            module_doc=docstring_literal(f"{model.name} model generated from {model.document}."),
            class_doc=docstring_literal(self._class_doc(model)),
            import_groups=self._import_groups(fields),
            name=model.name,
            fields=fields,
        )
        return EmittedModel(
            name=model.name,
            module=module_name(model.name),
            source=source,
            document=model.document,
        )

    def emit_package(self, models: Sequence[EmittedModel], *, package: str) -> str:
        """Render the ``__init__`` that imports every model and links references."""
        template = self._env.get_template("package.py.j2")
        return template.render(
            module_doc=docstring_literal(f"{package} models generated by modelgen."),
            models=models,
        )

    def field_annotation(self, item: ModelField, known_models: AbstractSet[str]) -> str:
        annotation = self.annotation(item.type, known_models)
        if item.optional and not item.nullable and annotation != OPAQUE_ANNOTATION:
            annotation = f"Optional[{annotation}]"
        return annotation

    def annotation(self, resolved: ResolvedType, known_models: AbstractSet[str]) -> str:
        kind = resolved.kind
        if kind is TypeKind.PRIMITIVE:
            return self.type_map.get(resolved.name or "", OPAQUE_ANNOTATION)
        if kind is TypeKind.REFERENCE:
            if resolved.name in known_models:
                return resolved.name  # type: ignore[return-value]
            return OPAQUE_ANNOTATION
        if kind is TypeKind.ARRAY and resolved.element is not None:
            return f"List[{self.annotation(resolved.element, known_models)}]"
        if kind is TypeKind.NULLABLE and resolved.element is not None:
            inner = self.annotation(resolved.element, known_models)
            if inner == OPAQUE_ANNOTATION or inner.startswith("Optional["):
                return inner
            return f"Optional[{inner}]"
        if kind is TypeKind.VARIANT:
            members: List[str] = []
            for alternative in resolved.alternatives:
                member = self.annotation(alternative, known_models)
                if member not in members:
                    members.append(member)
            if len(members) == 1:
                return members[0]
            return f"Union[{', '.join(members)}]"
        return OPAQUE_ANNOTATION

    def _class_doc(self, model: ModelDefinition) -> str:
        lines = [_class_summary(model)]
        page = docs_page_url(self.docs_site or "", model.document, model.anchor)
        source = source_page_url(self.docs_root, model.document, model.anchor) if self.docs_root else None
        links = [url for url in (page, source) if url]
        if not links:
            return lines[0]
        lines.append("")
        lines.append(f"    See {links[0]}")
        lines.extend(f"    or {url}" for url in links[1:])
        # Closing quotes line up with the class body.
        lines.append("    ")
        return "\n".join(lines)

    def _import_groups(self, fields: Sequence[EmittedField]) -> List[List[str]]:
        used: set[str] = set()
        for item in fields:
            used.update(_IDENTIFIER_PATTERN.findall(item.annotation))

        groups: List[List[str]] = []
        stdlib: List[str] = []
        if "datetime" in used:
            stdlib.append("from datetime import datetime")
        typing_names = [name for name in _TYPING_NAMES if name in used]
        if typing_names:
            stdlib.append(f"from typing import {', '.join(typing_names)}")
        if stdlib:
            groups.append(stdlib)
        overrides = sorted({line for name, line in self.override_imports.items() if name in used})
        if overrides:
            groups.append(overrides)
        if any(item.alias for item in fields):
            groups.append(["from pydantic import Field"])
        runtime_names = ["DiscordModel"] + [name for name in _RUNTIME_NAMES if name in used]
        groups.append([f"from {RUNTIME_MODULE} import {', '.join(sorted(runtime_names))}"])
        return groups

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        loader = FileSystemLoader(directories)
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )


def module_name(model_name: str) -> str:
    module = to_snake_case(model_name)
    if keyword.iskeyword(module):
        module = f"{module}_"
    return module


def parse_type_override(value: str) -> Tuple[str, Optional[str]]:
    """Split a `types:` override into its annotation and the import it needs.

    `int` stays as is, while `decimal:Decimal` becomes `Decimal` plus
    `from decimal import Decimal`. Anything else raises `ValueError`.
    """
    text = value.strip()
    match = _IMPORTED_OVERRIDE.match(text)
    if match:
        module, name = match.groups()
        return name, f"from {module} import {name}"
    if text in BUILTIN_ANNOTATIONS:
        return text, None
    raise ValueError(
        f"type override '{value}' must be one of {', '.join(sorted(BUILTIN_ANNOTATIONS))} "
        "or a 'module:Name' import"
    )


def docstring_literal(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if escaped.endswith('"'):
        escaped = escaped[:-1] + '\\"'
    return f'"""{escaped}"""'


def _class_summary(model: ModelDefinition) -> str:
    if model.heading:
        return f"Fields of the '{model.heading}' table in {model.document}."
    return f"Fields of a table in {model.document}."


__all__ = [
    "BUILTIN_ANNOTATIONS",
    "DEFAULT_DOCS_SITE",
    "DEFAULT_TYPE_MAP",
    "EmittedField",
    "EmittedModel",
    "ModelEmitter",
    "RESERVED_ATTRIBUTES",
    "docstring_literal",
    "module_name",
    "parse_type_override",
]
