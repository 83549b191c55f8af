"""Mapping of informal documentation type strings to resolved types."""

from __future__ import annotations

import re
from typing import Dict, List, Mapping

from .errors import UnresolvedType
from .logging import get_logger
from .models import ResolvedType
from .naming import singularize, strip_markdown, to_model_name

PRIMITIVES = ("string", "integer", "float", "boolean", "snowflake", "timestamp", "binary")

DEFAULT_PRIMITIVE_ALIASES: Dict[str, str] = {
    "string": "string",
    "str": "string",
    "integer": "integer",
    "int": "integer",
    "float": "float",
    "double": "float",
    "number": "float",
    "boolean": "boolean",
    "bool": "boolean",
    "snowflake": "snowflake",
    "timestamp": "timestamp",
    "iso8601 timestamp": "timestamp",
    "iso8601": "timestamp",
    "binary": "binary",
    "bytes": "binary",
    "file contents": "binary",
    "image data": "binary",
}

OPAQUE_WORDS = frozenset({"any", "dict", "json", "map", "mixed", "object"})

_QUALIFIERS = {"a", "an", "the", "partial"}
_CONNECTIVES = {"of", "to", "with", "one"}
_OBJECT_SUFFIXES = {"object", "objects", "structure", "structures"}
_ID_WORDS = {"id", "ids"}
_MAX_REFERENCE_WORDS = 6
_OPTIONAL_SUFFIX = "(optional)"

_ARRAY_PATTERN = re.compile(r"^(?:array|list)s?\s+of\s+(.+)$", re.IGNORECASE)
_SUFFIX_ARRAY_PATTERN = re.compile(r"^(.+?)\s*\[\]$")
_EMPTY_ARRAY_PATTERN = re.compile(r"^(?:array|list)s?(?:\s+of)?$", re.IGNORECASE)
_OR_SPLIT = re.compile(r"\s+or\s+", re.IGNORECASE)
_PARENTHETICAL = re.compile(r"\s*\([^()]*\)\s*$")
_NAME_TOKEN = re.compile(r"^[A-Za-z0-9_'\-]+$")


class TypeMapper:
    """Resolves raw type cells such as ``?array of user object``.

    Patterns are tried in priority order: nullable markers, arrays, ``or``
    variants, primitive keywords and finally references to other models.
    Text that fits none of them resolves to ``UNKNOWN`` with a detail message
    instead of raising, so one bad cell only affects its own field.
    """

    def __init__(self, primitive_aliases: Mapping[str, str] | None = None) -> None:
        self.aliases = dict(DEFAULT_PRIMITIVE_ALIASES)
        for alias, primitive in (primitive_aliases or {}).items():
            if primitive not in PRIMITIVES:
                raise ValueError(f"Unknown primitive '{primitive}' for alias '{alias}'")
            self.aliases[alias.lower()] = primitive
        self.logger = get_logger("mapping")

    def resolve(self, raw_type: str) -> ResolvedType:
        text = strip_markdown(raw_type)
        try:
            return self._resolve(raw_type, text, element=False)
        except UnresolvedType as exc:
            self.logger.debug("Unresolved type %s", exc)
            return ResolvedType.unknown(exc.detail)

    def _resolve(self, raw_type: str, text: str, *, element: bool) -> ResolvedType:
        text = text.strip().rstrip(".,;")
        if not text:
            raise UnresolvedType(raw_type, "empty type")

        if text.startswith("?"):
            return _nullable(self._resolve(raw_type, text[1:], element=element))
        if text.lower().endswith(_OPTIONAL_SUFFIX):
            inner = text[: -len(_OPTIONAL_SUFFIX)]
            return _nullable(self._resolve(raw_type, inner, element=element))

        if _EMPTY_ARRAY_PATTERN.match(text):
            raise UnresolvedType(raw_type, "empty array element")
        match = _ARRAY_PATTERN.match(text) or _SUFFIX_ARRAY_PATTERN.match(text)
        if match:
            return ResolvedType.array_of(self._resolve(raw_type, match.group(1), element=True))

        text = _PARENTHETICAL.sub("", text).strip()
        if not text:
            raise UnresolvedType(raw_type, "empty type")

        parts = _OR_SPLIT.split(text)
        if len(parts) > 1:
            alternatives: List[ResolvedType] = []
            for part in parts:
                resolved = self._resolve(raw_type, part, element=element)
                if resolved not in alternatives:
                    alternatives.append(resolved)
            if len(alternatives) == 1:
                return alternatives[0]
            return ResolvedType.variant(tuple(alternatives))

        primitive = self._primitive(text)
        if primitive is not None:
            return ResolvedType.primitive(primitive)

        return ResolvedType.reference(self._reference_name(raw_type, text, element=element))

    def _primitive(self, text: str) -> str | None:
        tokens = [token for token in text.lower().split() if token not in _QUALIFIERS]
        if not tokens:
            return None
        candidate = " ".join(tokens)
        if candidate in self.aliases:
            return self.aliases[candidate]
        singular = " ".join(tokens[:-1] + [singularize(tokens[-1])])
        if singular in self.aliases:
            return self.aliases[singular]
        if tokens[-1] in _ID_WORDS:
            return "snowflake"
        return None

    @staticmethod
    def _reference_name(raw_type: str, text: str, *, element: bool) -> str:
        if text.lower() in OPAQUE_WORDS:
            raise UnresolvedType(raw_type, f"opaque type '{text}'")
        tokens = text.split()
        while tokens and tokens[0].lower() in _QUALIFIERS:
            tokens.pop(0)
        while tokens and tokens[-1].lower() in _OBJECT_SUFFIXES:
            tokens.pop()
        if not tokens:
            raise UnresolvedType(raw_type, f"no model name in '{text}'")
        if not all(_NAME_TOKEN.match(token) for token in tokens):
            raise UnresolvedType(raw_type, f"unrecognised tokens in '{text}'")
        if any(token.lower() in _CONNECTIVES for token in tokens):
            raise UnresolvedType(raw_type, f"ambiguous type '{text}'")
        if len(tokens) > _MAX_REFERENCE_WORDS:
            raise UnresolvedType(raw_type, f"ambiguous type '{text}'")
        if element:
            tokens[-1] = singularize(tokens[-1])
        return to_model_name(" ".join(tokens))


def _nullable(inner: ResolvedType) -> ResolvedType:
    # "?type (optional)" carries two null markers for one wrapper.
    return inner if inner.is_nullable else ResolvedType.nullable(inner)


__all__ = ["DEFAULT_PRIMITIVE_ALIASES", "OPAQUE_WORDS", "PRIMITIVES", "TypeMapper"]
