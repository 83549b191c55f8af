"""Text helpers shared by the parser, type mapper and emitter."""

from __future__ import annotations

import keyword
import re
from typing import List

_LINK_PATTERN = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_REF_LINK_PATTERN = re.compile(r"\[([^\]]*)\]\[[^\]]*\]")
_FOOTNOTE_PATTERN = re.compile(r"\\?\*")
_WORD_PATTERN = re.compile(r"[A-Za-z0-9]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_IDENTIFIER_INVALID = re.compile(r"\W")


def strip_markdown(text: str) -> str:
    """Reduce inline Markdown to plain text: links to labels, no backticks or footnote stars."""
    cleaned = _LINK_PATTERN.sub(r"\1", text)
    cleaned = _REF_LINK_PATTERN.sub(r"\1", cleaned)
    cleaned = cleaned.replace("`", "")
    cleaned = _FOOTNOTE_PATTERN.sub("", cleaned)
    return " ".join(cleaned.split())


def words(text: str) -> List[str]:
    return _WORD_PATTERN.findall(text)


def to_model_name(text: str) -> str:
    """Title-case ``text`` and drop punctuation: ``guild member`` -> ``GuildMember``."""
    parts = []
    for word in words(text):
        if word.isupper() and len(word) > 1:
            parts.append(word.capitalize())
        else:
            parts.append(word[:1].upper() + word[1:])
    name = "".join(parts)
    if name and name[0].isdigit():
        name = f"Model{name}"
    return name


def to_snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def singularize(word: str) -> str:
    lowered = word.lower()
    if lowered.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if lowered.endswith(("ss", "us")):
        return word
    if lowered.endswith("s") and len(word) > 1:
        return word[:-1]
    return word


def slugify(text: str) -> str:
    """GitHub-style heading anchor: `Message Structure` -> `message-structure`."""
    cleaned = re.sub(r"[^\w\s-]", "", text.lower())
    return re.sub(r"\s+", "-", cleaned.strip())


def python_identifier(name: str, reserved: frozenset[str] = frozenset()) -> str:
    """Return a usable attribute name for a wire key."""
    # pydantic treats leading underscores as private attributes.
    identifier = _IDENTIFIER_INVALID.sub("_", name).lstrip("_") or "field"
    if identifier[0].isdigit():
        identifier = f"f_{identifier}"
    if keyword.iskeyword(identifier) or identifier in reserved:
        identifier = f"{identifier}_"
    return identifier


__all__ = [
    "python_identifier",
    "singularize",
    "slugify",
    "strip_markdown",
    "to_model_name",
    "to_snake_case",
    "words",
]
