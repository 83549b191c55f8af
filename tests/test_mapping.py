"""Tests for resolving documented type strings."""

from __future__ import annotations

import pytest

from modelgen.mapping import TypeMapper
from modelgen.models import ResolvedType, TypeKind

P = ResolvedType.primitive
R = ResolvedType.reference
A = ResolvedType.array_of
N = ResolvedType.nullable


@pytest.fixture
def mapper() -> TypeMapper:
    return TypeMapper()


def test_nullable_array_of_reference(mapper: TypeMapper) -> None:
    assert mapper.resolve("?array of user object") == N(A(R("User")))


def test_snowflake_is_a_primitive(mapper: TypeMapper) -> None:
    resolved = mapper.resolve("snowflake")
    assert resolved == P("snowflake")
    assert resolved.kind is TypeKind.PRIMITIVE


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("string", P("string")),
        ("int", P("integer")),
        ("bool", P("boolean")),
        ("double", P("float")),
        ("ISO8601 timestamp", P("timestamp")),
        ("file contents", P("binary")),
        ("?string", N(P("string"))),
        ("integer (optional)", N(P("integer"))),
        ("?integer (optional)", N(P("integer"))),
        ("array of snowflakes", A(P("snowflake"))),
        ("list of strings", A(P("string"))),
        ("snowflake[]", A(P("snowflake"))),
        ("array of role object ids", A(P("snowflake"))),
    ],
)
def test_primitive_patterns(mapper: TypeMapper, raw: str, expected: ResolvedType) -> None:
    assert mapper.resolve(raw) == expected


def test_markdown_links_resolve_to_references(mapper: TypeMapper) -> None:
    raw = "array of [guild member](#DOCS_RESOURCES_GUILD/guild-member-object) objects"
    assert mapper.resolve(raw) == A(R("GuildMember"))


def test_partial_and_parenthetical_notes_are_dropped(mapper: TypeMapper) -> None:
    assert mapper.resolve("partial [guild](#DOCS_RESOURCES_GUILD/guild-object) object") == R("Guild")
    assert mapper.resolve("string (url)") == P("string")


def test_or_produces_a_variant(mapper: TypeMapper) -> None:
    resolved = mapper.resolve("integer or string")
    assert resolved == ResolvedType.variant((P("integer"), P("string")))
    assert str(resolved) == "Variant(Primitive(integer), Primitive(string))"


def test_or_with_identical_members_collapses(mapper: TypeMapper) -> None:
    assert mapper.resolve("integer or int") == P("integer")


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "mixed",
        "object",
        "?dict",
        "see {the} docs",
        "array of",
        "?list of",
        "map of snowflakes to role objects",
        "one of ALL_CAPS",
    ],
)
def test_unresolvable_text_is_unknown(mapper: TypeMapper, raw: str) -> None:
    resolved = mapper.resolve(raw)
    assert resolved.kind is TypeKind.UNKNOWN
    assert resolved.detail


def test_array_without_element_names_the_problem(mapper: TypeMapper) -> None:
    assert mapper.resolve("array of").detail == "empty array element"
    assert mapper.resolve("one of ALL_CAPS").detail == "ambiguous type 'one of ALL_CAPS'"


def test_unknown_equality_ignores_detail() -> None:
    assert ResolvedType.unknown("a") == ResolvedType.unknown("b")


def test_custom_aliases_extend_primitives() -> None:
    mapper = TypeMapper({"color": "integer"})
    assert mapper.resolve("?color") == N(P("integer"))


def test_custom_alias_to_unknown_primitive_is_rejected() -> None:
    with pytest.raises(ValueError):
        TypeMapper({"color": "rgb"})


def test_references_and_unknowns_are_walkable(mapper: TypeMapper) -> None:
    resolved = mapper.resolve("?array of user object")
    assert list(resolved.references()) == ["User"]
    assert list(resolved.unknowns()) == []
    assert resolved.is_nullable
    assert str(resolved) == "Nullable(ArrayOf(Reference(User)))"
