"""Field-table extraction from Markdown documents."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import AMBIGUOUS_HEADING, MALFORMED_ROW, GenerationIssue, MalformedRow
from ..logging import get_logger, record_issue
from ..models import FieldRecord
from ..naming import slugify, strip_markdown, to_model_name, words

HEADER_COLUMNS = ("field", "type", "description")

_HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*?)\s*#*$")
_PIPE_SPLIT = re.compile(r"(?<!\\)\|")
_SEPARATOR_CELL = re.compile(r"^:?-+:?$")
_ANCHOR_PATTERN = re.compile(r"\s*\{#[^}]*\}")
_ANCHOR_SLUG = re.compile(r"\{#(?:[^}/]*/)?([^}]+)\}")
_ENDPOINT_PATTERN = re.compile(r"\s+%\s+.*$")
_OPTIONAL_SUFFIX = "(optional)"

# Words that describe a table rather than name the model it belongs to.
_TRAILING_WORDS = {"structure", "object", "fields"}

# Headings that only make sense qualified by their parent, such as the
# parameter tables under every endpoint.
GENERIC_HEADINGS = frozenset(
    {
        "fields",
        "form params",
        "json form params",
        "json params",
        "params",
        "parameters",
        "query string params",
        "response",
        "response body",
        "response fields",
        "response structure",
        "structure",
    }
)


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    line: int


@dataclass
class ParsedTable:
    """A field table and the model name taken from the heading that owns it."""

    model_name: str
    heading: str
    line: int
    anchor: str = ""
    records: List[FieldRecord] = field(default_factory=list)


@dataclass
class ParsedDocument:
    document: Optional[str]
    tables: List[ParsedTable] = field(default_factory=list)
    issues: List[GenerationIssue] = field(default_factory=list)


class TableParser:
    """Finds ``| Field | Type | Description |`` tables and turns rows into records."""

    def __init__(self) -> None:
        self.logger = get_logger("parser")

    def parse(self, text: str, document: str | None = None) -> ParsedDocument:
        lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        result = ParsedDocument(document=document)
        headings: List[Heading] = []
        tables_per_heading: Dict[int, int] = {}
        in_code = False
        index = 0

        while index < len(lines):
            stripped = lines[index].strip()
            if stripped.startswith("```") or stripped.startswith("~~~"):
                in_code = not in_code
                index += 1
                continue
            if in_code:
                index += 1
                continue

            heading = _match_heading(stripped, index + 1)
            if heading is not None:
                while headings and headings[-1].level >= heading.level:
                    headings.pop()
                headings.append(heading)
                index += 1
                continue

            if (
                index + 1 < len(lines)
                and is_header_row(stripped)
                and is_separator_row(lines[index + 1].strip())
            ):
                table = self._start_table(headings, index + 1, document, tables_per_heading, result)
                index = self._read_rows(lines, index + 2, table, document, result)
                result.tables.append(table)
                self.logger.debug(
                    "Parsed table %s with %d rows at line %d",
                    table.model_name,
                    len(table.records),
                    table.line,
                )
                continue

            index += 1

        return result

    def _start_table(
        self,
        headings: Sequence[Heading],
        line: int,
        document: str | None,
        tables_per_heading: Dict[int, int],
        result: ParsedDocument,
    ) -> ParsedTable:
        base_name, heading_text = model_name_for(headings, document)
        owner_line = headings[-1].line if headings else 0
        seen = tables_per_heading.get(owner_line, 0)
        tables_per_heading[owner_line] = seen + 1
        name = base_name
        if seen:
            name = f"{base_name}{seen + 1}"
            message = (
                f"heading '{heading_text}' owns more than one field table; "
                f"table at line {line} emitted as {name}"
            )
            record_issue(
                self.logger,
                result.issues,
                GenerationIssue(
                    kind=AMBIGUOUS_HEADING,
                    message=message,
                    document=document,
                    model=name,
                    line=line,
                ),
            )
        return ParsedTable(
            model_name=name, heading=heading_text, line=line, anchor=heading_anchor(headings)
        )

    def _read_rows(
        self,
        lines: Sequence[str],
        start: int,
        table: ParsedTable,
        document: str | None,
        result: ParsedDocument,
    ) -> int:
        index = start
        while index < len(lines):
            stripped = lines[index].strip()
            if not stripped or not _PIPE_SPLIT.search(stripped):
                break
            try:
                table.records.append(parse_row(stripped, index + 1))
            except MalformedRow as exc:
                record_issue(
                    self.logger,
                    result.issues,
                    GenerationIssue(
                        kind=MALFORMED_ROW,
                        message=f"skipping row: {exc.reason}",
                        document=document,
                        model=table.model_name,
                        line=exc.line,
                    ),
                )
            index += 1
        return index


def split_row(line: str) -> List[str]:
    """Split a table row on unescaped pipes, dropping the outer delimiters."""
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|") and not stripped.endswith("\\|"):
        stripped = stripped[:-1]
    return [cell.strip() for cell in _PIPE_SPLIT.split(stripped)]


def is_header_row(line: str) -> bool:
    if "|" not in line:
        return False
    cells = tuple("".join(cell.split()).lower() for cell in split_row(line))
    return cells == HEADER_COLUMNS


def is_separator_row(line: str) -> bool:
    if "|" not in line:
        return False
    cells = split_row(line)
    return len(cells) == len(HEADER_COLUMNS) and all(
        _SEPARATOR_CELL.match(cell.replace(" ", "")) for cell in cells
    )


def parse_row(line: str, number: int) -> FieldRecord:
    cells = split_row(line)
    if len(cells) != len(HEADER_COLUMNS):
        raise MalformedRow(number, f"expected 3 cells, found {len(cells)}")
    name_cell, type_cell, description = cells
    name, optional = clean_field_name(name_cell)
    if not name:
        raise MalformedRow(number, "empty field name")
    if type_cell.lower().endswith(_OPTIONAL_SUFFIX):
        optional = True
    return FieldRecord(
        name=name,
        raw_type=type_cell,
        description=description,
        optional=optional,
        raw_name=name_cell,
        line=number,
    )


def clean_field_name(cell: str) -> Tuple[str, bool]:
    """Return the wire key in a name cell and whether it is marked optional."""
    text = strip_markdown(cell)
    optional = False
    if text.lower().endswith(_OPTIONAL_SUFFIX):
        text = text[: -len(_OPTIONAL_SUFFIX)].strip()
        optional = True
    if text.startswith("?"):
        text = text[1:].strip()
        optional = True
    if text.endswith("?"):
        text = text[:-1].strip()
        optional = True
    return text, optional


def clean_heading(text: str) -> str:
    text = _ANCHOR_PATTERN.sub("", text)
    text = _ENDPOINT_PATTERN.sub("", text)
    return strip_markdown(text)


def heading_model_name(text: str) -> str:
    parts = words(clean_heading(text))
    while len(parts) > 1 and parts[-1].lower() in _TRAILING_WORDS:
        parts.pop()
    return to_model_name(" ".join(parts))


def is_generic_heading(text: str) -> bool:
    return " ".join(words(clean_heading(text))).lower() in GENERIC_HEADINGS


def model_name_for(headings: Sequence[Heading], document: str | None) -> Tuple[str, str]:
    """Name the model owned by the nearest heading, qualifying generic ones."""
    if not headings:
        stem = PurePosixPath(document).stem if document else "Model"
        return to_model_name(stem) or "Model", ""
    owner = headings[-1]
    name = heading_model_name(owner.text)
    if is_generic_heading(owner.text) and len(headings) > 1:
        name = heading_model_name(headings[-2].text) + name
    return name or "Model", clean_heading(owner.text)


def heading_anchor(headings: Sequence[Heading]) -> str:
    """Return the link anchor of the closest heading that declares one.

    Discord headings carry explicit anchors such as
    `{#DOCS_RESOURCES_CHANNEL/message-object}`; structure headings below them
    usually do not, so the search walks up the stack before falling back to a
    slug of the owning heading.
    """
    for heading in reversed(headings):
        match = _ANCHOR_SLUG.search(heading.text)
        if match:
            return match.group(1).strip()
    return slugify(clean_heading(headings[-1].text)) if headings else ""


def render_table(records: Iterable[FieldRecord]) -> str:
    """Serialise records back into a pipe table."""
    lines = ["| Field | Type | Description |", "| --- | --- | --- |"]
    for record in records:
        lines.append(f"| {record.name_cell} | {record.raw_type} | {record.description} |")
    return "\n".join(lines) + "\n"


def _match_heading(line: str, number: int) -> Heading | None:
    match = _HEADING_PATTERN.match(line)
    if not match:
        return None
    return Heading(level=len(match.group(1)), text=match.group(2), line=number)


__all__ = [
    "GENERIC_HEADINGS",
    "HEADER_COLUMNS",
    "Heading",
    "ParsedDocument",
    "ParsedTable",
    "TableParser",
    "clean_field_name",
    "heading_anchor",
    "heading_model_name",
    "model_name_for",
    "parse_row",
    "render_table",
    "split_row",
]
