"""Markdown parsing for documentation field tables."""

from .tables import (
    ParsedDocument,
    ParsedTable,
    TableParser,
    render_table,
)

__all__ = [
    "ParsedDocument",
    "ParsedTable",
    "TableParser",
    "render_table",
]
