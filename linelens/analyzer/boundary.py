"""Brace-matching block boundaries and backward scope lookups.

The resolver counts literal ``{`` and ``}`` characters; braces inside strings
or comments are counted too. It never fails: a block whose closing brace is
missing runs to the end of the document.
"""
from typing import Optional

from .models import BlockBoundary
from . import patterns


def resolve_boundary(document, start_line: int, start_column: int = 0) -> BlockBoundary:
    """Find the line closing the brace block opened on ``start_line``.

    Args:
        document: Line-indexed document (``line_count``, ``line_at``)
        start_line: Line the block header is on
        start_column: Ignore characters before this column on the start line,
            so ``} else {`` can be resolved from its ``else``

    Returns:
        BlockBoundary(start_line, close_line). close_line is the first line
        where the running depth returns to 0 after having been positive, or
        the last line of the document if that never happens.
    """
    depth = 0
    found_open_brace = False

    for i in range(start_line, document.line_count):
        text = document.line_at(i).text
        if i == start_line:
            text = text[start_column:]

        for char in text:
            if char == '{':
                depth += 1
                found_open_brace = True
            elif char == '}':
                depth -= 1
                if found_open_brace and depth == 0:
                    return BlockBoundary(start_line, i)

    return BlockBoundary(start_line, max(start_line, document.line_count - 1))


def find_containing_function(document, target_line: int) -> Optional[str]:
    """Name of the nearest function-defining line above ``target_line``.

    No nesting awareness: the most recent definition wins, even if its body
    already closed.
    """
    for i in range(target_line - 1, -1, -1):
        name = patterns.match_function_name(document.line_at(i).text)
        if name:
            return name
    return None


def find_containing_class(document, target_line: int) -> Optional[str]:
    """Name of the nearest ``class``/``interface``/``type`` header above ``target_line``."""
    for i in range(target_line - 1, -1, -1):
        name = patterns.match_class_name(document.line_at(i).text)
        if name:
            return name
    return None


def find_class_boundary(document, class_name: str) -> Optional[BlockBoundary]:
    """Locate ``class NAME`` (first occurrence in the file) and its body.

    Returns:
        BlockBoundary of the class, or None if no ``class NAME`` line exists
        (names found through ``interface``/``type`` headers end up here)
    """
    declaration = patterns.class_declaration_pattern(class_name)

    for i in range(document.line_count):
        if declaration.search(document.line_at(i).text):
            return resolve_boundary(document, i)

    return None


def find_constructor(document, boundary: BlockBoundary) -> Optional[int]:
    """First ``constructor(`` or ``__init__(`` line inside a class body."""
    for i in range(boundary.open_line, boundary.close_line + 1):
        if patterns.is_constructor(document.line_at(i).text):
            return i
    return None
