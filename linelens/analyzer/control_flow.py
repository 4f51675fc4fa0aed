"""Control-flow relationships: block boundaries and the statements tied to them."""
from typing import Callable, Optional, Set, Tuple

from .boundary import find_containing_function, resolve_boundary
from .models import RelationshipType
from . import patterns


class ControlFlowRelationshipFinder:
    """Dispatches on the shape of the (trimmed) target line.

    - loop header: the loop block plus every break/continue inside it
    - if/else if/else: the block plus the else branches chained after it
    - try/catch/finally: the block plus its handlers
    - switch: the block plus its case/default labels; a case label resolves
      its switch first
    - break/continue: the nearest loop header above, with its relationships
    - return: the definition line of the enclosing function
    - any other statement inside a try block: that try with its handlers
    """

    relationship_type = RelationshipType.CONTROL_FLOW

    def find(self, document, target_line: int) -> Set[int]:
        related: Set[int] = set()
        text = document.line_at(target_line).text.strip()

        if patterns.is_loop_structure(text):
            self._find_loop_relationships(document, target_line, related)
        elif patterns.is_conditional_structure(text):
            self._find_conditional_relationships(document, target_line, related)
        elif patterns.is_try_catch_structure(text):
            self._find_try_catch_relationships(document, target_line, related)
        elif patterns.is_switch_structure(text):
            self._find_switch_relationships(document, target_line, related)
        elif patterns.is_break_or_continue(text):
            self._find_related_loop(document, target_line, related)
        elif patterns.is_return_statement(text):
            self._find_related_function(document, target_line, related)
        elif not patterns.is_whitespace_or_comment(text):
            self._find_enclosing_try(document, target_line, related)

        return related

    def _find_loop_relationships(self, document, loop_line: int, related: Set[int]) -> None:
        boundary = resolve_boundary(document, loop_line)
        related.update((boundary.open_line, boundary.close_line))

        for i in boundary.inner_lines():
            if patterns.is_break_or_continue(document.line_at(i).text):
                related.add(i)

    def _find_conditional_relationships(self, document, cond_line: int, related: Set[int]) -> None:
        related.add(cond_line)
        boundary = resolve_boundary(document, cond_line)
        related.add(boundary.close_line)
        self._follow_chain(document, boundary.close_line, patterns.is_else_branch, related)

    def _find_try_catch_relationships(self, document, try_line: int, related: Set[int]) -> None:
        related.add(try_line)
        boundary = resolve_boundary(document, try_line)
        related.add(boundary.close_line)

        # Handler headers on their own lines inside the block (nested tries included)
        for i in boundary.inner_lines():
            if patterns.is_catch_or_finally(document.line_at(i).text.strip()):
                related.add(i)

        self._follow_chain(document, boundary.close_line, patterns.is_catch_or_finally, related)

    def _find_switch_relationships(self, document, line: int, related: Set[int]) -> None:
        text = document.line_at(line).text

        if patterns.is_switch_header(text):
            boundary = resolve_boundary(document, line)
            related.update((boundary.open_line, boundary.close_line))

            for i in boundary.inner_lines():
                if patterns.is_case_label(document.line_at(i).text):
                    related.add(i)

        elif patterns.is_case_label(text):
            for i in range(line - 1, -1, -1):
                if patterns.is_switch_header(document.line_at(i).text):
                    self._find_switch_relationships(document, i, related)
                    break

    def _find_related_loop(self, document, break_line: int, related: Set[int]) -> None:
        for i in range(break_line - 1, -1, -1):
            if patterns.is_loop_structure(document.line_at(i).text):
                related.add(i)
                self._find_loop_relationships(document, i, related)
                break

    def _find_related_function(self, document, return_line: int, related: Set[int]) -> None:
        function_name = find_containing_function(document, return_line)
        if not function_name:
            return

        for i in range(return_line - 1, -1, -1):
            if patterns.defines_function(document.line_at(i).text, function_name):
                related.add(i)
                break

    def _find_enclosing_try(self, document, target_line: int, related: Set[int]) -> None:
        for i in range(target_line - 1, -1, -1):
            if not patterns.is_try_header(document.line_at(i).text):
                continue

            if resolve_boundary(document, i).close_line >= target_line:
                self._find_try_catch_relationships(document, i, related)
                return

    def _follow_chain(self, document, close_line: int,
                      is_continuation: Callable[[str], bool], related: Set[int]) -> None:
        """Add the branches chained after a block (``else``, ``catch``, ``finally``).

        A branch either shares the closing line (``} else {``) or is the next
        line that is not blank, a comment or a lone closing brace.
        """
        cursor = close_line
        check_inline = True

        while True:
            header = None
            if check_inline:
                header = self._inline_continuation(document.line_at(cursor).text, is_continuation)
                if header is not None:
                    header = (cursor, header)
            if header is None:
                header = self._next_continuation(document, cursor + 1, is_continuation)
            if header is None:
                return

            header_line, column = header
            related.add(header_line)
            boundary = resolve_boundary(document, header_line, column)
            related.add(boundary.close_line)

            check_inline = boundary.close_line > header_line
            cursor = boundary.close_line

    @staticmethod
    def _inline_continuation(text: str, is_continuation: Callable[[str], bool]) -> Optional[int]:
        """Column of a branch keyword following a closing brace on the same line."""
        if not text.strip().startswith('}'):
            return None

        rest = patterns.after_closing_braces(text)
        if rest and is_continuation(rest):
            return text.index(rest)
        return None

    def _next_continuation(self, document, start: int,
                           is_continuation: Callable[[str], bool]) -> Optional[Tuple[int, int]]:
        for i in range(start, document.line_count):
            text = document.line_at(i).text
            if patterns.is_whitespace_or_comment(text):
                continue

            stripped = text.strip()
            if is_continuation(stripped):
                return i, text.index(stripped)

            if stripped.startswith('}'):
                column = self._inline_continuation(text, is_continuation)
                if column is not None:
                    return i, column
                if not patterns.after_closing_braces(text):
                    continue

            return None

        return None
