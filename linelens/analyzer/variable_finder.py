"""Variable relationships: every line mentioning a name used on the target line."""
from typing import Set

from .models import RelationshipType
from . import patterns


class VariableRelationshipFinder:
    """Matches identifiers from the target line against every other line.

    Names come from the target line: declared, assigned, called, dereferenced
    or indexed names, plus bare operands inside parentheses. A line is
    related when any name occurs in it as a whole word. There is no scope
    awareness, so a reused name in an unrelated function is reported as well.
    """

    relationship_type = RelationshipType.VARIABLE

    def find(self, document, target_line: int) -> Set[int]:
        target_text = document.line_at(target_line).text
        names = patterns.extract_variable_names(target_text)
        if not names:
            return set()

        name_patterns = [patterns.word_pattern(name) for name in names]
        related: Set[int] = set()

        for i in range(document.line_count):
            if i == target_line:
                continue

            line_text = document.line_at(i).text
            if any(pattern.search(line_text) for pattern in name_patterns):
                related.add(i)

        return related
