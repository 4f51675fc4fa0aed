"""Function relationships: calls on the target line to their definitions."""
from typing import List, Pattern, Set

from .models import RelationshipType
from . import patterns


class FunctionRelationshipFinder:
    """Resolves call-shaped names on the target line to definition lines.

    Built-ins and keywords (``console``, ``Math``, ``if``...) are skipped. A
    definition is any line matching one of the five shapes:
    ``function NAME(``, ``const NAME = function``, ``const NAME = (``,
    ``NAME: function`` and ``NAME(...) =>``.
    """

    relationship_type = RelationshipType.FUNCTION

    def find(self, document, target_line: int) -> Set[int]:
        target_text = document.line_at(target_line).text
        definition_patterns: List[Pattern] = []

        for name in patterns.extract_call_names(target_text):
            if patterns.is_builtin_function(name):
                continue
            definition_patterns.extend(patterns.function_definition_patterns(name))

        if not definition_patterns:
            return set()

        related: Set[int] = set()
        for i in range(document.line_count):
            if i == target_line:
                continue

            line_text = document.line_at(i).text
            if any(pattern.search(line_text) for pattern in definition_patterns):
                related.add(i)

        return related
