"""Class-member relationships: ``this.x`` / ``self.x`` to the class body."""
from typing import Set

from .boundary import find_class_boundary, find_constructor, find_containing_class
from .models import RelationshipType
from . import patterns


class ClassMemberRelationshipFinder:
    """Searches the enclosing class body for members named on the target line.

    The enclosing class is the nearest ``class``/``interface``/``type`` header
    above the target line, with no nesting awareness. Its declaration line and
    constructor are always included once the class body is found.
    """

    relationship_type = RelationshipType.CLASS_MEMBER

    def find(self, document, target_line: int) -> Set[int]:
        return self.find_for_text(document, target_line, document.line_at(target_line).text)

    def find_for_text(self, document, target_line: int, target_text: str) -> Set[int]:
        class_name = find_containing_class(document, target_line)
        if not class_name:
            return set()

        boundary = find_class_boundary(document, class_name)
        if boundary is None:
            return set()

        related: Set[int] = set()
        member_names = patterns.extract_member_names(target_text)

        if member_names:
            member_patterns = [
                pattern
                for name in member_names
                for pattern in patterns.member_patterns(name)
            ]

            for i in range(boundary.open_line, boundary.close_line + 1):
                if i == target_line:
                    continue

                line_text = document.line_at(i).text
                if any(pattern.search(line_text) for pattern in member_patterns):
                    related.add(i)

        related.add(boundary.open_line)
        constructor_line = find_constructor(document, boundary)
        if constructor_line is not None:
            related.add(constructor_line)

        return related
