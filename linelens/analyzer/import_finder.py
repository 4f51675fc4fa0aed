"""Import/export relationships: identifiers on the target line to their bindings."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, Set

from .models import RelationshipType
from . import patterns

# Only the head of a file is searched for import statements
IMPORT_SCAN_LIMIT = 100


@dataclass
class ImportIndex:
    """Local binding name -> line number, one map per import syntax."""
    named: Dict[str, int] = field(default_factory=dict)
    default: Dict[str, int] = field(default_factory=dict)
    namespace: Dict[str, int] = field(default_factory=dict)
    require: Dict[str, int] = field(default_factory=dict)

    def lines_for(self, name: str) -> Set[int]:
        return {
            bucket[name]
            for bucket in (self.named, self.default, self.namespace, self.require)
            if name in bucket
        }


class ImportRelationshipFinder:
    """Links identifiers on the target line to the import that binds them.

    Identifiers are PascalCase tokens plus lower-case names in call, property
    or index position. Re-export lines (``export {`` / ``export *``) anywhere in
    the file are matched by substring, which is deliberately looser than the
    exact binding lookup.
    """

    relationship_type = RelationshipType.IMPORT_DEPENDENCY

    def find(self, document, target_line: int) -> Set[int]:
        return self.find_for_text(document, document.line_at(target_line).text)

    def find_for_text(self, document, target_text: str) -> Set[int]:
        identifiers = patterns.extract_import_candidates(target_text)
        if not identifiers:
            return set()

        index = self.categorize_imports(document)
        related: Set[int] = set()

        for identifier in identifiers:
            related.update(index.lines_for(identifier))

        related.update(self._find_reexports(document, identifiers))
        return related

    def categorize_imports(self, document) -> ImportIndex:
        """Sort the import lines at the head of a document by syntax shape.

        Handles:
        - import { a, b as c } from 'mod'   (named; ``c`` is the binding)
        - import x from 'mod'               (default)
        - import * as ns from 'mod'         (namespace)
        - const x = require('mod')          (CommonJS)
        """
        index = ImportIndex()

        for i in range(min(IMPORT_SCAN_LIMIT, document.line_count)):
            line_text = document.line_at(i).text

            named_match = patterns.NAMED_IMPORT_RE.search(line_text)
            if named_match:
                for specifier in named_match.group(1).split(','):
                    local_name = self._local_name(specifier)
                    if local_name:
                        index.named[local_name] = i

            default_match = patterns.DEFAULT_IMPORT_RE.search(line_text)
            if default_match:
                index.default[default_match.group(1)] = i

            namespace_match = patterns.NAMESPACE_IMPORT_RE.search(line_text)
            if namespace_match:
                index.namespace[namespace_match.group(1)] = i

            require_match = patterns.REQUIRE_IMPORT_RE.search(line_text)
            if require_match:
                index.require[require_match.group(1)] = i

        return index

    @staticmethod
    def _local_name(specifier: str) -> str:
        """``useState`` -> ``useState``; ``useState as useLocal`` -> ``useLocal``.

        A TypeScript ``type`` modifier (``type Props``) is dropped.
        """
        parts = specifier.split()
        if len(parts) > 1 and parts[0] == 'type':
            parts = parts[1:]
        if len(parts) == 3 and parts[1] == 'as':
            return parts[2]
        return ' '.join(parts)

    def _find_reexports(self, document, identifiers: Iterable[str]) -> Set[int]:
        identifiers = list(identifiers)
        related: Set[int] = set()

        for i in range(document.line_count):
            line_text = document.line_at(i).text
            if not patterns.REEXPORT_RE.search(line_text):
                continue

            if any(identifier in line_text for identifier in identifiers):
                related.add(i)

        return related
