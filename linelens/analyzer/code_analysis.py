"""Code-relationship analysis: composes the five finders into one result.

Two error policies coexist here on purpose:
- find_related_lines is best effort. A finder that raises is logged and
  skipped, and the caller still gets the target line plus whatever the other
  finders produced.
- analyze_code_selection is strict. Any failure, including while building
  the CodeContext, is raised as a single AnalysisError for the selection's
  start line, and no partial result is returned.
"""
from typing import Dict, List, Optional, Sequence

from ..errors import AnalysisError
from ..utils.logger import OutputLog, safe_print
from .boundary import find_containing_class, find_containing_function
from .class_member import ClassMemberRelationshipFinder
from .control_flow import ControlFlowRelationshipFinder
from .document import Selection
from .function_finder import FunctionRelationshipFinder
from .import_finder import ImportRelationshipFinder
from .models import CodeAnalysisResult, CodeContext, RelationshipType
from .variable_finder import VariableRelationshipFinder
from . import patterns

# Lines above and below the target searched for variable declarations
CONTEXT_RADIUS = 5
# Only the head of a file is searched for import statements
CONTEXT_IMPORT_LIMIT = 50


def default_finders() -> list:
    """The five finders in the order their results are merged."""
    return [
        VariableRelationshipFinder(),
        FunctionRelationshipFinder(),
        ControlFlowRelationshipFinder(),
        ImportRelationshipFinder(),
        ClassMemberRelationshipFinder(),
    ]


class CodeAnalysisService:
    """Finds lines related to a target line and the context around it."""

    def __init__(self, finders: Optional[Sequence] = None,
                 output_log: Optional[OutputLog] = None):
        """Initialize analysis service.

        Args:
            finders: Finder objects exposing ``find(document, line) -> set``
                and ``relationship_type`` (defaults to all five)
            output_log: Optional log that also receives finder warnings
        """
        self.finders = list(finders) if finders is not None else default_finders()
        self.output_log = output_log

    def analyze_code_selection(self, document, selection: Selection) -> CodeAnalysisResult:
        """Analyze the line a selection starts on.

        Args:
            document: Line-indexed document
            selection: Selection whose start_line anchors the analysis

        Returns:
            CodeAnalysisResult with the selected line, related lines and context

        Raises:
            AnalysisError: If anything fails; line_number is selection.start_line
        """
        try:
            selected_line = document.line_at(selection.start_line).text
            related_line_numbers = self.find_related_lines(document, selection.start_line)
            related_lines = [document.line_at(n).text for n in related_line_numbers]
            context = self.build_code_context(document, selection.start_line)
        except Exception as e:
            raise AnalysisError(
                f"Failed to analyze code selection: {e}",
                selection.start_line,
            ) from e

        return CodeAnalysisResult(
            selected_line=selected_line,
            related_line_numbers=related_line_numbers,
            related_lines=related_lines,
            context=context,
        )

    def find_related_lines(self, document, target_line: int) -> List[int]:
        """Union of every finder's result, plus the target line, sorted ascending.

        Raises:
            IndexError: If target_line is not a line of the document
        """
        # Validates the target before any finder runs
        document.line_at(target_line)
        related = {target_line}

        for finder in self.finders:
            try:
                related.update(finder.find(document, target_line))
            except Exception as e:
                self._warn_finder_failure(finder, target_line, e)

        return sorted(related)

    def categorize_related_lines(self, document, target_line: int) -> Dict[int, List[RelationshipType]]:
        """Which finder categories reported each related line.

        Same finders and same fail-open policy as find_related_lines. The target
        line only appears if a finder reported it too.
        """
        document.line_at(target_line)
        categories: Dict[int, List[RelationshipType]] = {}

        for finder in self.finders:
            try:
                lines = finder.find(document, target_line)
            except Exception as e:
                self._warn_finder_failure(finder, target_line, e)
                continue

            for line in lines:
                categories.setdefault(line, []).append(finder.relationship_type)

        return dict(sorted(categories.items()))

    def build_code_context(self, document, target_line: int) -> CodeContext:
        """Collect the context sent to the model with the code snippet."""
        variables: List[str] = []
        start_line = max(0, target_line - CONTEXT_RADIUS)
        end_line = min(document.line_count - 1, target_line + CONTEXT_RADIUS)

        for i in range(start_line, end_line + 1):
            for name in patterns.extract_declared_names(document.line_at(i).text):
                if name not in variables:
                    variables.append(name)

        imports = [
            document.line_at(i).text.strip()
            for i in range(min(CONTEXT_IMPORT_LIMIT, document.line_count))
            if patterns.is_import_statement(document.line_at(i).text)
        ]

        return CodeContext(
            language=document.language_id,
            function_name=find_containing_function(document, target_line),
            class_name=find_containing_class(document, target_line),
            variables=variables,
            imports=imports,
        )

    def _warn_finder_failure(self, finder, target_line: int, error: Exception) -> None:
        category = getattr(getattr(finder, 'relationship_type', None), 'value', type(finder).__name__)
        message = f"Error finding relationships for line {target_line} ({category}): {error}"
        safe_print(f"[CodeAnalysis] Warning: {message}")
        if self.output_log is not None:
            self.output_log.append_line(f"Analysis Warning: {message}")
