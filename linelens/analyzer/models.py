"""Data produced by the code-relationship analyzer."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class RelationshipType(str, Enum):
    """Category of the finder that judged a line related."""
    VARIABLE = 'variable'
    FUNCTION = 'function'
    CONTROL_FLOW = 'control_flow'
    IMPORT_DEPENDENCY = 'import_dependency'
    CLASS_MEMBER = 'class_member'


@dataclass(frozen=True)
class BlockBoundary:
    """Line pair delimiting a brace-scoped block. close_line >= open_line."""
    open_line: int
    close_line: int

    def contains(self, line: int) -> bool:
        return self.open_line <= line <= self.close_line

    def inner_lines(self) -> range:
        """Lines strictly between the opening and closing lines."""
        return range(self.open_line + 1, self.close_line)


@dataclass
class CodeContext:
    """Context handed to the explanation model alongside the code snippet."""
    language: str
    function_name: Optional[str] = None
    class_name: Optional[str] = None
    variables: List[str] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'language': self.language,
            'function_name': self.function_name,
            'class_name': self.class_name,
            'variables': list(self.variables),
            'imports': list(self.imports),
        }


@dataclass
class CodeAnalysisResult:
    """Outcome of analyzing one selection."""
    selected_line: str
    related_line_numbers: List[int]
    related_lines: List[str]
    context: CodeContext
