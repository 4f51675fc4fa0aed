"""Read-only, line-indexed source documents and selections."""
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence


def split_lines(text: str) -> List[str]:
    """Split on \\n, \\r\\n and \\r only; a final terminator does not start a new line."""
    lines = text.replace('\r\n', '\n').replace('\r', '\n').split('\n')
    if lines[-1] == '':
        lines.pop()
    return lines


@dataclass(frozen=True)
class TextLine:
    """One line of a document, without its line terminator."""
    text: str
    line_number: int


@dataclass(frozen=True)
class Selection:
    """A (start_line, end_line) pair of 0-based line indices."""
    start_line: int
    end_line: int

    @classmethod
    def single_line(cls, line: int) -> 'Selection':
        return cls(line, line)


class TextDocument:
    """Immutable, 0-indexed sequence of text lines.

    This is the whole surface the analyzer relies on: ``line_count``,
    ``line_at(index).text`` and ``language_id``. Any object exposing the same
    attributes can be analyzed.
    """

    SUPPORTED_LANGUAGES = {
        '.py': 'python',
        '.js': 'javascript',
        '.jsx': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.ts': 'typescript',
        '.tsx': 'typescript',
        '.java': 'java',
        '.c': 'c',
        '.h': 'c',
        '.cpp': 'cpp',
        '.cc': 'cpp',
        '.hpp': 'cpp',
        '.cs': 'csharp',
        '.go': 'go',
        '.rs': 'rust',
        '.php': 'php',
        '.rb': 'ruby',
    }

    def __init__(self, lines: Sequence[str], language_id: str = 'plaintext',
                 uri: str = 'untitled'):
        """Initialize document.

        Args:
            lines: Line texts, without terminators
            language_id: Language tag copied verbatim into CodeContext
            uri: Stable identifier used to key editor sessions
        """
        self._lines: List[str] = list(lines)
        self.language_id = language_id
        self.uri = uri

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_at(self, index: int) -> TextLine:
        """Get the line at a 0-based index.

        Raises:
            IndexError: If index is outside 0 <= index < line_count
        """
        if index < 0 or index >= len(self._lines):
            raise IndexError(
                f"Illegal value for line: {index} (document has {len(self._lines)} lines)"
            )
        return TextLine(self._lines[index], index)

    def get_text(self) -> str:
        return '\n'.join(self._lines)

    @classmethod
    def from_lines(cls, lines: Sequence[str], language_id: str = 'plaintext',
                   uri: str = 'untitled') -> 'TextDocument':
        return cls(lines, language_id=language_id, uri=uri)

    @classmethod
    def from_text(cls, text: str, language_id: str = 'plaintext',
                  uri: str = 'untitled') -> 'TextDocument':
        return cls(split_lines(text), language_id=language_id, uri=uri)

    @classmethod
    def from_file(cls, file_path: str | Path) -> 'TextDocument':
        """Load a document from disk, detecting its language from the extension.

        Args:
            file_path: Path to the source file

        Returns:
            TextDocument whose uri is the resolved file path

        Raises:
            FileNotFoundError: If the file does not exist
            UnicodeDecodeError: If the file is not valid UTF-8
        """
        file_path = Path(file_path)
        text = file_path.read_text(encoding='utf-8')
        return cls(
            split_lines(text),
            language_id=cls.language_from_extension(file_path),
            uri=str(file_path.resolve()),
        )

    @classmethod
    def language_from_extension(cls, file_path: str | Path) -> str:
        """Map a file extension to a language id, 'plaintext' if unknown."""
        return cls.SUPPORTED_LANGUAGES.get(Path(file_path).suffix.lower(), 'plaintext')
