"""Terminal-safe output and the LineLens output log.

Detects terminal encoding and swaps the Unicode icons LineLens prints for ASCII
on terminals that cannot render them. OutputLog keeps a timestamped trail of
errors and retries (the equivalent of an editor's output panel).
"""
import sys
import locale
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional


# Unicode to ASCII icon mapping for non-UTF-8 terminals
ICON_MAP = {
    # Status icons
    '✓': '[OK]',
    '✅': '[OK]',
    '✗': '[FAIL]',
    '❌': '[FAIL]',
    '⚠️': '[WARN]',
    '⚠': '[WARN]',

    # Relationship markers
    '🎯': '[target]',
    '🔗': '[related]',
    '💡': '[explain]',
    '🕘': '[history]',

    # Arrows and punctuation
    '→': '->',
    '←': '<-',
    '…': '...',
    '•': '*',
    '─': '-',
    '│': '|',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except Exception:
        pass

    return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding() in ('utf-8', 'utf8', 'utf_8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text
    return replace_icons(text)


def replace_icons(text: str) -> str:
    """Swap every icon in ICON_MAP for its ASCII form, whatever the terminal."""
    for unicode_char, ascii_replacement in ICON_MAP.items():
        text = text.replace(unicode_char, ascii_replacement)
    return text


def create_safe_print() -> Callable:
    """Create a print function that automatically sanitizes output."""
    def safe_print(*args, **kwargs):
        sanitized_args = [
            sanitize_for_terminal(arg) if isinstance(arg, str) else arg
            for arg in args
        ]
        print(*sanitized_args, **kwargs)

    return safe_print


safe_print = create_safe_print()


class OutputLog:
    """Timestamped, append-only log of errors, retries and pipeline events.

    Lines are kept in memory; when a log file is given they are also appended
    to it.
    """

    def __init__(self, log_path: Optional[str | Path] = None, echo: bool = False):
        """Initialize the output log.

        Args:
            log_path: Optional file to append every line to
            echo: Also print each line through safe_print
        """
        self.log_path = Path(log_path) if log_path else None
        self.echo = echo
        self._lines: List[str] = []

    def append_line(self, message: str) -> None:
        """Record one line prefixed with an ISO timestamp."""
        line = f"[{datetime.now().isoformat()}] {message}"
        self._lines.append(line)

        if self.echo:
            safe_print(line)

        if self.log_path is not None:
            try:
                with open(self.log_path, 'a', encoding='utf-8') as f:
                    f.write(line + '\n')
            except (IOError, OSError) as e:
                safe_print(f"[OutputLog] Warning: Failed to write {self.log_path}: {e}")

    @property
    def lines(self) -> List[str]:
        """Copy of every line recorded so far."""
        return list(self._lines)

    def clear(self) -> None:
        self._lines.clear()
