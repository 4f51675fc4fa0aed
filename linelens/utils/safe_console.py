"""Rich console for LineLens output: related-line tables, explanations, errors.

The CLI, the explanation view and the error reporter all print through one
SafeConsole. On a terminal that cannot encode UTF-8 the status icons
(``✓``, ``✗``, ``🎯``, ``🔗`` ...) are swapped for the ASCII forms in
``logger.ICON_MAP`` and the spinner falls back to plain characters.
"""
from typing import Any, Optional

from rich.console import Console

from .logger import is_utf8_capable, replace_icons


class SafeConsole(Console):
    """Console whose printed strings never carry icons the terminal cannot show."""

    def __init__(self, *args, ascii_only: Optional[bool] = None, **kwargs):
        """Initialize console.

        Args:
            ascii_only: Force (True) or disable (False) icon replacement;
                by default it follows the terminal encoding
            *args, **kwargs: Passed through to rich's Console
        """
        self.ascii_only = not is_utf8_capable() if ascii_only is None else ascii_only

        if self.ascii_only:
            kwargs.setdefault('legacy_windows', True)

        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        if self.ascii_only:
            objects = tuple(replace_icons(obj) if isinstance(obj, str) else obj for obj in objects)
        super().print(*objects, **kwargs)

    def status(self, *args, **kwargs):
        # "line" spins through - \ | /
        if self.ascii_only:
            kwargs['spinner'] = 'line'
        return super().status(*args, **kwargs)
