"""Explanation history persisted as JSON."""
import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from ..utils.logger import safe_print

MAX_HISTORY_ITEMS = 10
SUMMARY_SNIPPET_LENGTH = 100


@dataclass
class HistoryItem:
    """One explanation shown to the user."""
    explanation: str
    code_snippet: str
    language: str
    timestamp: str

    def summary(self, index: int) -> Dict:
        """Abbreviated form used when listing the history."""
        snippet = self.code_snippet[:SUMMARY_SNIPPET_LENGTH]
        if len(self.code_snippet) > SUMMARY_SNIPPET_LENGTH:
            snippet += '...'
        return {
            "index": index,
            "timestamp": self.timestamp,
            "code_snippet": snippet,
            "language": self.language,
        }


class ExplanationHistory:
    """Newest-first list of recent explanations, capped at MAX_HISTORY_ITEMS.

    When a path is given, every change is written back to it atomically and
    the existing file is loaded on construction.
    """

    def __init__(self, history_path: Optional[str | Path] = None,
                 max_items: int = MAX_HISTORY_ITEMS):
        """Initialize history.

        Args:
            history_path: JSON file backing the history (in-memory only if None)
            max_items: Maximum number of entries kept
        """
        self.history_path = Path(history_path) if history_path else None
        self.max_items = max_items
        self._items: List[HistoryItem] = self._read_history()

    def add(self, explanation: str, code_snippet: str, language: str) -> HistoryItem:
        """Record an explanation at the front of the history.

        Args:
            explanation: Explanation text
            code_snippet: Snippet that was explained
            language: Language id of the snippet

        Returns:
            The new entry
        """
        item = HistoryItem(
            explanation=explanation,
            code_snippet=code_snippet,
            language=language,
            timestamp=datetime.now().isoformat(),
        )

        self._items.insert(0, item)
        del self._items[self.max_items:]
        self._write_history()
        return item

    def get(self, index: int) -> HistoryItem:
        """Get an entry by position (0 is the newest).

        Raises:
            IndexError: If index is out of range
        """
        if index < 0 or index >= len(self._items):
            raise IndexError(f"No history item at index {index} ({len(self._items)} items)")
        return self._items[index]

    @property
    def items(self) -> List[HistoryItem]:
        return list(self._items)

    def summaries(self) -> List[Dict]:
        return [item.summary(i) for i, item in enumerate(self._items)]

    def clear(self) -> None:
        self._items = []
        self._write_history()

    def __len__(self) -> int:
        return len(self._items)

    def _read_history(self) -> List[HistoryItem]:
        """Read history from disk.

        Returns:
            Entries from the file, or an empty list if it is missing or unreadable
        """
        if self.history_path is None or not self.history_path.exists():
            return []

        try:
            with open(self.history_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            items = [HistoryItem(**entry) for entry in data.get("history", [])]
        except (IOError, json.JSONDecodeError, TypeError, AttributeError) as e:
            safe_print(f"[History] Warning: Ignoring unreadable history file {self.history_path}: {e}")
            return []

        return items[:self.max_items]

    def _write_history(self) -> None:
        """Write history to disk atomically."""
        if self.history_path is None:
            return

        data = {
            "version": "1.0",
            "history": [asdict(item) for item in self._items],
        }

        self.history_path.parent.mkdir(parents=True, exist_ok=True)

        # Write to temp file first for atomic operation
        temp_path = self.history_path.with_suffix('.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        temp_path.replace(self.history_path)
