"""Per-document highlight state.

One DocumentSession per open document, keyed by the document's uri. Sessions
live until they are closed explicitly; nothing is torn down implicitly.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional


@dataclass
class DocumentSession:
    """Highlight state for a single document."""
    uri: str
    selected_lines: List[int] = field(default_factory=list)
    related_lines: List[int] = field(default_factory=list)
    last_selection_key: Optional[str] = None

    def highlight(self, selected_lines: Iterable[int], related_lines: Iterable[int]) -> None:
        """Replace the highlight. Selected lines are never also listed as related."""
        self.selected_lines = sorted(set(selected_lines))
        selected = set(self.selected_lines)
        self.related_lines = sorted(set(related_lines) - selected)

    def clear_highlights(self) -> None:
        self.selected_lines = []
        self.related_lines = []

    def reset(self) -> None:
        """Forget highlights and the last selection, e.g. after the document changed."""
        self.clear_highlights()
        self.last_selection_key = None

    @property
    def has_highlights(self) -> bool:
        return bool(self.selected_lines or self.related_lines)

    @property
    def highlighted_lines(self) -> List[int]:
        return sorted(set(self.selected_lines) | set(self.related_lines))


class SessionRegistry:
    """Explicit registry of document sessions keyed by uri."""

    def __init__(self):
        self._sessions: Dict[str, DocumentSession] = {}

    def open(self, document) -> DocumentSession:
        """Get the session for a document, creating it on first use."""
        session = self._sessions.get(document.uri)
        if session is None:
            session = DocumentSession(uri=document.uri)
            self._sessions[document.uri] = session
        return session

    def get(self, uri: str) -> Optional[DocumentSession]:
        return self._sessions.get(uri)

    def close(self, uri: str) -> bool:
        """Tear down a session.

        Returns:
            True if a session was open for that uri
        """
        session = self._sessions.pop(uri, None)
        if session is None:
            return False
        session.reset()
        return True

    def close_all(self) -> None:
        for uri in list(self._sessions):
            self.close(uri)

    def __contains__(self, uri: str) -> bool:
        return uri in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
