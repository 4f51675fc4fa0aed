"""Turns selections into highlighted lines, one document session at a time."""
from typing import List, Optional, Set

from .analyzer.document import Selection
from .session import SessionRegistry

SKIPPED_LANGUAGES = frozenset({
    'plaintext',
    'log',
    'output',
    'git-commit',
    'git-rebase',
    'diff',
})


def selection_key(document, selection: Selection) -> str:
    return f"{document.uri}:{selection.start_line}:{selection.end_line}"


class SelectionHandler:
    """Computes and records the lines to highlight for a selection.

    A single-line selection highlights that line plus its related lines. A
    multi-line selection highlights every selected line plus the related
    lines of each of them.
    """

    def __init__(self, code_analysis, sessions: Optional[SessionRegistry] = None,
                 integration=None):
        """Initialize selection handler.

        Args:
            code_analysis: CodeAnalysisService
            sessions: Registry the highlights are recorded in
            integration: IntegrationService used by explain_selection
        """
        self.code_analysis = code_analysis
        self.sessions = sessions if sessions is not None else SessionRegistry()
        self.integration = integration

    @staticmethod
    def should_skip_language(language_id: str) -> bool:
        return language_id in SKIPPED_LANGUAGES

    def should_process(self, document, selection: Selection) -> bool:
        """Whether a selection is worth analyzing.

        Skips non-code documents and a selection identical to the last one
        processed for the same document. Accepting a selection records it as
        the last one.
        """
        if self.should_skip_language(document.language_id):
            return False

        session = self.sessions.open(document)
        key = selection_key(document, selection)
        if key == session.last_selection_key:
            return False

        session.last_selection_key = key
        return True

    def handle_selection(self, document, selection: Selection) -> Optional[List[int]]:
        """Highlight a selection and its related lines.

        Returns:
            Sorted highlighted lines, or None if the selection was skipped
        """
        if not self.should_process(document, selection):
            return None

        return self.highlight(document, selection)

    def highlight(self, document, selection: Selection) -> List[int]:
        """Compute and record the highlight for a selection, without skip checks."""
        start_line = min(selection.start_line, selection.end_line)
        end_line = max(selection.start_line, selection.end_line)

        selected = list(range(start_line, end_line + 1))
        related: Set[int] = set()
        for line in selected:
            related.update(self.code_analysis.find_related_lines(document, line))

        session = self.sessions.open(document)
        session.highlight(selected, related)
        return session.highlighted_lines

    def explain_selection(self, document, selection: Selection):
        """Highlight a selection, then run the explanation pipeline on it.

        Returns:
            ProcessResult from the integration service

        Raises:
            RuntimeError: If no integration service was given
        """
        if self.integration is None:
            raise RuntimeError("SelectionHandler has no integration service")

        self.integration.view.show_loading()
        self.highlight(document, selection)
        return self.integration.process_code_explanation(document, selection)

    def on_document_changed(self, document) -> None:
        """Drop stale highlights so the next selection is analyzed again."""
        session = self.sessions.get(document.uri)
        if session is not None:
            session.reset()

    def clear_highlights(self, document) -> None:
        session = self.sessions.get(document.uri)
        if session is not None:
            session.clear_highlights()
