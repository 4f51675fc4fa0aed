"""Tests for document sessions and selection handling."""
import pytest

from linelens.analyzer.code_analysis import CodeAnalysisService
from linelens.analyzer.document import Selection
from linelens.selection import SelectionHandler, selection_key
from linelens.session import DocumentSession, SessionRegistry

LINES = ["const x = 1;", "let y = 2;", "console.log(x + y);"]


@pytest.fixture
def handler():
    return SelectionHandler(CodeAnalysisService())


class TestDocumentSession:
    def test_selected_lines_are_not_related(self):
        session = DocumentSession(uri='memory://a.ts')
        session.highlight([2], [0, 1, 2])

        assert session.selected_lines == [2]
        assert session.related_lines == [0, 1]
        assert session.highlighted_lines == [0, 1, 2]

    def test_reset(self):
        session = DocumentSession(uri='memory://a.ts', last_selection_key='k')
        session.highlight([1], [3])
        session.reset()

        assert not session.has_highlights
        assert session.last_selection_key is None


class TestSessionRegistry:
    def test_open_is_idempotent_per_uri(self, make_document):
        registry = SessionRegistry()
        doc = make_document(LINES)

        assert registry.open(doc) is registry.open(doc)
        assert len(registry) == 1
        assert doc.uri in registry

    def test_close(self, make_document):
        registry = SessionRegistry()
        doc = make_document(LINES)
        registry.open(doc).highlight([0], [2])

        assert registry.close(doc.uri)
        assert not registry.close(doc.uri), "Closing twice should report nothing to close"
        assert registry.get(doc.uri) is None

    def test_close_all(self, make_document):
        registry = SessionRegistry()
        registry.open(make_document(LINES, uri='memory://a.ts'))
        registry.open(make_document(LINES, uri='memory://b.ts'))

        registry.close_all()
        assert len(registry) == 0


class TestSelectionHandler:
    def test_single_line_selection(self, handler, make_document):
        doc = make_document(LINES)

        assert handler.handle_selection(doc, Selection(2, 2)) == [0, 1, 2]

        session = handler.sessions.get(doc.uri)
        assert session.selected_lines == [2]
        assert session.related_lines == [0, 1]

    def test_multi_line_selection(self, handler, make_document):
        doc = make_document(LINES)

        assert handler.handle_selection(doc, Selection(0, 1)) == [0, 1, 2]
        assert handler.sessions.get(doc.uri).selected_lines == [0, 1]

    def test_reversed_selection(self, handler, make_document):
        doc = make_document(LINES)
        assert handler.highlight(doc, Selection(1, 0)) == handler.highlight(doc, Selection(0, 1))

    def test_repeated_selection_is_skipped(self, handler, make_document):
        doc = make_document(LINES)

        assert handler.handle_selection(doc, Selection(2, 2)) is not None
        assert handler.handle_selection(doc, Selection(2, 2)) is None
        assert handler.handle_selection(doc, Selection(1, 1)) is not None

    def test_document_change_allows_reanalysis(self, handler, make_document):
        doc = make_document(LINES)
        handler.handle_selection(doc, Selection(2, 2))

        handler.on_document_changed(doc)

        assert not handler.sessions.get(doc.uri).has_highlights
        assert handler.handle_selection(doc, Selection(2, 2)) == [0, 1, 2]

    def test_plaintext_is_skipped(self, handler, make_document):
        doc = make_document(["just some notes"], language_id='plaintext', uri='memory://notes.txt')

        assert handler.handle_selection(doc, Selection(0, 0)) is None
        assert doc.uri not in handler.sessions

    def test_clear_highlights(self, handler, make_document):
        doc = make_document(LINES)
        handler.handle_selection(doc, Selection(2, 2))

        handler.clear_highlights(doc)

        session = handler.sessions.get(doc.uri)
        assert not session.has_highlights
        assert session.last_selection_key == selection_key(doc, Selection(2, 2))

    def test_explain_requires_integration(self, handler, make_document):
        with pytest.raises(RuntimeError):
            handler.explain_selection(make_document(LINES), Selection(2, 2))

    def test_explain_selection(self, make_document):
        events = []

        class View:
            def show_loading(self):
                events.append('loading')

        class Integration:
            view = View()

            def process_code_explanation(self, document, selection):
                events.append(('process', selection.start_line))
                return 'result'

        handler = SelectionHandler(CodeAnalysisService(), integration=Integration())
        doc = make_document(LINES)

        assert handler.explain_selection(doc, Selection(2, 2)) == 'result'
        assert events == ['loading', ('process', 2)]
        assert handler.sessions.get(doc.uri).highlighted_lines == [0, 1, 2]


def test_selection_key():
    class Doc:
        uri = 'file:///src/app.ts'

    assert selection_key(Doc(), Selection(3, 7)) == 'file:///src/app.ts:3:7'
