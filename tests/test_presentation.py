"""Tests for view messages, explanation history and the explanation view."""
import json

import pytest

from linelens.analyzer.code_analysis import CodeAnalysisService
from linelens.presentation import messages
from linelens.presentation.history import MAX_HISTORY_ITEMS, ExplanationHistory
from linelens.presentation.view import ExplanationView, ViewState


class TestMessages:
    def test_parse_inbound(self):
        assert messages.parse_message({'type': 'ready'}) == messages.Ready()
        assert messages.parse_message({'type': 'copy_explanation', 'text': 'hi'}) == \
            messages.CopyExplanation(text='hi')
        assert messages.parse_message({'type': 'load_history_item', 'index': 2}) == \
            messages.LoadHistoryItem(index=2)

    @pytest.mark.parametrize("data", [
        {'type': 'explode'},
        {},
        {'type': 'show_error', 'message': 'outbound'},
        {'type': 'load_history_item', 'index': '2'},
        {'type': 'load_history_item', 'index': True},
        {'type': 'load_history_item'},
    ])
    def test_rejected(self, data):
        with pytest.raises(ValueError):
            messages.parse_message(data)

    def test_to_dict(self):
        assert messages.ShowError(message='bad').to_dict() == {'type': 'show_error', 'message': 'bad'}
        assert messages.UpdateContent(explanation='x', has_history=True).to_dict() == {
            'type': 'update_content',
            'explanation': 'x',
            'has_history': True,
        }


class TestExplanationHistory:
    def test_newest_first_and_capped(self):
        history = ExplanationHistory()
        for i in range(MAX_HISTORY_ITEMS + 2):
            history.add(f"explanation {i}", f"code_{i}();", 'javascript')

        assert len(history) == MAX_HISTORY_ITEMS
        assert history.get(0).explanation == f"explanation {MAX_HISTORY_ITEMS + 1}"
        assert history.get(MAX_HISTORY_ITEMS - 1).explanation == "explanation 2"

    def test_persisted_atomically(self, tmp_path):
        path = tmp_path / 'history.json'
        ExplanationHistory(path).add("It returns one.", "return 1;", 'typescript')

        data = json.loads(path.read_text(encoding='utf-8'))
        assert data['version'] == '1.0'
        assert data['history'][0]['code_snippet'] == "return 1;"
        assert not path.with_suffix('.tmp').exists()

        reloaded = ExplanationHistory(path)
        assert reloaded.get(0).explanation == "It returns one."

    def test_clear_is_persisted(self, tmp_path):
        path = tmp_path / 'history.json'
        history = ExplanationHistory(path)
        history.add("It returns one.", "return 1;", 'typescript')

        history.clear()

        assert len(ExplanationHistory(path)) == 0

    def test_unreadable_file(self, tmp_path, capsys):
        path = tmp_path / 'history.json'
        path.write_text("{not json", encoding='utf-8')

        assert len(ExplanationHistory(path)) == 0
        assert "[History] Warning:" in capsys.readouterr().out

    def test_get_out_of_range(self):
        with pytest.raises(IndexError):
            ExplanationHistory().get(0)

    def test_summary_abbreviates_snippet(self):
        history = ExplanationHistory()
        history.add("Long.", "x" * 150, 'python')

        summary = history.summaries()[0]
        assert summary['index'] == 0
        assert summary['code_snippet'] == "x" * 100 + '...'
        assert summary['language'] == 'python'


class TestExplanationView:
    @pytest.fixture
    def view(self, console):
        return ExplanationView(console=console)

    def test_starts_in_welcome(self, view):
        assert view.state == ViewState.WELCOME

    def test_update_content(self, view, console):
        view.update_content("**Adds** two numbers.", "add(a, b);", 'javascript')

        assert view.state == ViewState.EXPLANATION
        assert len(view.history) == 1
        assert view.sent[-1] == messages.UpdateContent(
            explanation="**Adds** two numbers.", has_history=True,
        )
        assert "Adds" in console.file.getvalue()

    def test_update_without_snippet_skips_history(self, view):
        view.update_content("Restored.")
        assert len(view.history) == 0

    def test_ready_restores_state(self, view):
        view.handle_message({'type': 'ready'})
        assert view.sent[-1] == messages.Welcome()

        view.show_error("API error: down")
        view.handle_message({'type': 'ready'})
        assert view.sent[-1] == messages.ShowError(message="API error: down")

        view.show_configuration_needed()
        view.handle_message(messages.Ready())
        assert view.sent[-1] == messages.ConfigurationNeeded()

    def test_request_explanation_callback(self, console):
        requests = []
        view = ExplanationView(console=console, on_explanation_requested=lambda: requests.append(1))

        view.handle_message({'type': 'request_explanation'})
        assert requests == [1]

    def test_copy_defaults_to_current_explanation(self, console):
        copied = []
        view = ExplanationView(console=console, on_copy=copied.append)
        view.update_content("Current text.")

        view.handle_message({'type': 'copy_explanation'})
        view.handle_message({'type': 'copy_explanation', 'text': 'Other text.'})

        assert copied == ["Current text.", "Other text."]

    def test_load_history_item(self, view):
        view.update_content("First.", "a();", 'javascript')
        view.update_content("Second.", "b();", 'javascript')

        view.handle_message({'type': 'load_history_item', 'index': 1})

        assert view.current_explanation == "First."
        assert len(view.history) == 2, "Loading an item must not add it again"

    def test_load_missing_history_item(self, view):
        view.handle_message({'type': 'load_history_item', 'index': 5})
        assert view.state == ViewState.ERROR

    def test_show_and_clear_history(self, view, console):
        view.update_content("First.", "a();", 'javascript')

        view.handle_message({'type': 'show_history'})
        summary = view.sent[-1]
        assert summary.kind == messages.MessageKind.HISTORY
        assert summary.items[0]['code_snippet'] == "a();"

        view.handle_message({'type': 'clear_history'})
        assert view.sent[-1] == messages.HistoryCleared()
        assert len(view.history) == 0

    def test_open_settings(self, view, console):
        view.handle_message({'type': 'open_settings'})
        assert "LINELENS_API_KEY" in console.file.getvalue()

    def test_outbound_dict_rejected(self, view):
        with pytest.raises(ValueError):
            view.handle_message({'type': 'update_content'})

    def test_render_related_lines(self, view, console, make_document):
        doc = make_document(["const x = 1;", "let y = 2;", "console.log(x + y);"])
        categories = CodeAnalysisService().categorize_related_lines(doc, 2)

        view.render_related_lines(doc, [2], categories)

        output = console.file.getvalue()
        assert "selected" in output
        assert "variable" in output
        assert "const x = 1;" in output
