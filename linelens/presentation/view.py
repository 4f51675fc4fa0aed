"""Terminal explanation view rendered with rich.

The view is a small state machine (welcome, loading, explanation, error,
configuration needed). Every state change is posted as an outbound message,
kept in ``sent`` and rendered to the console.
"""
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Union

from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..utils.safe_console import SafeConsole
from . import messages
from .history import ExplanationHistory
from .messages import Message, MessageKind


class ViewState(str, Enum):
    WELCOME = 'welcome'
    LOADING = 'loading'
    EXPLANATION = 'explanation'
    ERROR = 'error'
    CONFIGURATION_NEEDED = 'configuration_needed'


SETTINGS_HELP = (
    "LineLens reads its settings from the environment or a .env file:\n"
    "  LINELENS_API_KEY      model API key (or run 'linelens set-key')\n"
    "  LINELENS_MODEL        model name\n"
    "  LINELENS_BASE_URL     OpenAI-compatible endpoint\n"
    "  LINELENS_TEMPERATURE  sampling temperature\n"
    "  LINELENS_MAX_TOKENS   response token limit\n"
    "  LINELENS_HISTORY_PATH explanation history file\n"
    "  LINELENS_LOG_PATH     output log file"
)


def syntax_lexer(language_id: str) -> str:
    """Pygments lexer name for a language id."""
    return 'text' if language_id in ('plaintext', '') else language_id


class ExplanationView:
    """Shows explanations, errors and history on the terminal."""

    def __init__(self, history: Optional[ExplanationHistory] = None,
                 console: Optional[SafeConsole] = None,
                 on_explanation_requested: Optional[Callable[[], None]] = None,
                 on_copy: Optional[Callable[[str], None]] = None):
        """Initialize explanation view.

        Args:
            history: Explanation history (in-memory if omitted)
            console: Console to render to
            on_explanation_requested: Called for request_explanation messages
            on_copy: Receives the text of copy_explanation messages
                (defaults to printing it unformatted)
        """
        self.history = history if history is not None else ExplanationHistory()
        self.console = console if console is not None else SafeConsole()
        self.on_explanation_requested = on_explanation_requested
        self.on_copy = on_copy

        self.state = ViewState.WELCOME
        self.current_explanation = ''
        self.last_error = ''
        self.sent: List[Message] = []

    def update_content(self, explanation: str, code_snippet: Optional[str] = None,
                       language: Optional[str] = None) -> None:
        """Show an explanation, recording it in the history when the snippet is known."""
        self.current_explanation = explanation
        self.state = ViewState.EXPLANATION

        if code_snippet and language:
            self.history.add(explanation, code_snippet, language)

        self.post(messages.UpdateContent(explanation=explanation, has_history=len(self.history) > 0))

    def show_error(self, message: str) -> None:
        self.state = ViewState.ERROR
        self.last_error = message
        self.post(messages.ShowError(message=message))

    def show_loading(self) -> None:
        self.state = ViewState.LOADING
        self.post(messages.ShowLoading())

    def show_welcome(self) -> None:
        self.state = ViewState.WELCOME
        self.post(messages.Welcome())

    def show_configuration_needed(self) -> None:
        self.state = ViewState.CONFIGURATION_NEEDED
        self.post(messages.ConfigurationNeeded())

    def show_history(self) -> None:
        self.post(messages.HistorySummary(items=tuple(self.history.summaries())))

    def clear_history(self) -> None:
        self.history.clear()
        self.post(messages.HistoryCleared())

    def handle_message(self, message: Union[Message, Dict]) -> None:
        """Act on an inbound message (or its dict form).

        Raises:
            ValueError: If a dict message has an unknown or outbound type
        """
        if isinstance(message, dict):
            message = messages.parse_message(message)

        kind = message.kind

        if kind == MessageKind.READY:
            self._restore_state()
        elif kind == MessageKind.REQUEST_EXPLANATION:
            if self.on_explanation_requested is not None:
                self.on_explanation_requested()
        elif kind == MessageKind.COPY_EXPLANATION:
            self._copy(message.text or self.current_explanation)
        elif kind == MessageKind.OPEN_SETTINGS:
            self.console.print(Panel(SETTINGS_HELP, title="Settings", border_style="cyan"))
        elif kind == MessageKind.SHOW_HISTORY:
            self.show_history()
        elif kind == MessageKind.CLEAR_HISTORY:
            self.clear_history()
            self.console.print("[cyan]Explanation history cleared.[/cyan]")
        elif kind == MessageKind.LOAD_HISTORY_ITEM:
            try:
                item = self.history.get(message.index)
            except IndexError as e:
                self.show_error(str(e))
                return
            self.update_content(item.explanation)
        else:
            raise ValueError(f"Not an inbound message type: {kind.value}")

    def post(self, message: Message) -> None:
        self.sent.append(message)
        self.render(message)

    def render(self, message: Message) -> None:
        kind = message.kind

        if kind == MessageKind.UPDATE_CONTENT:
            self.console.print(Panel(
                Markdown(message.explanation),
                title="💡 Explanation",
                border_style="green",
            ))
        elif kind == MessageKind.SHOW_ERROR:
            self.console.print(Panel(
                f"[red]{escape(message.message)}[/red]",
                title="✗ Error",
                border_style="red",
            ))
        elif kind == MessageKind.SHOW_LOADING:
            self.console.print("[dim]Generating explanation…[/dim]")
        elif kind == MessageKind.HISTORY:
            self._render_history(message.items)
        elif kind == MessageKind.HISTORY_CLEARED:
            self.console.print("[dim]History is empty.[/dim]")
        elif kind == MessageKind.CONFIGURATION_NEEDED:
            self.console.print(Panel(
                "No model API key is configured.\n"
                "Run [bold]linelens set-key <KEY>[/bold] or set LINELENS_API_KEY.",
                title="⚠ Configuration needed",
                border_style="yellow",
            ))
        elif kind == MessageKind.WELCOME:
            self.console.print(Panel(
                "Pick a line with [bold]linelens explain FILE --line N[/bold] "
                "to see how it relates to the rest of the file.",
                title="LineLens",
                border_style="cyan",
            ))

    def render_related_lines(self, document, selected_lines: Iterable[int],
                             categories: Dict[int, list]) -> None:
        """Show the selected and related lines of a document.

        Args:
            document: Analyzed document
            selected_lines: 0-based lines the user selected
            categories: 0-based related line -> RelationshipTypes that found it
        """
        selected = sorted(set(selected_lines))
        related = sorted(set(categories) - set(selected))
        shown = selected + related
        if not shown:
            return

        self.console.print(Syntax(
            document.get_text(),
            syntax_lexer(document.language_id),
            line_numbers=True,
            highlight_lines={line + 1 for line in shown},
            line_range=(min(shown) + 1, max(shown) + 1),
        ))

        table = Table(title="🔗 Related lines", show_header=True)
        table.add_column("Line", justify="right", style="cyan")
        table.add_column("Found by", style="magenta")
        table.add_column("Text")

        for line in selected:
            table.add_row(str(line + 1), "🎯 selected", escape(document.line_at(line).text.strip()))

        for line in related:
            found_by = ", ".join(kind.value for kind in categories[line])
            table.add_row(str(line + 1), found_by, escape(document.line_at(line).text.strip()))

        self.console.print(table)

    def _restore_state(self) -> None:
        if self.state == ViewState.EXPLANATION and self.current_explanation:
            self.post(messages.UpdateContent(
                explanation=self.current_explanation,
                has_history=len(self.history) > 0,
            ))
        elif self.state == ViewState.LOADING:
            self.show_loading()
        elif self.state == ViewState.ERROR and self.last_error:
            self.show_error(self.last_error)
        elif self.state == ViewState.CONFIGURATION_NEEDED:
            self.show_configuration_needed()
        else:
            self.show_welcome()

    def _copy(self, text: str) -> None:
        if self.on_copy is not None:
            self.on_copy(text)
        else:
            self.console.print(text, markup=False, highlight=False)

    def _render_history(self, items) -> None:
        if not items:
            self.console.print("[dim]History is empty.[/dim]")
            return

        table = Table(title="🕘 Explanation history", show_header=True)
        table.add_column("#", justify="right", style="cyan")
        table.add_column("When", style="dim")
        table.add_column("Language", style="magenta")
        table.add_column("Snippet")

        for item in items:
            table.add_row(
                str(item["index"] + 1),
                item["timestamp"],
                item["language"],
                escape(item["code_snippet"]),
            )

        self.console.print(table)
