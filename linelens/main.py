"""LineLens CLI - See how a line of code relates to the rest of its file."""
import json
from pathlib import Path
from typing import Dict, Optional

import typer
from rich.markup import escape
from rich.table import Table

from linelens.utils.safe_console import SafeConsole
from linelens.utils.logger import OutputLog

from linelens.analyzer.code_analysis import CodeAnalysisService
from linelens.analyzer.document import Selection, TextDocument
from linelens.brain.integration import IntegrationService
from linelens.brain.llm import ExplanationClient
from linelens.config import __version__, get_config
from linelens.error_handler import ErrorReporter
from linelens.errors import AnalysisError, ConfigurationError
from linelens.presentation import messages
from linelens.presentation.history import ExplanationHistory
from linelens.presentation.view import ExplanationView, ViewState
from linelens.selection import SelectionHandler

app = typer.Typer(
    name="linelens",
    help="Find the lines related to a line of code and explain them",
    add_completion=False
)
# Use SafeConsole for Windows Unicode compatibility
console = SafeConsole()

LINE_HELP = "1-based line to analyze"
END_LINE_HELP = "1-based last line of a multi-line selection"


def load_document(file_path: str) -> TextDocument:
    """Read a source file, exiting with an error message if it cannot be read."""
    path = Path(file_path)

    if not path.is_file():
        console.print(f"[bold red]Error:[/bold red] File does not exist: {escape(str(path))}")
        raise typer.Exit(1)

    try:
        return TextDocument.from_file(path)
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[bold red]Error:[/bold red] Cannot read {escape(str(path))}: {escape(str(e))}")
        raise typer.Exit(1)


def make_selection(document: TextDocument, line: int, end_line: Optional[int] = None) -> Selection:
    """Convert 1-based CLI line options to a 0-based Selection."""
    end_line = end_line if end_line is not None else line

    for value in (line, end_line):
        if value < 1 or value > document.line_count:
            console.print(
                f"[bold red]Error:[/bold red] Line {value} is outside the file "
                f"(1-{document.line_count})"
            )
            raise typer.Exit(1)

    if end_line < line:
        console.print("[bold red]Error:[/bold red] --end-line must not be before --line")
        raise typer.Exit(1)

    return Selection(line - 1, end_line - 1)


def make_output_log() -> OutputLog:
    return OutputLog(get_config().log_path)


def merge_categories(analysis: CodeAnalysisService, document: TextDocument,
                     selection: Selection) -> Dict[int, list]:
    """Per-line finder attribution across every selected line."""
    merged: Dict[int, list] = {}

    for line in range(selection.start_line, selection.end_line + 1):
        for related, kinds in analysis.categorize_related_lines(document, line).items():
            bucket = merged.setdefault(related, [])
            bucket.extend(kind for kind in kinds if kind not in bucket)

    return merged


@app.command()
def related(
    file_path: str = typer.Argument(..., help="Source file to analyze"),
    line: int = typer.Option(..., "--line", "-n", help=LINE_HELP),
    end_line: Optional[int] = typer.Option(None, "--end-line", "-e", help=END_LINE_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON"),
):
    """List the lines related to a line (or every line of a selection)."""
    document = load_document(file_path)
    selection = make_selection(document, line, end_line)

    output_log = make_output_log()
    analysis = CodeAnalysisService(output_log=output_log)

    categories = merge_categories(analysis, document, selection)
    selected_lines = list(range(selection.start_line, selection.end_line + 1))
    highlighted = sorted(set(categories) | set(selected_lines))

    if as_json:
        payload = {
            "file": document.uri,
            "language": document.language_id,
            "selected_lines": [n + 1 for n in selected_lines],
            "related_lines": [
                {
                    "line": n + 1,
                    "text": document.line_at(n).text,
                    "found_by": [kind.value for kind in categories.get(n, [])],
                }
                for n in highlighted
                if n not in selected_lines
            ],
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    view = ExplanationView(console=console)
    view.render_related_lines(document, selected_lines, {
        n: categories.get(n, []) for n in highlighted
    })
    console.print(f"\n[dim]{len(highlighted) - len(selected_lines)} related line(s)[/dim]")


@app.command()
def context(
    file_path: str = typer.Argument(..., help="Source file to analyze"),
    line: int = typer.Option(..., "--line", "-n", help=LINE_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON"),
):
    """Show the code context gathered for a line."""
    document = load_document(file_path)
    selection = make_selection(document, line)

    output_log = make_output_log()
    reporter = ErrorReporter(output_log=output_log, console=console)
    analysis = CodeAnalysisService(output_log=output_log)

    try:
        result = analysis.analyze_code_selection(document, selection)
    except AnalysisError as e:
        reporter.handle_analysis_error(e)
        raise typer.Exit(1)

    if as_json:
        payload = result.context.to_dict()
        payload["selected_line"] = result.selected_line
        payload["related_line_numbers"] = [n + 1 for n in result.related_line_numbers]
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(title=f"Context for line {line}", show_header=True, header_style="bold cyan")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    ctx = result.context
    table.add_row("Selected line", escape(result.selected_line.strip()))
    table.add_row("Language", ctx.language)
    table.add_row("Function", ctx.function_name or "[dim]none[/dim]")
    table.add_row("Class", ctx.class_name or "[dim]none[/dim]")
    table.add_row("Variables", escape(", ".join(ctx.variables)) or "[dim]none[/dim]")
    table.add_row("Imports", escape("\n".join(ctx.imports)) or "[dim]none[/dim]")
    table.add_row("Related lines", ", ".join(str(n + 1) for n in result.related_line_numbers))

    console.print(table)


@app.command()
def explain(
    file_path: str = typer.Argument(..., help="Source file to explain"),
    line: int = typer.Option(..., "--line", "-n", help=LINE_HELP),
    end_line: Optional[int] = typer.Option(None, "--end-line", "-e", help=END_LINE_HELP),
):
    """Ask the model to explain a line together with its related lines."""
    document = load_document(file_path)
    selection = make_selection(document, line, end_line)

    output_log = make_output_log()
    reporter = ErrorReporter(output_log=output_log, console=console)

    try:
        config = get_config()
        explanation_history = ExplanationHistory(config.history_path)
        view = ExplanationView(history=explanation_history, console=console)

        if not config.is_configured():
            view.show_configuration_needed()
            raise typer.Exit(1)

        client = ExplanationClient(config.get_model_config())
    except ConfigurationError as e:
        reporter.handle_configuration_error(e)
        raise typer.Exit(1)

    analysis = CodeAnalysisService(output_log=output_log)
    integration = IntegrationService(analysis, client, view, reporter)
    handler = SelectionHandler(analysis, integration=integration)

    try:
        with console.status("[bold blue]Asking the model...[/bold blue]"):
            result = handler.explain_selection(document, selection)
    finally:
        client.dispose()

    if not result.success:
        raise typer.Exit(1)


@app.command("set-key")
def set_key(
    api_key: str = typer.Argument(..., help="Model API key to store in .env"),
    validate: bool = typer.Option(True, "--validate/--no-validate", help="Check the key against the API first"),
):
    """Store the model API key in the .env file."""
    reporter = ErrorReporter(output_log=make_output_log(), console=console)
    config = get_config()

    if not config.validate_api_key_format(api_key):
        reporter.handle_configuration_error(ConfigurationError(
            "Invalid API key format. Please check your API key.",
            ConfigurationError.INVALID_FORMAT,
        ))
        raise typer.Exit(1)

    if validate:
        with console.status("[bold blue]Validating API key...[/bold blue]"):
            valid = ExplanationClient().validate_api_key(api_key.strip())
        if not valid:
            console.print("[bold red]✗ The API rejected this key.[/bold red]")
            raise typer.Exit(1)

    try:
        config.set_api_key(api_key)
    except ConfigurationError as e:
        reporter.handle_configuration_error(e)
        raise typer.Exit(1)

    console.print(f"[green]✓ API key saved to {escape(str(config.env_path))}[/green]")


@app.command()
def check():
    """Show the configuration and test the connection to the model."""
    reporter = ErrorReporter(output_log=make_output_log(), console=console)

    try:
        config = get_config()
        model_config = config.get_model_config()
    except ConfigurationError as e:
        reporter.handle_configuration_error(e)
        raise typer.Exit(1)

    table = Table(title="LineLens configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Model", model_config.model)
    table.add_row("Endpoint", model_config.base_url)
    table.add_row("Temperature", str(model_config.temperature))
    table.add_row("Max tokens", str(model_config.max_tokens))
    table.add_row("History file", config.history_path)
    console.print(table)

    client = ExplanationClient(model_config)
    with console.status("[bold blue]Testing connection...[/bold blue]"):
        status = client.test_connection()
    client.dispose()

    if not status.success:
        console.print(f"[bold red]✗ Connection failed:[/bold red] {escape(status.error or '')}")
        raise typer.Exit(1)

    console.print("[green]✓ Connection OK[/green]")


@app.command()
def history(
    clear: bool = typer.Option(False, "--clear", help="Delete every saved explanation"),
    show: Optional[int] = typer.Option(None, "--show", help="Show the explanation with this number"),
):
    """List, show or clear recent explanations."""
    config = get_config()
    view = ExplanationView(history=ExplanationHistory(config.history_path), console=console)

    if clear:
        view.handle_message(messages.ClearHistory())
    elif show is not None:
        view.handle_message(messages.LoadHistoryItem(index=show - 1))
        if view.state != ViewState.EXPLANATION:
            raise typer.Exit(1)
    else:
        view.handle_message(messages.ShowHistory())


@app.command()
def version():
    """Print the LineLens version."""
    console.print(f"linelens {__version__}")


@app.callback()
def main():
    """LineLens - See how a line of code relates to the rest of its file."""
    pass


if __name__ == "__main__":
    app()
