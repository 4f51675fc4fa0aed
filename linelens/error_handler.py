"""User-facing error reporting and retry with exponential backoff.

Every handled error is written to the OutputLog with its details, then shown on
the console with a message tailored to what the user can do about it.
"""
import time
import traceback
from typing import Callable, Optional, TypeVar

from rich.markup import escape
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from .errors import AnalysisError, ApiError, ConfigurationError
from .utils.logger import OutputLog
from .utils.safe_console import SafeConsole

T = TypeVar('T')

MAX_RETRIES = 3
BASE_DELAY = 1.0  # seconds

SET_KEY_HINT = "Run 'linelens set-key <KEY>' to configure it."


def is_retryable(error: BaseException) -> bool:
    """Whether retry_with_backoff may try an operation again after ``error``.

    Configuration errors and API errors flagged non-retryable are final; any
    other exception is retried.
    """
    if isinstance(error, ConfigurationError):
        return False
    if isinstance(error, ApiError):
        return error.retryable
    return True


class ErrorReporter:
    """Logs errors to the output log and tells the user what happened."""

    def __init__(self, output_log: Optional[OutputLog] = None,
                 console: Optional[SafeConsole] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """Initialize error reporter.

        Args:
            output_log: Log receiving error details (a fresh in-memory log if omitted)
            console: Console for user-facing messages
            sleep: Function used to wait between retries
        """
        self.output_log = output_log if output_log is not None else OutputLog()
        self.console = console if console is not None else SafeConsole(stderr=True)
        self._sleep = sleep

    def handle_configuration_error(self, error: ConfigurationError) -> None:
        self._log_error("Configuration Error", error)

        if error.code == ConfigurationError.MISSING_API_KEY:
            self.show_error(f"Model API key is not configured. {SET_KEY_HINT}")
        elif error.code == ConfigurationError.INVALID_FORMAT:
            self.show_error(
                f"The provided API key format is invalid. Please check your API key and try again. {SET_KEY_HINT}"
            )
        else:
            self.show_error(f"Configuration error: {error.message}")

    def handle_api_error(self, error: ApiError) -> None:
        self._log_error("API Error", error)

        if error.status_code in (401, 403):
            self.show_error(f"Invalid API key. Please check your model API key. {SET_KEY_HINT}")
        elif error.status_code == 429:
            self.show_warning("Rate limit exceeded. Please wait a moment before trying again.")
        elif error.retryable:
            self.show_warning("Temporary API issue. The request will be retried automatically.")
        else:
            self.show_error(f"API Error: {error.message}")

    def handle_analysis_error(self, error: AnalysisError) -> None:
        self._log_error("Analysis Error", error)

        message = f"Code analysis failed: {error.message}"
        if error.line_number is not None:
            message += f" (Line {error.line_number + 1})"

        self.show_warning(message)

    def retry_with_backoff(self, operation: Callable[[], T],
                           max_retries: int = MAX_RETRIES,
                           base_delay: float = BASE_DELAY) -> T:
        """Run an operation, retrying transient failures with exponential backoff.

        Waits base_delay, 2*base_delay, 4*base_delay... between attempts.

        Args:
            operation: Zero-argument callable to run
            max_retries: Retries after the first attempt
            base_delay: First wait, in seconds

        Returns:
            Whatever operation returns on its first successful attempt

        Raises:
            The last exception raised by operation, unchanged
        """
        retrying = Retrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(max_retries + 1),
            wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        return retrying(operation)

    def show_error(self, message: str) -> None:
        self.console.print(f"[bold red]✗ {escape(message)}[/bold red]")

    def show_warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {escape(message)}[/yellow]")

    def _log_retry(self, retry_state) -> None:
        error = retry_state.outcome.exception()
        delay_ms = int(retry_state.next_action.sleep * 1000)
        self.output_log.append_line(
            f"Attempt {retry_state.attempt_number} failed, retrying in {delay_ms}ms: {error}"
        )

    def _log_error(self, category: str, error: Exception) -> None:
        self.output_log.append_line(f"{category}: {error}")

        if error.__traceback__ is not None:
            stack = ''.join(traceback.format_tb(error.__traceback__)).rstrip()
            self.output_log.append_line(f"Stack trace:\n{stack}")

        if isinstance(error, ConfigurationError):
            self.output_log.append_line(f"Error code: {error.code}")
        elif isinstance(error, ApiError):
            self.output_log.append_line(f"Status code: {error.status_code or 'N/A'}")
            self.output_log.append_line(f"Retryable: {error.retryable}")
        elif isinstance(error, AnalysisError):
            line = error.line_number + 1 if error.line_number is not None else 'N/A'
            self.output_log.append_line(f"Line number: {line}")
