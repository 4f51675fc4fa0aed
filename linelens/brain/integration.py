"""Pipeline connecting code analysis, the explanation client and the view.

analyze -> build snippet -> explain (with retries) -> show. Each stage fails
with a typed error, and process_code_explanation turns any failure into a
ProcessResult after handing it to the ErrorReporter.
"""
import time
from dataclasses import dataclass, replace
from typing import List, Optional

from ..analyzer.models import CodeAnalysisResult, CodeContext
from ..errors import AnalysisError, ApiError, ConfigurationError
from ..utils.logger import safe_print

MAX_SNIPPET_LENGTH = 2000
TRUNCATION_MARKER = "// ... (truncated for brevity)"
MIN_RESPONSE_LENGTH = 10

ERROR_INDICATORS = (
    'error',
    'failed',
    'unable to',
    'cannot process',
    'invalid request',
)


@dataclass
class ProcessResult:
    """Outcome of one explanation request."""
    success: bool
    explanation: Optional[str] = None
    error: Optional[str] = None


def build_code_snippet(selected_line: str, related_lines: List[str]) -> str:
    """Join the selected line and its related lines into the snippet sent to the model.

    The selected line comes first, then the related lines in document order.
    Blank lines and repeated texts are dropped, and lines that no longer fit in
    MAX_SNIPPET_LENGTH characters are replaced by a truncation marker.
    """
    selected = selected_line.strip()
    lines: List[str] = [selected] if selected else []

    for line in related_lines:
        stripped = line.strip()
        if stripped and stripped not in lines:
            lines.append(stripped)

    snippet = '\n'.join(lines)
    if len(snippet) <= MAX_SNIPPET_LENGTH:
        return snippet

    kept = lines[:1]
    length = len(kept[0]) if kept else 0
    for line in lines[1:]:
        if length + len(line) + 1 > MAX_SNIPPET_LENGTH:
            break
        kept.append(line)
        length += len(line) + 1

    return '\n'.join(kept + [TRUNCATION_MARKER])


class IntegrationService:
    """Runs one explanation request end to end."""

    def __init__(self, code_analysis, explanation_client, view, error_reporter,
                 max_retries: Optional[int] = None, base_delay: Optional[float] = None):
        """Initialize integration service.

        Args:
            code_analysis: CodeAnalysisService
            explanation_client: ExplanationClient (anything with explain_code)
            view: ExplanationView receiving the result
            error_reporter: ErrorReporter used for retries and error display
            max_retries: Override the reporter's default retry count
            base_delay: Override the reporter's default first backoff delay
        """
        self.code_analysis = code_analysis
        self.explanation_client = explanation_client
        self.view = view
        self.error_reporter = error_reporter

        self._retry_options = {}
        if max_retries is not None:
            self._retry_options['max_retries'] = max_retries
        if base_delay is not None:
            self._retry_options['base_delay'] = base_delay

    def process_code_explanation(self, document, selection) -> ProcessResult:
        """Analyze a selection, explain it and show the explanation.

        Args:
            document: Document the selection belongs to
            selection: Selection to explain (its start_line anchors analysis)

        Returns:
            ProcessResult; errors are reported, never raised
        """
        start_time = time.time()

        try:
            analysis_result = self.analyze_code(document, selection)
            snippet = build_code_snippet(analysis_result.selected_line, analysis_result.related_lines)
            explanation = self.generate_explanation(snippet, analysis_result.context)
            self.view.update_content(explanation, snippet, analysis_result.context.language)

            self._log(f"Code explanation completed in {time.time() - start_time:.2f}s")
            return ProcessResult(success=True, explanation=explanation)

        except AnalysisError as e:
            self.error_reporter.handle_analysis_error(e)
            message = f"Code analysis error: {e.message}"
        except ApiError as e:
            self.error_reporter.handle_api_error(e)
            message = f"API error: {e.message}"
        except ConfigurationError as e:
            self.error_reporter.handle_configuration_error(e)
            message = f"Configuration error: {e.message}"
        except Exception as e:
            safe_print(f"[Integration] Error: Unexpected error in code explanation: {e}")
            message = f"Unexpected error: {e or 'Unknown error occurred'}"

        self._log(f"Code explanation failed after {time.time() - start_time:.2f}s: {message}")
        self.view.show_error(message)
        return ProcessResult(success=False, error=message)

    def analyze_code(self, document, selection) -> CodeAnalysisResult:
        """Run the analyzer and check the result is usable.

        Raises:
            AnalysisError: If analysis fails or yields an unusable result
        """
        self._log(f"Analyzing {document.language_id} selection at line {selection.start_line + 1}")

        try:
            result = self.code_analysis.analyze_code_selection(document, selection)
        except AnalysisError:
            raise
        except Exception as e:
            raise AnalysisError(f"Code analysis failed: {e}", selection.start_line) from e

        if not result.selected_line or not result.selected_line.strip():
            raise AnalysisError("Selected line is empty or invalid", selection.start_line)

        if result.context is None or not result.context.language:
            raise AnalysisError("Code context is missing or invalid", selection.start_line)

        self._log(f"Analysis complete: {len(result.related_lines)} related lines found")
        return result

    def generate_explanation(self, snippet: str, context: CodeContext) -> str:
        """Explain a snippet, retrying transient failures.

        Raises:
            ApiError: If every attempt fails
        """
        context = replace(
            context,
            variables=list(dict.fromkeys(context.variables)),
            imports=list(dict.fromkeys(context.imports)),
        )
        self._log(f"Generating explanation for {context.language} code ({len(snippet)} chars)")

        def attempt() -> str:
            response = self.explanation_client.explain_code(snippet, context)
            self.validate_response(response)
            return response

        try:
            explanation = self.error_reporter.retry_with_backoff(attempt, **self._retry_options)
        except (ApiError, ConfigurationError):
            raise
        except Exception as e:
            raise ApiError(f"Failed to generate explanation: {e}") from e

        self._log(f"Explanation generated: {len(explanation)} characters")
        return explanation

    def validate_response(self, response) -> None:
        """Reject empty or trivially short responses.

        Responses mentioning error-like phrases are accepted but logged.

        Raises:
            ApiError: Retryable, if the response is unusable
        """
        if not isinstance(response, str):
            raise ApiError("Invalid API response format", None, True)

        if not response.strip():
            raise ApiError("Empty API response", None, True)

        if len(response) < MIN_RESPONSE_LENGTH:
            raise ApiError("API response too short to be meaningful", None, True)

        lowered = response.lower()
        for indicator in ERROR_INDICATORS:
            if indicator in lowered:
                self._log(f"Warning: Potential error in API response: contains \"{indicator}\"")

    def _log(self, message: str) -> None:
        self.error_reporter.output_log.append_line(f"[Integration] {message}")
