"""Typed failures raised across LineLens.

Three families, each handled differently by the ErrorReporter:
- ConfigurationError: missing or malformed settings (never retried)
- ApiError: model API failures, optionally retryable
- AnalysisError: code analysis failed for a specific line
"""
from typing import Optional


class ConfigurationError(Exception):
    """Configuration is missing or invalid."""

    MISSING_API_KEY = "MISSING_API_KEY"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_VALUE = "INVALID_VALUE"

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.message = message
        self.code = code


class ApiError(Exception):
    """Model API call failed.

    Attributes:
        status_code: HTTP status code when the API answered, else None
        retryable: Whether retrying the same call may succeed
        original_error: The exception this error was converted from, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None,
                 retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retryable = retryable
        self.original_error: Optional[BaseException] = None


class AnalysisError(Exception):
    """Code analysis failed.

    Attributes:
        line_number: 0-based line the analysis was anchored on
    """

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number
