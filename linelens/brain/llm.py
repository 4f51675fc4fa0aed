"""Model client that explains code snippets.

Talks to any OpenAI-compatible chat completions endpoint. The default
endpoint is Gemini's; set LINELENS_BASE_URL and LINELENS_MODEL in your .env
file to use another provider.

Every failure leaves this module as an ApiError whose ``retryable`` flag tells
the ErrorReporter whether the call is worth repeating.
"""
from dataclasses import dataclass
from typing import Callable, Optional

import openai
from openai import OpenAI

from ..analyzer.models import CodeContext
from ..config import DEFAULT_BASE_URL, DEFAULT_MODEL, ModelConfig
from ..errors import ApiError

TOP_P = 0.8

_RETRYABLE_STATUS_CODES = (500, 502, 503, 504)
_NETWORK_MARKERS = ('network', 'timeout', 'ECONNRESET')


@dataclass
class ConnectionStatus:
    """Outcome of ExplanationClient.test_connection()."""
    success: bool
    error: Optional[str] = None


def _default_client_factory(model_config: ModelConfig):
    return OpenAI(
        api_key=model_config.api_key,
        base_url=model_config.base_url,
        default_headers={"X-Title": "LineLens - Code Explanation"},
    )


class ExplanationClient:
    """Model-backed explainer for code snippets with their context."""

    def __init__(self, model_config: Optional[ModelConfig] = None,
                 client_factory: Callable[[ModelConfig], object] = _default_client_factory):
        """Initialize explanation client.

        Args:
            model_config: Model settings (the client stays unconfigured if omitted)
            client_factory: Builds the chat client from a ModelConfig; the
                returned object must expose ``chat.completions.create``
        """
        self._client_factory = client_factory
        self.client = None
        self.model_config: Optional[ModelConfig] = None

        if model_config is not None:
            self.update_config(model_config)

    @property
    def is_configured(self) -> bool:
        return self.client is not None and self.model_config is not None

    def update_config(self, model_config: ModelConfig) -> None:
        """Swap in new settings and rebuild the underlying client."""
        self.model_config = model_config
        self.client = self._client_factory(model_config)

    def explain_code(self, code_snippet: str, context: CodeContext) -> str:
        """Ask the model to explain a snippet.

        Args:
            code_snippet: Selected line followed by its related lines
            context: Surrounding function, class, variables and imports

        Returns:
            Explanation text

        Raises:
            ApiError: If the client is not configured, the call fails or the
                model returns nothing
        """
        if not self.is_configured:
            raise ApiError("Explanation client not configured", None, False)

        prompt = self.build_explanation_prompt(code_snippet, context)

        try:
            response = self.client.chat.completions.create(
                model=self.model_config.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.model_config.temperature,
                max_tokens=self.model_config.max_tokens,
                top_p=TOP_P,
            )
        except ApiError:
            raise
        except Exception as e:
            raise self.to_api_error(e) from e

        text = self._response_text(response)
        if not text:
            raise ApiError("Empty response from model API", None, True)

        return text

    def validate_api_key(self, api_key: str) -> bool:
        """Check a key with a minimal request.

        Returns:
            False only when the API rejects the key (401/403). Any other
            failure says nothing about the key, so it counts as valid.
        """
        base = self.model_config
        test_config = ModelConfig(
            api_key=api_key,
            model=base.model if base else DEFAULT_MODEL,
            base_url=base.base_url if base else DEFAULT_BASE_URL,
        )

        try:
            test_client = self._client_factory(test_config)
            response = test_client.chat.completions.create(
                model=test_config.model,
                messages=[{"role": "user", "content": "Hello"}],
                max_tokens=10,
            )
        except Exception as e:
            return self._status_code(e) not in (401, 403)

        return self._response_text(response) is not None

    def test_connection(self) -> ConnectionStatus:
        """Explain a one-line snippet to prove the configured key and model work."""
        if not self.is_configured:
            return ConnectionStatus(success=False, error="Client not configured")

        try:
            self.explain_code(
                'console.log("test");',
                CodeContext(language='javascript'),
            )
        except ApiError as e:
            return ConnectionStatus(success=False, error=e.message)
        except Exception:
            return ConnectionStatus(success=False, error="Connection test failed")

        return ConnectionStatus(success=True)

    def dispose(self) -> None:
        self.client = None
        self.model_config = None

    @staticmethod
    def build_explanation_prompt(code_snippet: str, context: CodeContext) -> str:
        """Build the explanation prompt.

        Args:
            code_snippet: Code to explain
            context: Context bullets to include

        Returns:
            Prompt text
        """
        prompt = (
            "You are a helpful programming assistant. Please explain the following code "
            "in plain English, focusing on what it does and how it works.\n\n"
            "**Code to explain:**\n"
            f"```{context.language}\n"
            f"{code_snippet}\n"
            "```\n\n"
            "**Context:**"
        )

        if context.function_name:
            prompt += f"\n- This code is part of the function: {context.function_name}"

        if context.class_name:
            prompt += f"\n- This code is part of the class: {context.class_name}"

        if context.variables:
            prompt += f"\n- Related variables: {', '.join(context.variables)}"

        if context.imports:
            prompt += f"\n- Relevant imports: {', '.join(context.imports)}"

        prompt += f"\n- Programming language: {context.language}"

        prompt += (
            "\n\n**Please provide:**\n"
            "1. A clear explanation of what this code does\n"
            "2. How the different parts work together\n"
            "3. Any important concepts or patterns used\n"
            "4. Potential side effects or important behavior\n\n"
            "Keep the explanation concise but comprehensive, suitable for a developer "
            "trying to understand the code."
        )

        return prompt

    @classmethod
    def to_api_error(cls, error: Exception) -> ApiError:
        """Convert any client exception into an ApiError.

        Status codes map to fixed messages; 429 and 5xx are retryable. Without
        a status code the original message is kept, and connection problems
        are retryable.
        """
        if isinstance(error, ApiError):
            return error

        status_code = cls._status_code(error)
        message = str(error) or "Unknown API error occurred"
        retryable = False

        if status_code == 400:
            message = "Invalid request to model API"
        elif status_code == 401:
            message = "Invalid or expired API key"
        elif status_code == 403:
            message = "API key does not have permission to access the model"
        elif status_code == 429:
            message = "Rate limit exceeded. Please try again later"
            retryable = True
        elif status_code in _RETRYABLE_STATUS_CODES:
            message = "Model API is temporarily unavailable"
            retryable = True
        elif status_code is not None:
            message = f"Model API error: {error}"
        elif isinstance(error, openai.APIConnectionError):
            retryable = True
        elif any(marker in message for marker in _NETWORK_MARKERS):
            retryable = True

        api_error = ApiError(message, status_code, retryable)
        api_error.original_error = error
        return api_error

    @staticmethod
    def _status_code(error: Exception) -> Optional[int]:
        if isinstance(error, openai.APIStatusError):
            return error.status_code
        status = getattr(error, 'status_code', None) or getattr(error, 'status', None)
        return status if isinstance(status, int) else None

    @staticmethod
    def _response_text(response) -> Optional[str]:
        try:
            return response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            return None
