"""Client for the Fireworks AI chat-completions API."""

import time
from typing import Any

import requests

from .config import GenerationConfig
from .errors import EmptyGenerationError, GenerationError
from .logging_config import create_execution_logger


class FireworksClient:
    """Sends chat-completions requests and returns the first message content."""

    def __init__(
        self,
        config: GenerationConfig,
        timeout: int | None = None,
        execution_id: str | None = None,
    ):
        """Initialize the client.

        Args:
            config: Generation configuration, including the API key
            timeout: HTTP request timeout in seconds, None for the client default
            execution_id: Execution ID for logging context
        """
        self.config = config
        self.timeout = timeout
        self.logger = create_execution_logger("fireworks_client", execution_id)
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {config.api_key}",
            }
        )

    def complete(
        self, messages: list[dict[str, str]], temperature: float | None = None
    ) -> str:
        """Request a completion for ``messages``.

        Args:
            messages: Chat messages, system prompt first
            temperature: Sampling temperature, omitted from the payload if None

        Returns:
            The content of the first choice's message

        Raises:
            GenerationError: If the API answers with a non-success status
            EmptyGenerationError: If the answer carries no message content
        """
        payload: dict[str, Any] = {
            "model": self.config.model_id,
            "messages": messages,
        }
        if temperature is not None:
            payload["temperature"] = temperature

        self.logger.info(
            "Calling Fireworks API",
            model_id=self.config.model_id,
            message_count=len(messages),
        )

        start_time = time.time()
        response = self.session.post(
            self.config.completions_url, json=payload, timeout=self.timeout
        )
        response_time_ms = int((time.time() - start_time) * 1000)

        if not response.ok:
            self.logger.error(
                f"Fireworks API error: {response.status_code}",
                status_code=response.status_code,
                response_time_ms=response_time_ms,
            )
            raise GenerationError(response.status_code, response.text)

        content = extract_message_content(response.json())
        if not content.strip():
            self.logger.warning("Empty response from Fireworks API")
            raise EmptyGenerationError()

        self.logger.info(
            "Fireworks response received",
            response_length=len(content),
            response_time_ms=response_time_ms,
        )
        return content


def extract_message_content(data: Any) -> str:
    """Return ``choices[0].message.content`` as text, or "" if absent."""
    if not isinstance(data, dict):
        return ""

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        return ""

    content = message.get("content")
    if content is None:
        return ""
    return content if isinstance(content, str) else str(content)
