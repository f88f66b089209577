"""Text-completion client and structured response parsing."""

import json
import logging
import re
from typing import Any

from app.config import get_settings
from app.errors import CompletionError, UpstreamFormatError

logger = logging.getLogger("session_scribe")

FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


def parse_json_response(text: str) -> dict[str, Any]:
    """Extract a JSON object from model output.

    Tries the raw text, then the first fenced code block, then the span between
    the first ``{`` and the last ``}``. Raises UpstreamFormatError otherwise.
    """
    candidates = [text]
    fenced = FENCED_BLOCK.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(parsed, dict):
            return parsed

    logger.error("Failed to parse AI response: %r", text[:500])
    raise UpstreamFormatError("Invalid response format from AI")


class CompletionClient:
    """Wraps the chat-completions endpoint behind a prompt -> text call."""

    def __init__(self) -> None:
        self._client = None

    def _get_client(self):
        """Lazy-create the OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            settings = get_settings()
            self._client = OpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.LLM_TIMEOUT_SECONDS)
        return self._client

    def complete(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """Return the model's reply text. Raises CompletionError on failure or empty output."""
        settings = get_settings()
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            completion = self._get_client().chat.completions.create(
                model=settings.LLM_MODEL,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise CompletionError(f"Text generation failed: {e}") from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise CompletionError("No response from text generation backend")
        return content


_completion_client: CompletionClient | None = None


def get_completion_client() -> CompletionClient:
    """Get singleton completion client instance."""
    global _completion_client
    if _completion_client is None:
        _completion_client = CompletionClient()
    return _completion_client
