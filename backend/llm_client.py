"""Anthropic completion client with typed failures and structured output."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import anthropic
from pydantic import BaseModel, ValidationError

if TYPE_CHECKING:
    from backend.config import Settings

logger = logging.getLogger(__name__)

STRUCTURED_TOOL_NAME = "record_structured_output"


class CompletionErrorKind(str, Enum):
    """Closed set of ways a completion request can fail."""

    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    BAD_REQUEST = "bad_request"
    API = "api"
    VALIDATION = "validation"
    NETWORK = "network"


class CompletionError(Exception):
    """A completion request failed; ``kind`` says how."""

    def __init__(
        self,
        kind: CompletionErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code


# Checked in order, so subclasses must come before their bases.
# APITimeoutError is a subclass of APIConnectionError.
_SDK_ERROR_KINDS: tuple[tuple[type[anthropic.APIError], CompletionErrorKind], ...] = (
    (anthropic.AuthenticationError, CompletionErrorKind.AUTHENTICATION),
    (anthropic.RateLimitError, CompletionErrorKind.RATE_LIMIT),
    (anthropic.BadRequestError, CompletionErrorKind.BAD_REQUEST),
    (anthropic.APIConnectionError, CompletionErrorKind.NETWORK),
    (anthropic.APIResponseValidationError, CompletionErrorKind.VALIDATION),
    (anthropic.APIStatusError, CompletionErrorKind.API),
)


def classify_sdk_error(exc: anthropic.APIError) -> CompletionErrorKind:
    """Map an Anthropic SDK exception onto a CompletionErrorKind."""
    for error_type, kind in _SDK_ERROR_KINDS:
        if isinstance(exc, error_type):
            return kind
    return CompletionErrorKind.API


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


@dataclass
class CompletionRequest:
    """Parameters for a single completion call."""

    user_message: str
    system_message: str = ""
    response_schema: type[BaseModel] | None = None
    temperature: float | None = None
    max_tokens: int = 1024
    model: str | None = None


class LLMClient:
    """Wrapper around the async Anthropic API.

    Never retries on its own: SDK retries are disabled and every failure is
    surfaced as a CompletionError so the caller decides what the user sees.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float = 60.0,
        client: Any | None = None,
    ) -> None:
        """Store credentials; the SDK client is created on first use."""
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._client = client
        self.total_input_tokens = 0
        self.total_output_tokens = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMClient:
        return cls(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            timeout_seconds=settings.llm_timeout_seconds,
        )

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise CompletionError(
                    CompletionErrorKind.CONFIGURATION,
                    "Completion service API key is not configured.",
                )
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete(self, request: CompletionRequest) -> str | BaseModel:
        """Send one completion request.

        Returns the response text, or an instance of ``request.response_schema``
        when a schema is given.

        Raises:
            CompletionError: On configuration, transport, provider, or
                validation failure.
        """
        client = self._get_client()

        kwargs: dict[str, Any] = {
            "model": request.model or self.model,
            "max_tokens": request.max_tokens,
            "messages": [{"role": "user", "content": request.user_message}],
        }
        if request.system_message:
            kwargs["system"] = request.system_message
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        if request.response_schema is not None:
            kwargs["tools"] = [
                {
                    "name": STRUCTURED_TOOL_NAME,
                    "description": "Record the structured result of the task.",
                    "input_schema": request.response_schema.model_json_schema(),
                }
            ]
            kwargs["tool_choice"] = {"type": "tool", "name": STRUCTURED_TOOL_NAME}

        try:
            response = await client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            kind = classify_sdk_error(exc)
            logger.error("Completion request failed (%s): %s", kind.value, exc)
            raise CompletionError(
                kind, str(exc), status_code=getattr(exc, "status_code", None)
            ) from exc

        self._record_usage(response)

        if request.response_schema is None:
            text = _text_content(response)
            if not text:
                raise CompletionError(CompletionErrorKind.API, "Completion response content is empty")
            return text

        return _parse_structured(response, request.response_schema)

    def _record_usage(self, response: Any) -> None:
        usage = getattr(response, "usage", None)
        if usage is None:
            return
        self.total_input_tokens += usage.input_tokens
        self.total_output_tokens += usage.output_tokens
        logger.debug("Tokens used: %d in, %d out", usage.input_tokens, usage.output_tokens)

    def get_usage(self) -> dict[str, int]:
        """Return token totals accumulated by this client."""
        return {
            "input_tokens": self.total_input_tokens,
            "output_tokens": self.total_output_tokens,
        }


def _text_content(response: Any) -> str:
    parts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
    return "".join(parts).strip()


def _parse_structured(response: Any, schema: type[BaseModel]) -> BaseModel:
    payload: Any = None
    for block in response.content:
        if getattr(block, "type", None) == "tool_use" and block.name == STRUCTURED_TOOL_NAME:
            payload = block.input
            break

    if payload is None:
        text = _text_content(response)
        if not text:
            raise CompletionError(CompletionErrorKind.API, "Completion response content is empty")
        try:
            payload = json.loads(strip_code_fences(text))
        except json.JSONDecodeError as exc:
            logger.error("Completion returned invalid JSON")
            logger.debug("Response was: %s", text[:500])
            raise CompletionError(
                CompletionErrorKind.VALIDATION, "Completion returned invalid JSON"
            ) from exc

    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        logger.error("Completion output failed schema validation: %s", exc.errors())
        raise CompletionError(
            CompletionErrorKind.VALIDATION,
            "Completion response does not match the expected schema",
        ) from exc


# Lazy singleton: avoids import-time Anthropic client creation when no API key is set.
_llm_client: LLMClient | None = None


def get_llm_client() -> LLMClient:
    """Return the shared LLMClient, creating it on first call."""
    global _llm_client
    if _llm_client is None:
        from backend.config import settings

        _llm_client = LLMClient.from_settings(settings)
    return _llm_client
