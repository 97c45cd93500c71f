"""OpenAI (Responses and Chat Completions) and OpenRouter adapters."""

from logging import getLogger
from typing import Any

from httpx import Response

from app.clients.llm.base import ByteStream, LLMAdapter
from app.configs import file_logger, settings
from app.configs.settings import OPENAI_BASE_URL, OPENROUTER_BASE_URL
from app.errors import ProviderError
from app.schemas import PlaygroundRequest

logger = file_logger(getLogger(__name__))

# Model families that reject any temperature other than the default
RESTRICTED_TEMPERATURE_PREFIXES = ("o1", "o3", "o4", "gpt-5")
DEFAULT_TEMPERATURE = 1

JSON_HINT = "Please output valid JSON."
JSON_SCHEMA_FORMAT = {
    "type": "json_schema",
    "name": "response",
    "schema": {"type": "object", "properties": {"result": {"type": "string"}}},
}

REASONING_PARAM = "reasoning_effort"


def restricts_temperature(model: str) -> bool:
    return model.startswith(RESTRICTED_TEMPERATURE_PREFIXES)


def build_responses_payload(request: PlaygroundRequest) -> dict[str, Any]:
    """
    Build a ``/responses`` payload from a playground request.

    ``temperature`` is dropped for restricted model families unless it is
    the default. ``text.format`` is only sent for the JSON modes, and a
    ``json_object`` request whose messages never mention JSON gets a system
    hint appended, which the API requires. ``reasoning`` is only sent when an
    effort or a summary was asked for.
    """
    messages = [message.model_dump() for message in request.messages]
    text: dict[str, Any] = {}
    if request.response_format == "json_object":
        text["format"] = {"type": "json_object"}
        if not any("json" in message.content.lower() for message in request.messages):
            messages.append({"role": "system", "content": JSON_HINT})
    elif request.response_format == "json_schema":
        text["format"] = JSON_SCHEMA_FORMAT
    if request.verbosity:
        text["verbosity"] = request.verbosity

    payload: dict[str, Any] = {
        "model": request.model,
        "input": messages,
        "store": bool(request.store),
        "include": request.include or [],
        "stream": True,
    }
    if text:
        payload["text"] = text
    if request.reasoning_effort or request.reasoning_summary:
        payload["reasoning"] = {
            "effort": request.reasoning_effort or "medium",
            "summary": request.reasoning_summary or "auto",
        }
    if request.tools:
        payload["tools"] = request.tools
    if request.max_tokens is not None:
        payload["max_output_tokens"] = request.max_tokens
    if request.temperature is not None and not (
        restricts_temperature(request.model) and request.temperature != DEFAULT_TEMPERATURE
    ):
        payload["temperature"] = request.temperature
    return payload


def is_reasoning_error(error: ProviderError) -> bool:
    return (
        REASONING_PARAM in error.detail
        or "Unknown parameter" in error.detail
        or error.param == REASONING_PARAM
    )


def is_role_error(error: ProviderError) -> bool:
    return "does not support 'system'" in error.detail or error.param == "messages[0].role"


def without_reasoning(params: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in params.items() if key != REASONING_PARAM}


def system_as_user(params: dict[str, Any]) -> dict[str, Any]:
    """Remap ``system`` messages to ``user`` for models without a system role."""
    messages = [
        {**message, "role": "user"} if message.get("role") == "system" else message
        for message in params.get("messages", [])
    ]
    return {**params, "messages": messages}


class OpenAIAdapter(LLMAdapter):
    provider = "openai"
    label = "OpenAI"
    base_url = OPENAI_BASE_URL

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def complete(self, request: PlaygroundRequest) -> ByteStream:
        response = await self._send(
            f"{self.base_url}/responses",
            build_responses_payload(request),
            self.headers(),
        )
        return self._relay(response)

    async def chat_completion(self, params: dict[str, Any], *, stream: bool = True) -> Response:
        return await self._send(
            f"{self.base_url}/chat/completions",
            {**params, "stream": stream},
            self.headers(),
            stream=stream,
        )

    async def chat_completion_with_fallback(
        self,
        params: dict[str, Any],
        *,
        stream: bool = True,
    ) -> Response:
        """
        Call chat completions, stepping down once per error class.

        1. Send every parameter.
        2. On an unsupported ``reasoning_effort``, resend without it; if that
           fails on the system role, resend once more with system messages as
           user messages.
        3. On an unsupported system role, resend without ``reasoning_effort``
           and with system messages as user messages.

        Any other failure, or a failure of the last step, propagates as is.
        """
        try:
            return await self.chat_completion(params, stream=stream)
        except ProviderError as first:
            logger.info(f"Chat completion failed on first attempt: {first.detail}")
            if is_reasoning_error(first) and REASONING_PARAM in params:
                reduced = without_reasoning(params)
                logger.info(f"Retrying {params.get('model')} without {REASONING_PARAM}")
                try:
                    return await self.chat_completion(reduced, stream=stream)
                except ProviderError as second:
                    if not is_role_error(second):
                        raise
                    logger.info(f"Retrying {params.get('model')} without the system role")
                    return await self.chat_completion(system_as_user(reduced), stream=stream)
            if is_role_error(first):
                logger.info(f"Retrying {params.get('model')} without the system role")
                return await self.chat_completion(
                    system_as_user(without_reasoning(params)),
                    stream=stream,
                )
            raise


class OpenRouterAdapter(OpenAIAdapter):
    """OpenAI-compatible chat completions through OpenRouter."""

    provider = "openrouter"
    label = "OpenRouter"
    base_url = OPENROUTER_BASE_URL

    def headers(self) -> dict[str, str]:
        return {
            **super().headers(),
            "HTTP-Referer": settings.OPENROUTER_REFERER,
            "X-Title": settings.OPENROUTER_TITLE,
        }

    async def complete(self, request: PlaygroundRequest) -> ByteStream:
        params: dict[str, Any] = {
            "model": request.model,
            "messages": [message.model_dump() for message in request.messages],
        }
        if request.temperature is not None:
            params["temperature"] = request.temperature
        if request.max_tokens is not None:
            params["max_tokens"] = request.max_tokens
        return self._relay(await self.chat_completion(params))
