"""Anthropic Messages API adapter."""

from typing import Any

from httpx import Response

from app.clients.llm.base import ByteStream, LLMAdapter
from app.configs.settings import ANTHROPIC_BASE_URL, ANTHROPIC_VERSION
from app.schemas import PlaygroundRequest

DEFAULT_MAX_TOKENS = 4096


def build_messages_payload(request: PlaygroundRequest) -> dict[str, Any]:
    """
    Build a ``/messages`` payload.

    The Messages API has no system role in the message list: system
    messages are joined with blank lines into the top-level ``system``.
    """
    system_parts: list[str] = []
    messages: list[dict[str, str]] = []
    for message in request.messages:
        if message.role in ("system", "developer"):
            system_parts.append(message.content)
        else:
            messages.append({"role": message.role, "content": message.content})

    payload: dict[str, Any] = {
        "model": request.model,
        "messages": messages,
        "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
        "stream": True,
    }
    if system_parts:
        payload["system"] = "\n\n".join(system_parts)
    if request.thinking:
        payload["thinking"] = request.thinking
    if request.temperature is not None:
        payload["temperature"] = request.temperature
    return payload


class AnthropicAdapter(LLMAdapter):
    provider = "anthropic"
    label = "Anthropic"

    def headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key, "anthropic-version": ANTHROPIC_VERSION}

    async def create_message(self, payload: dict[str, Any], *, stream: bool = True) -> Response:
        return await self._send(
            f"{ANTHROPIC_BASE_URL}/messages",
            {**payload, "stream": stream},
            self.headers(),
            stream=stream,
        )

    async def complete(self, request: PlaygroundRequest) -> ByteStream:
        return self._relay(await self.create_message(build_messages_payload(request)))
