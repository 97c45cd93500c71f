"""LLM provider adapters, selected by provider id."""

from httpx import AsyncClient

from app.clients.llm.anthropic import AnthropicAdapter
from app.clients.llm.base import DONE_FRAME, SSE_HEADERS, ByteStream, LLMAdapter, sse_data, sse_frame
from app.clients.llm.gemini import GeminiAdapter
from app.clients.llm.openai import OpenAIAdapter, OpenRouterAdapter
from app.errors import NotFoundError

ADAPTERS: dict[str, type[LLMAdapter]] = {
    adapter.provider: adapter
    for adapter in (OpenAIAdapter, AnthropicAdapter, GeminiAdapter, OpenRouterAdapter)
}


def get_adapter(provider: str, api_key: str, client: AsyncClient) -> LLMAdapter:
    """
    Instantiate the adapter registered for ``provider``.

    Raises:
        NotFoundError: If no adapter is registered under that id
    """
    adapter = ADAPTERS.get(provider)
    if adapter is None:
        raise NotFoundError(f"Unknown provider: {provider}")
    return adapter(api_key, client)


__all__ = [
    "ADAPTERS",
    "DONE_FRAME",
    "SSE_HEADERS",
    "AnthropicAdapter",
    "ByteStream",
    "GeminiAdapter",
    "LLMAdapter",
    "OpenAIAdapter",
    "OpenRouterAdapter",
    "get_adapter",
    "sse_data",
    "sse_frame",
]
