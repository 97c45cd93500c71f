"""
Admin AI console.

Unlike the playground, the console answers with server-held provider keys
and normalizes every provider's output into one shape: a single JSON
answer, or a stream of ``chunk`` / ``done`` / ``error`` events.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from logging import getLogger
from time import perf_counter
from typing import Any

from httpx import AsyncClient, HTTPError, Response
from orjson import JSONDecodeError, loads
from starlette.status import HTTP_401_UNAUTHORIZED

from app.clients.llm import AnthropicAdapter, ByteStream, OpenAIAdapter, sse_data, sse_frame
from app.clients.llm.openai import DEFAULT_TEMPERATURE, REASONING_PARAM, restricts_temperature
from app.configs import file_logger, settings
from app.errors import ProviderError, ValidationError
from app.schemas import ConsoleChatRequest

logger = file_logger(getLogger(__name__))


@dataclass(frozen=True, slots=True)
class ModelInfo:
    id: str
    name: str
    context_length: int
    max_output_tokens: int
    input_price_per_million: float
    output_price_per_million: float
    description: str
    capabilities: tuple[str, ...] = ("text",)
    is_default: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "contextLength": self.context_length,
            "maxOutputTokens": self.max_output_tokens,
            "inputPricePerMillion": self.input_price_per_million,
            "outputPricePerMillion": self.output_price_per_million,
            "description": self.description,
            "capabilities": list(self.capabilities),
            "isDefault": self.is_default,
        }


@dataclass(frozen=True, slots=True)
class ConsoleProvider:
    id: str
    name: str
    description: str
    key_setting: str
    models: tuple[ModelInfo, ...] = field(default=())

    def api_key(self) -> str | None:
        secret = getattr(settings, self.key_setting)
        return secret.get_secret_value() if secret else None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key())

    def has_model(self, model_id: str) -> bool:
        return any(model.id == model_id for model in self.models)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "models": [model.to_dict() for model in self.models],
            "isConfigured": self.is_configured,
        }


PROVIDERS: dict[str, ConsoleProvider] = {
    "openai": ConsoleProvider(
        id="openai",
        name="OpenAI",
        description="GPT-4o, GPT-4, and GPT-3.5 models from OpenAI",
        key_setting="OPENAI_API_KEY",
        models=(
            ModelInfo("gpt-4o", "GPT-4o", 128000, 16384, 2.5, 10, "Most capable model, great for complex tasks", ("text", "vision", "function-calling"), is_default=True),
            ModelInfo("gpt-4o-mini", "GPT-4o Mini", 128000, 16384, 0.15, 0.6, "Fast and affordable for most tasks", ("text", "vision", "function-calling")),
            ModelInfo("gpt-4-turbo", "GPT-4 Turbo", 128000, 4096, 10, 30, "Previous generation flagship model", ("text", "vision", "function-calling")),
            ModelInfo("gpt-4", "GPT-4", 8192, 8192, 30, 60, "Original GPT-4 model", ("text", "function-calling")),
            ModelInfo("gpt-3.5-turbo", "GPT-3.5 Turbo", 16385, 4096, 0.5, 1.5, "Fast and cost-effective for simple tasks", ("text", "function-calling")),
            ModelInfo("o1", "o1", 200000, 100000, 15, 60, "Advanced reasoning model", ("text", "reasoning")),
            ModelInfo("o1-mini", "o1 Mini", 128000, 65536, 3, 12, "Smaller reasoning model, faster responses", ("text", "reasoning")),
            ModelInfo("o3-mini", "o3 Mini", 200000, 100000, 1.1, 4.4, "Latest mini reasoning model", ("text", "reasoning")),
        ),
    ),
    "anthropic": ConsoleProvider(
        id="anthropic",
        name="Anthropic",
        description="Claude models from Anthropic - safe and helpful AI",
        key_setting="ANTHROPIC_API_KEY",
        models=(
            ModelInfo("claude-sonnet-4-20250514", "Claude Sonnet 4", 200000, 64000, 3, 15, "Latest Claude Sonnet - balanced performance and speed", is_default=True),
            ModelInfo("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet", 200000, 8192, 3, 15, "Previous Sonnet version - excellent for coding"),
            ModelInfo("claude-3-5-haiku-20241022", "Claude 3.5 Haiku", 200000, 8192, 0.8, 4, "Fast and affordable for simple tasks"),
            ModelInfo("claude-3-opus-20240229", "Claude 3 Opus", 200000, 4096, 15, 75, "Most capable Claude 3 model for complex tasks"),
            ModelInfo("claude-3-sonnet-20240229", "Claude 3 Sonnet", 200000, 4096, 3, 15, "Balanced Claude 3 model"),
            ModelInfo("claude-3-haiku-20240307", "Claude 3 Haiku", 200000, 4096, 0.25, 1.25, "Fastest Claude 3 model"),
        ),
    ),
}


def openai_params(request: ConsoleChatRequest) -> dict[str, Any]:
    parameters = request.parameters
    messages = [{"role": "system", "content": parameters.system_prompt}] if parameters.system_prompt else []
    messages.extend(message.model_dump() for message in request.messages)
    params: dict[str, Any] = {
        "model": request.model,
        "messages": messages,
        "max_tokens": parameters.max_tokens,
        "top_p": parameters.top_p,
        "frequency_penalty": parameters.frequency_penalty,
        "presence_penalty": parameters.presence_penalty,
    }
    if not restricts_temperature(request.model) or parameters.temperature == DEFAULT_TEMPERATURE:
        params["temperature"] = parameters.temperature
    if parameters.reasoning_effort:
        params[REASONING_PARAM] = parameters.reasoning_effort
    return params


def anthropic_payload(request: ConsoleChatRequest) -> dict[str, Any]:
    """Console payload for Anthropic; the conversation has to open with a user turn."""
    parameters = request.parameters
    messages = [
        {"role": message.role, "content": message.content}
        for message in request.messages
        if message.role in ("user", "assistant")
    ]
    if messages and messages[0]["role"] != "user":
        messages.insert(0, {"role": "user", "content": "Hello"})
    payload: dict[str, Any] = {
        "model": request.model,
        "messages": messages,
        "max_tokens": parameters.max_tokens,
        "temperature": parameters.temperature,
        "top_p": parameters.top_p,
    }
    if parameters.system_prompt:
        payload["system"] = parameters.system_prompt
    return payload


def _usage(prompt: int, completion: int) -> dict[str, int]:
    return {"promptTokens": prompt, "completionTokens": completion, "totalTokens": prompt + completion}


def parse_openai(data: dict[str, Any]) -> dict[str, Any]:
    choice = (data.get("choices") or [{}])[0]
    usage = data.get("usage")
    return {
        "id": data.get("id", ""),
        "content": (choice.get("message") or {}).get("content") or "",
        "model": data.get("model", ""),
        "provider": "openai",
        "usage": _usage(usage["prompt_tokens"], usage["completion_tokens"]) if usage else None,
        "finishReason": choice.get("finish_reason"),
    }


def parse_anthropic(data: dict[str, Any]) -> dict[str, Any]:
    usage = data.get("usage") or {}
    return {
        "id": data.get("id", ""),
        "content": "".join(
            block.get("text", "") for block in data.get("content") or [] if block.get("type") == "text"
        ),
        "model": data.get("model", ""),
        "provider": "anthropic",
        "usage": _usage(usage.get("input_tokens", 0), usage.get("output_tokens", 0)),
        "finishReason": data.get("stop_reason"),
    }


async def _events(stream: ByteStream) -> AsyncIterator[dict[str, Any]]:
    async for data in sse_data(stream):
        if not data or data == "[DONE]":
            continue
        try:
            event = loads(data)
        except JSONDecodeError:
            continue
        if isinstance(event, dict):
            yield event


async def openai_chunks(stream: ByteStream) -> AsyncIterator[dict[str, Any]]:
    """Turn a chat-completions event stream into console chunks."""
    response_id = ""
    async for event in _events(stream):
        response_id = event.get("id") or response_id
        choice = (event.get("choices") or [{}])[0]
        content = (choice.get("delta") or {}).get("content") or ""
        finish_reason = choice.get("finish_reason")
        usage = event.get("usage")
        if content or finish_reason:
            yield {
                "id": response_id,
                "content": content,
                "done": bool(finish_reason),
                "finishReason": finish_reason,
                "usage": _usage(usage["prompt_tokens"], usage["completion_tokens"]) if usage else None,
            }


async def anthropic_chunks(stream: ByteStream) -> AsyncIterator[dict[str, Any]]:
    """Turn a Messages API event stream into console chunks."""
    response_id = ""
    input_tokens = output_tokens = 0
    async for event in _events(stream):
        match event.get("type"):
            case "message_start":
                message = event.get("message") or {}
                response_id = message.get("id", "")
                input_tokens = (message.get("usage") or {}).get("input_tokens", 0)
            case "content_block_delta":
                text = (event.get("delta") or {}).get("text")
                if text:
                    yield {"id": response_id, "content": text, "done": False}
            case "message_delta":
                output_tokens = (event.get("usage") or {}).get("output_tokens", output_tokens)
                stop_reason = (event.get("delta") or {}).get("stop_reason")
                if stop_reason:
                    yield {
                        "id": response_id,
                        "content": "",
                        "done": True,
                        "finishReason": stop_reason,
                        "usage": _usage(input_tokens, output_tokens),
                    }


class ConsoleService:
    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    @staticmethod
    def providers() -> list[dict[str, Any]]:
        return [provider.to_dict() for provider in PROVIDERS.values()]

    @staticmethod
    def _provider(request: ConsoleChatRequest) -> tuple[ConsoleProvider, str]:
        """
        Validate the provider and model and return the server-held key.

        Raises:
            ValidationError: Unknown provider or model
            ProviderError: The provider has no key configured (401)
        """
        provider = PROVIDERS.get(request.provider)
        if provider is None:
            raise ValidationError(f"Unknown provider: {request.provider}")
        if not provider.has_model(request.model):
            raise ValidationError(f"Model {request.model} not found for provider {request.provider}")
        api_key = provider.api_key()
        if not api_key:
            raise ProviderError(
                f"{provider.id} API key not configured",
                HTTP_401_UNAUTHORIZED,
                provider=provider.id,
            )
        return provider, api_key

    async def _open(self, request: ConsoleChatRequest, *, stream: bool) -> tuple[str, Response]:
        provider, api_key = self._provider(request)
        if provider.id == "anthropic":
            adapter = AnthropicAdapter(api_key, self.client)
            return provider.id, await adapter.create_message(anthropic_payload(request), stream=stream)
        openai = OpenAIAdapter(api_key, self.client)
        return provider.id, await openai.chat_completion_with_fallback(openai_params(request), stream=stream)

    async def chat(self, request: ConsoleChatRequest) -> dict[str, Any]:
        start = perf_counter()
        provider, response = await self._open(request, stream=False)
        data = loads(response.content)
        answer = parse_anthropic(data) if provider == "anthropic" else parse_openai(data)
        answer["latencyMs"] = round((perf_counter() - start) * 1000)
        return {"success": True, "data": answer}

    async def stream(self, request: ConsoleChatRequest) -> ByteStream:
        """Open the upstream stream, then return it re-framed as console events."""
        start = perf_counter()
        provider, response = await self._open(request, stream=True)
        chunks = anthropic_chunks if provider == "anthropic" else openai_chunks
        return self._frames(provider, chunks(OpenAIAdapter._relay(response)), start)

    @staticmethod
    async def _frames(
        provider: str,
        chunks: AsyncIterator[dict[str, Any]],
        start: float,
    ) -> ByteStream:
        try:
            async for chunk in chunks:
                yield sse_frame({"type": "chunk", "data": chunk})
        except HTTPError as e:
            logger.error(f"Console stream from {provider} broke off: {e}")
            yield sse_frame({"type": "error", "error": str(e) or "Stream interrupted", "provider": provider})
            return
        yield sse_frame({"type": "done", "latencyMs": round((perf_counter() - start) * 1000)})
