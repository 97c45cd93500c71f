"""Gemini adapter over the google-genai SDK."""

from logging import getLogger
from typing import Any

from google.genai import Client
from google.genai.errors import APIError
from google.genai.types import (
    Content,
    GenerateContentConfig,
    GenerateContentResponse,
    GoogleSearch,
    Part,
    ThinkingConfig,
    Tool,
    ToolCodeExecution,
    UrlContext,
)
from httpx import AsyncClient
from starlette.status import HTTP_404_NOT_FOUND, HTTP_500_INTERNAL_SERVER_ERROR

from app.clients.llm.base import DONE_FRAME, ByteStream, LLMAdapter, sse_frame
from app.configs import file_logger
from app.errors import ProviderError
from app.managers import metrics_manager
from app.schemas import PlaygroundRequest

logger = file_logger(getLogger(__name__))

# Models whose thinking budget is left to the model when thinking is not requested
DYNAMIC_THINKING_MODELS = ("gemini-2.5-pro", "gemini-flash-latest")
MAX_LISTED_MODELS = 20


def build_contents(request: PlaygroundRequest) -> tuple[list[Content], str | None]:
    """Split messages into SDK contents (``assistant`` → ``model``) and the system instruction."""
    system: str | None = None
    contents: list[Content] = []
    for message in request.messages:
        if message.role in ("system", "developer"):
            system = message.content
            continue
        contents.append(
            Content(
                role="model" if message.role == "assistant" else "user",
                parts=[Part(text=message.content)],
            ),
        )
    return contents, system


def build_config(request: PlaygroundRequest, system: str | None) -> GenerateContentConfig:
    tools: list[Tool] = []
    if request.web_search:
        tools.append(Tool(google_search=GoogleSearch()))
    if request.code_execution:
        tools.append(Tool(code_execution=ToolCodeExecution()))
    if request.url_context:
        tools.append(Tool(url_context=UrlContext()))

    thinking: ThinkingConfig | None = None
    if request.thinking:
        thinking = ThinkingConfig(include_thoughts=True)
    elif any(name in request.model for name in DYNAMIC_THINKING_MODELS):
        thinking = ThinkingConfig(thinking_budget=-1)

    return GenerateContentConfig(
        temperature=request.temperature,
        max_output_tokens=request.max_tokens,
        system_instruction=system,
        response_modalities=["IMAGE", "TEXT"] if "image" in request.model else None,
        tools=tools or None,
        thinking_config=thinking,
    )


def chunk_payload(chunk: GenerateContentResponse) -> dict[str, Any]:
    """Reduce one SDK chunk to the ``candidates``/``usageMetadata`` shape clients parse."""
    payload: dict[str, Any] = {}
    if chunk.text:
        payload["candidates"] = [{"content": {"parts": [{"text": chunk.text}]}}]
    if chunk.usage_metadata:
        payload["usageMetadata"] = chunk.usage_metadata.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
        )
    return payload


class GeminiAdapter(LLMAdapter):
    provider = "gemini"
    label = "Gemini"

    def __init__(
        self,
        api_key: str,
        client: AsyncClient,
        genai: Client | None = None,
    ) -> None:
        super().__init__(api_key, client)
        self.genai = genai or Client(api_key=api_key)

    async def complete(self, request: PlaygroundRequest) -> ByteStream:
        contents, system = build_contents(request)
        metrics_manager.record_llm_request(self.provider)
        try:
            stream = await self.genai.aio.models.generate_content_stream(
                model=request.model,
                contents=contents,
                config=build_config(request, system),
            )
        except APIError as e:
            raise await self._sdk_error(e) from e
        return self._frames(stream)

    async def _frames(self, stream: Any) -> ByteStream:
        try:
            async for chunk in stream:
                payload = chunk_payload(chunk)
                if payload:
                    yield sse_frame(payload)
        except APIError as e:
            logger.error(f"Gemini stream broke off: {e.message}")
            yield sse_frame({"error": {"message": e.message or "Gemini stream failed", "code": e.code}})
        # Terminated either way so the caller can close its reader
        yield DONE_FRAME

    async def _sdk_error(self, error: APIError) -> ProviderError:
        message = error.message or str(error)
        if error.code == HTTP_404_NOT_FOUND or "not found" in message.lower():
            available = await self._model_names()
            if available:
                message += f"\nAvailable models (partial): {', '.join(available)}"
        return ProviderError(
            message,
            error.code or HTTP_500_INTERNAL_SERVER_ERROR,
            provider=self.provider,
            details=error.details,
        )

    async def _model_names(self) -> list[str]:
        names: list[str] = []
        try:
            async for model in await self.genai.aio.models.list():
                if model.name:
                    names.append(model.name)
                if len(names) >= MAX_LISTED_MODELS:
                    break
        except APIError as e:
            logger.warning(f"Could not list Gemini models: {e.message}")
        return names
