"""Shared plumbing for the LLM provider adapters."""

from abc import ABC, abstractmethod
from codecs import getincrementaldecoder
from collections.abc import AsyncIterator, Mapping
from logging import getLogger
from typing import Any, ClassVar

from httpx import AsyncClient, HTTPError, Response
from orjson import JSONDecodeError, dumps, loads

from app.configs import file_logger
from app.errors import ProviderError, ProviderNetworkError
from app.managers import metrics_manager
from app.schemas import PlaygroundRequest

logger = file_logger(getLogger(__name__))

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}
DONE_FRAME = b"data: [DONE]\n\n"

type ByteStream = AsyncIterator[bytes]


def sse_frame(payload: Any) -> bytes:
    """Encode one server-sent event carrying ``payload`` as JSON."""
    return b"data: " + dumps(payload) + b"\n\n"


async def sse_data(stream: ByteStream) -> AsyncIterator[str]:
    """
    Yield the ``data:`` payloads of a server-sent event stream.

    Lines and multibyte characters may be split across chunks; the decoder
    keeps incomplete UTF-8 sequences and the buffer keeps partial lines until
    the rest arrives.
    """
    decoder = getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    async for chunk in stream:
        buffer += decoder.decode(chunk)
        *lines, buffer = buffer.split("\n")
        for line in lines:
            text = line.strip()
            if text.startswith("data:"):
                yield text.removeprefix("data:").strip()
    text = (buffer + decoder.decode(b"", final=True)).strip()
    if text.startswith("data:"):
        yield text.removeprefix("data:").strip()


def error_message(body: Any, default: str) -> str:
    """Pull the provider's own message out of an error body."""
    if not isinstance(body, Mapping):
        return default
    error = body.get("error")
    if isinstance(error, str):
        return error
    if isinstance(error, Mapping):
        return str(error.get("message") or dumps(error).decode())
    return str(body.get("message") or default)


class LLMAdapter(ABC):
    """
    Translate a ``PlaygroundRequest`` into one provider's native call.

    ``complete`` returns only once the provider has accepted the request, so
    errors are raised before any byte is streamed to the caller and can be
    answered with a JSON error instead of a broken event stream.
    """

    provider: ClassVar[str]
    label: ClassVar[str]

    def __init__(self, api_key: str, client: AsyncClient) -> None:
        self.api_key = api_key
        self.client = client

    @abstractmethod
    async def complete(self, request: PlaygroundRequest) -> ByteStream:
        """Start the completion and return its server-sent event byte stream."""

    async def _send(
        self,
        url: str,
        payload: dict[str, Any],
        headers: Mapping[str, str],
        *,
        stream: bool = True,
    ) -> Response:
        metrics_manager.record_llm_request(self.provider)
        request = self.client.build_request("POST", url, json=payload, headers=dict(headers))
        try:
            response = await self.client.send(request, stream=stream)
        except HTTPError as e:
            logger.error(f"{self.label} request failed: {e}")
            raise ProviderNetworkError(f"{self.label} API unreachable", provider=self.provider) from e
        if response.is_error:
            await response.aread()
            await response.aclose()
            raise self._error(response)
        return response

    def _error(self, response: Response) -> ProviderError:
        try:
            body = loads(response.content)
        except JSONDecodeError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        return ProviderError(
            error_message(body, f"{self.label} API error: {response.status_code}"),
            response.status_code,
            provider=self.provider,
            param=error.get("param") if isinstance(error, dict) else None,
            details=body,
        )

    @staticmethod
    async def _relay(response: Response) -> ByteStream:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()
