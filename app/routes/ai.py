"""
AI playground routes.

The caller brings their own provider key as ``Authorization: Bearer`` and
gets the provider's event stream back. Provider errors raised before the
first byte (bad key, unknown model, bad parameter) are answered as JSON
with the provider's own status and message.
"""

from logging import getLogger

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from app.clients.llm import ADAPTERS, SSE_HEADERS, get_adapter
from app.configs import file_logger
from app.decorators import timed
from app.dependencies import LLMClientDep, ProviderKeyDep
from app.managers import limiter
from app.schemas import PlaygroundRequest

logger = file_logger(getLogger(__name__))

router = APIRouter(prefix="/ai-playground", tags=["🤖 AI Playground"])


@router.post(
    "/{provider}",
    response_class=StreamingResponse,
    summary="Stream a completion from a provider",
    description=f"`provider` is one of {', '.join(f'`{name}`' for name in ADAPTERS)}.",
    responses={
        200: {
            "content": {
                "text/event-stream": {
                    "example": 'data: {"type":"response.output_text.delta","delta":"Hel"}\n\ndata: [DONE]\n\n',
                },
            },
        },
        401: {
            "description": "No provider key, or the provider rejected it",
            "content": {
                "application/json": {
                    "example": {"success": False, "error": "API key is required", "provider": "openai"},
                },
            },
        },
        404: {
            "description": "Unknown provider",
            "content": {"application/json": {"example": {"success": False, "error": "Unknown provider: foo"}}},
        },
        429: {
            "description": "Rate limit exceeded",
            "content": {"application/json": {"example": {"success": False, "error": "Rate limit exceeded"}}},
        },
    },
    operation_id="ai_playground_complete",
)
@timed("/ai-playground")
@limiter.limit("20/minute")
async def complete(
    request: Request,
    provider: str,
    body: PlaygroundRequest,
    api_key: ProviderKeyDep,
    client: LLMClientDep,
) -> StreamingResponse:
    """
    Start a completion and relay the provider's event stream.

    Parameters
    ----------
    request : Request
        Current request context (rate limiting).
    provider : str
        Provider id.
    body : PlaygroundRequest
        Normalized chat request.
    api_key : str
        Caller's provider key.
    client : AsyncClient
        Shared HTTP client for provider calls.

    Returns
    -------
    StreamingResponse
        ``text/event-stream`` relay.

    Raises
    ------
    ProviderAuthError
        If no key was supplied.
    ProviderError
        If the provider refused the request.
    """
    adapter = get_adapter(provider, api_key, client)
    logger.info(f"Playground request to {adapter.label} model {body.model}")
    stream = await adapter.complete(body)
    return StreamingResponse(stream, media_type="text/event-stream", headers=SSE_HEADERS)
