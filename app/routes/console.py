"""Admin AI console routes: provider registry and chat with server-held keys."""

from logging import getLogger

from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse, StreamingResponse
from starlette.responses import Response

from app.clients.llm import SSE_HEADERS
from app.configs import file_logger
from app.decorators import timed
from app.dependencies import AdminDep, ConsoleServiceDep
from app.managers import limiter
from app.schemas import ConsoleChatRequest

logger = file_logger(getLogger(__name__))

router = APIRouter(prefix="/console", tags=["💬 Console"])


@router.get(
    "/providers",
    response_class=ORJSONResponse,
    summary="List console providers",
    description="Providers with their models and whether a server key is configured.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [
                            {
                                "id": "openai",
                                "name": "OpenAI",
                                "description": "GPT-4o, GPT-4, and GPT-3.5 models from OpenAI",
                                "models": [{"id": "gpt-4o", "name": "GPT-4o", "isDefault": True}],
                                "isConfigured": True,
                            },
                        ],
                    },
                },
            },
        },
    },
    operation_id="console_providers",
)
@timed("/console/providers")
async def list_providers(service: ConsoleServiceDep, admin: AdminDep) -> ORJSONResponse:
    """List providers and models."""
    return ORJSONResponse(content={"success": True, "data": service.providers()})


@router.post(
    "/chat",
    response_class=ORJSONResponse,
    summary="Chat through the console",
    description=(
        "With `stream: false` the answer is one JSON object. With `stream: true` the "
        "response is an event stream of `chunk` events, then `done` or `error`."
    ),
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            "id": "chatcmpl-123",
                            "content": "Hello! How can I help?",
                            "model": "gpt-4o",
                            "provider": "openai",
                            "usage": {"promptTokens": 9, "completionTokens": 7, "totalTokens": 16},
                            "finishReason": "stop",
                            "latencyMs": 812,
                        },
                    },
                },
                "text/event-stream": {
                    "example": 'data: {"type":"chunk","data":{"id":"chatcmpl-123","content":"Hel","done":false}}\n\n'
                    'data: {"type":"done","latencyMs":812}\n\n',
                },
            },
        },
        400: {
            "description": "Unknown provider or model",
            "content": {
                "application/json": {
                    "example": {"success": False, "error": "Model gpt-9 not found for provider openai"},
                },
            },
        },
        401: {
            "description": "No server key for the provider",
            "content": {
                "application/json": {
                    "example": {"success": False, "error": "openai API key not configured", "provider": "openai"},
                },
            },
        },
    },
    operation_id="console_chat",
)
@timed("/console/chat")
@limiter.limit("30/minute")
async def chat(
    request: Request,
    body: ConsoleChatRequest,
    service: ConsoleServiceDep,
    admin: AdminDep,
) -> Response:
    """
    Send a conversation to the selected provider.

    Returns
    -------
    Response
        JSON answer, or an event stream when ``stream`` is set.
    """
    logger.info(f"Console chat to {body.provider}/{body.model} by {admin.get('email')}")
    if body.stream:
        stream = await service.stream(body)
        return StreamingResponse(stream, media_type="text/event-stream", headers=SSE_HEADERS)
    return ORJSONResponse(content=await service.chat(body))
