"""Request bodies for the AI playground and the admin console."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

type ResponseFormat = Literal["text", "json_object", "json_schema"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ChatMessage(BaseModel):
    role: Literal["system", "developer", "user", "assistant"]
    content: str


class PlaygroundRequest(CamelModel):
    """
    Normalized chat request accepted by every playground provider.

    Playground answers are always streamed, so there is no ``stream``
    switch; a client that sends one has it ignored. Each adapter picks the
    fields its provider understands and ignores the rest. ``thinking`` is
    forwarded to Anthropic and switches on thought output for Gemini; it is
    never sent to OpenAI.
    """

    model: str = Field(min_length=1, examples=["gpt-4o"])
    messages: list[ChatMessage] = Field(min_length=1)
    temperature: float | None = Field(default=None, ge=0, le=2)
    max_tokens: int | None = Field(default=None, gt=0)

    # OpenAI Responses API
    response_format: ResponseFormat | None = None
    reasoning_effort: Literal["minimal", "low", "medium", "high"] | None = None
    reasoning_summary: Literal["auto", "concise", "detailed"] | None = None
    verbosity: Literal["low", "medium", "high"] | None = None
    store: bool | None = None
    include: list[str] | None = None
    tools: list[dict[str, Any]] | None = None

    # Anthropic / Gemini
    thinking: dict[str, Any] | None = None

    # Gemini built-in tools
    web_search: bool = False
    code_execution: bool = False
    url_context: bool = False


class ConsoleParameters(CamelModel):
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=4096, gt=0)
    top_p: float = Field(default=1, ge=0, le=1)
    frequency_penalty: float = Field(default=0, ge=-2, le=2)
    presence_penalty: float = Field(default=0, ge=-2, le=2)
    system_prompt: str = ""
    # OpenAI reasoning models only
    reasoning_effort: Literal["minimal", "low", "medium", "high"] | None = None


class ConsoleChatRequest(CamelModel):
    """Admin console chat request, answered with server-held provider keys."""

    messages: list[ChatMessage] = Field(min_length=1)
    model: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    parameters: ConsoleParameters = Field(default_factory=ConsoleParameters)
    stream: bool = False
