"""Tool definition and tool call schemas."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ErrorKind(str, Enum):
    """Classification of a failed tool call; decides the HTTP outcome."""

    BAD_REQUEST = "bad_request"      # 400
    NOT_FOUND = "not_found"          # 404
    HANDLER_ERROR = "handler_error"  # 200 with isError content


class PropertySchema(BaseModel):
    """JSON-schema description of a single tool parameter."""

    model_config = ConfigDict(frozen=True)

    type: str  # string, number, integer, boolean, object, array
    description: str | None = None
    enum: list[Any] | None = None
    default: Any = None
    minimum: int | float | None = None
    maximum: int | float | None = None


class InputSchema(BaseModel):
    """JSON-schema-shaped input contract of a tool."""

    model_config = ConfigDict(frozen=True)

    type: Literal["object"] = "object"
    properties: dict[str, PropertySchema] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_required(self) -> InputSchema:
        if len(set(self.required)) != len(self.required):
            raise ValueError(f"duplicate names in required: {self.required}")
        undeclared = [name for name in self.required if name not in self.properties]
        if undeclared:
            raise ValueError(f"required names not declared in properties: {undeclared}")
        return self


class ToolDefinition(BaseModel):
    """Definition of a single tool exposed to callers."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str  # e.g. "get_stock_overview"
    title: str = Field(default="", exclude=True)  # label used in error text
    description: str
    input_schema: InputSchema = Field(alias="inputSchema")

    @property
    def label(self) -> str:
        """Sentence-case label, e.g. "Stock overview"."""
        return (self.title or self.name).capitalize()

    def to_native(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_openai(self) -> dict[str, Any]:
        """Wrap as an OpenAI function-calling tool without altering the schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema.model_dump(exclude_none=True),
            },
        }


class ToolCallRequest(BaseModel):
    """A tool call request.

    ``arguments`` stays ``None`` when the caller omitted it, which is distinct
    from an empty object.
    """

    name: str | None = None
    arguments: dict[str, Any] | None = None


class ContentItem(BaseModel):
    """One unit of a tool's result payload."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["text"] = "text"
    text: str
    is_error: bool | None = Field(default=None, alias="isError")


class ToolCallResult(BaseModel):
    """Result envelope of a tool call."""

    content: list[ContentItem]
    error_kind: ErrorKind | None = Field(default=None, exclude=True)

    @classmethod
    def success(cls, text: str) -> ToolCallResult:
        return cls(content=[ContentItem(text=text)])

    @classmethod
    def failure(cls, text: str, kind: ErrorKind) -> ToolCallResult:
        return cls(content=[ContentItem(text=text, is_error=True)], error_kind=kind)

    @property
    def is_error(self) -> bool:
        return self.error_kind is not None

    @property
    def error_text(self) -> str | None:
        if not self.is_error:
            return None
        return self.content[0].text

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
