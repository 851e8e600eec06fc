"""Tool registry - holds the immutable catalog of tool definitions."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable

from shared.schemas.tools import ToolDefinition


class ToolFormat(str, Enum):
    """Output projections of the catalog."""

    NATIVE = "native"
    OPENAI = "openai"

    @classmethod
    def parse(cls, value: str | None) -> ToolFormat:
        """Map a ``?format=`` value; anything but "openai" is native."""
        if value and value.strip().lower() == cls.OPENAI.value:
            return cls.OPENAI
        return cls.NATIVE


class ToolRegistry:
    """Read-only, insertion-ordered collection of tool definitions.

    Built once at startup from a static list. Lookups of unknown names return
    ``None``; turning that into an HTTP outcome is the dispatcher's job.
    """

    def __init__(self, tools: Iterable[ToolDefinition]):
        by_name: dict[str, ToolDefinition] = {}
        for tool in tools:
            if tool.name in by_name:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            by_name[tool.name] = tool
        self._tools = tuple(by_name.values())
        self._by_name = by_name

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def list(self) -> tuple[ToolDefinition, ...]:
        return self._tools

    def names(self) -> list[str]:
        return [tool.name for tool in self._tools]

    def get(self, name: str) -> ToolDefinition | None:
        return self._by_name.get(name)

    def list_as(self, fmt: ToolFormat | str = ToolFormat.NATIVE) -> list[dict[str, Any]]:
        """Project every definition into the requested wire format."""
        fmt = ToolFormat(fmt)
        if fmt is ToolFormat.OPENAI:
            return [tool.to_openai() for tool in self._tools]
        return [tool.to_native() for tool in self._tools]
