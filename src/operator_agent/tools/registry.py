"""The closed tool catalogue."""

from collections.abc import Iterable, Iterator
from typing import Any

from ..exceptions import ToolNotFoundError
from ..types import SideEffect
from .base import BaseTool, WriteTool


class ToolCatalogue:
    """Immutable name -> tool mapping built once at startup."""

    def __init__(self, tools: Iterable[BaseTool]):
        by_name: dict[str, BaseTool] = {}
        for tool in tools:
            if tool.name in by_name:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            by_name[tool.name] = tool
        self._tools = by_name

    def get(self, name: str) -> BaseTool:
        """Get a tool by name.

        Raises:
            ToolNotFoundError: If no tool has that name.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def get_write_tool(self, name: str) -> WriteTool:
        tool = self.get(name)
        if not isinstance(tool, WriteTool):
            raise ToolNotFoundError(name)
        return tool

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def by_side_effect(self, side_effect: SideEffect) -> list[BaseTool]:
        return [t for t in self._tools.values() if t.side_effect == side_effect]

    def schemas(self) -> list[dict[str, Any]]:
        return [t.to_schema() for t in self._tools.values()]

    def __iter__(self) -> Iterator[BaseTool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)


def build_catalogue(tools: Iterable[BaseTool] | None = None) -> ToolCatalogue:
    """Build the catalogue; defaults to the full operator tool set."""
    if tools is None:
        from . import get_default_tools

        tools = get_default_tools()
    return ToolCatalogue(tools)
