"""Tool registration and discovery utilities."""

from photostack.core.drawing_context import ToolKind

from .basetool import BaseTool, StrokeResult, StrokeState
from .registry import ToolRegistry

# Global registry instance used throughout the application
registry = ToolRegistry()
registry.load_builtin_tools()
registry.load_external_tools()


def register_tool(tool_cls):
    registry.register_tool(tool_cls)


__all__ = [
    "BaseTool",
    "StrokeResult",
    "StrokeState",
    "ToolKind",
    "ToolRegistry",
    "registry",
    "register_tool",
]
