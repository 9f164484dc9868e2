from __future__ import annotations

import importlib
import logging
import os
from importlib.metadata import entry_points
from typing import Dict, Type

from photostack.core.drawing_context import ToolKind

from .basetool import BaseTool


logger = logging.getLogger(__name__)


class ToolRegistry:
    """Maps each :class:`ToolKind` to the tool class that implements it."""

    def __init__(self) -> None:
        self._tools: Dict[ToolKind, Type[BaseTool]] = {}

    # ------------------------------------------------------------------
    def register_tool(self, tool_cls: Type[BaseTool]) -> None:
        """Register a :class:`BaseTool` subclass.

        Parameters
        ----------
        tool_cls:
            The tool class to register. A later registration for the same
            kind replaces the earlier one.
        """

        if not isinstance(tool_cls, type) or not issubclass(tool_cls, BaseTool):
            raise TypeError("tool_cls must be a subclass of BaseTool")
        if tool_cls is BaseTool:
            return
        kind = getattr(tool_cls, "kind", None)
        if not isinstance(kind, ToolKind):
            return
        self._tools[kind] = tool_cls

    # ------------------------------------------------------------------
    def tool_class(self, kind: ToolKind | str) -> Type[BaseTool]:
        kind = ToolKind(kind)
        try:
            return self._tools[kind]
        except KeyError:
            raise LookupError(f"No tool registered for {kind.value}") from None

    def kinds(self) -> list[ToolKind]:
        return [kind for kind in ToolKind if kind in self._tools]

    # ------------------------------------------------------------------
    def load_builtin_tools(self) -> None:
        """Discover and register built-in tools located in this package."""

        tools_dir = os.path.dirname(__file__)
        for filename in sorted(os.listdir(tools_dir)):
            if not filename.endswith("tool.py"):
                continue
            if filename in {"basetool.py", "registry.py"}:
                continue
            module_name = f"{__package__}.{filename[:-3]}"
            module = importlib.import_module(module_name)
            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if (
                    isinstance(attr, type)
                    and issubclass(attr, BaseTool)
                    and attr is not BaseTool
                    and attr.__module__ == module.__name__
                ):
                    self.register_tool(attr)

    # ------------------------------------------------------------------
    def load_external_tools(self) -> None:
        """Load tools provided by external packages via entry points."""

        for ep in entry_points(group="photostack.tools"):
            try:
                tool_cls = ep.load()
            except (ImportError, AttributeError) as e:
                logger.warning("Could not load tool entry point %s: %s", ep.name, e)
                continue
            self.register_tool(tool_cls)
