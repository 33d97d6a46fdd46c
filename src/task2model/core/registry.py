"""Tool registry: discovers tool modules and binds them to the app context."""

import importlib
import inspect
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Type

from .context import AppContext

if TYPE_CHECKING:
    from ..tools.base import MCPTool

logger = logging.getLogger(__name__)

TOOLS_PACKAGE = "task2model.tools"


class ToolRegistry:
    """Registry for discovering and managing tools."""

    def __init__(self, context: AppContext):
        self.context = context
        self._tools: Dict[str, "MCPTool"] = {}

    def discover_tools(self, tools_path: Optional[Path] = None) -> None:
        """Import every module in the tools package and register its MCPTool subclasses."""
        from ..tools.base import MCPTool

        if tools_path is None:
            tools_path = Path(__file__).parent.parent / "tools"

        logger.info(f"Discovering tools in {tools_path}")
        for tool_file in sorted(tools_path.glob("*.py")):
            if tool_file.name.startswith("_") or tool_file.name == "base.py":
                continue

            module_name = f"{TOOLS_PACKAGE}.{tool_file.stem}"
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                logger.error(f"Failed to import tool module {module_name}: {e}")
                continue

            for _, obj in inspect.getmembers(module, inspect.isclass):
                if (
                    issubclass(obj, MCPTool)
                    and obj is not MCPTool
                    and not inspect.isabstract(obj)
                    and obj.__module__ == module.__name__
                ):
                    self.register(obj)

    def register(self, tool_class: Type["MCPTool"]) -> None:
        tool = tool_class(self.context)
        if tool.name in self._tools:
            logger.warning(f"Tool {tool.name} already registered, skipping")
            return
        self._tools[tool.name] = tool
        logger.info(f"Registered tool: {tool.name}")

    def get_tool(self, name: str) -> Optional["MCPTool"]:
        return self._tools.get(name)

    def list_tools(self) -> List[str]:
        return list(self._tools.keys())

    def get_mcp_tool_definitions(self) -> List[Dict]:
        return [tool.get_mcp_definition() for tool in self._tools.values()]
