"""Routes tool calls to registered tools."""

import logging
from typing import Any, Dict, Optional

from ..errors import InvalidInputError
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolOrchestrator:
    """Executes tools by name."""

    def __init__(self, tool_registry: ToolRegistry):
        self.tool_registry = tool_registry

    async def execute_tool(self, tool_name: str, parameters: Optional[Dict[str, Any]] = None):
        """Execute a single tool.

        Returns:
            ToolOutput; an unknown tool yields a failed output with INVALID_INPUT.
        """
        from ..tools.base import ToolOutput

        tool = self.tool_registry.get_tool(tool_name)
        if tool is None:
            logger.warning(f"Call to unknown tool {tool_name!r}")
            error = InvalidInputError(f"Unknown tool: {tool_name}", field="name")
            return ToolOutput(tool_name=tool_name, success=False, error=error.to_dict())

        return await tool.run(parameters or {})
