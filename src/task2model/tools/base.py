"""Base class for MCP tools."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.context import AppContext
from ..errors import Task2ModelError

logger = logging.getLogger(__name__)


@dataclass
class ToolOutput:
    """Result of a tool call: a JSON-serializable payload or a structured error."""

    tool_name: str
    result: Any = None
    success: bool = True
    error: Optional[Dict[str, Any]] = None
    execution_time_ms: Optional[float] = None


class MCPTool(ABC):
    """A tool exposed over MCP, bound to the shared application context."""

    def __init__(self, context: AppContext):
        self.context = context

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    @abstractmethod
    def input_schema(self) -> Dict[str, Any]: ...

    @abstractmethod
    async def execute(self, parameters: Dict[str, Any]) -> Any:
        """Run the tool and return its JSON-serializable result.

        Raises:
            Task2ModelError: For any failure the caller should see.
        """
        ...

    async def run(self, parameters: Dict[str, Any]) -> ToolOutput:
        """Execute with timing, turning structured errors into a failed output."""
        start_time = time.time()
        logger.info(f"Executing tool: {self.name}")

        try:
            result = await self.execute(parameters)
        except Task2ModelError as e:
            logger.warning(f"Tool {self.name} failed: {e.code} {e.message}")
            return ToolOutput(
                tool_name=self.name,
                success=False,
                error=e.to_dict(),
                execution_time_ms=(time.time() - start_time) * 1000,
            )

        return ToolOutput(
            tool_name=self.name,
            result=result,
            execution_time_ms=(time.time() - start_time) * 1000,
        )

    def get_mcp_definition(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }
