"""Tools for the task2model MCP server."""

from .base import MCPTool, ToolOutput
from .get_model_profile import GetModelProfileTool
from .sync_catalog import SyncCatalogTool
from .task2model import Task2ModelTool

__all__ = [
    "GetModelProfileTool",
    "MCPTool",
    "SyncCatalogTool",
    "Task2ModelTool",
    "ToolOutput",
]
