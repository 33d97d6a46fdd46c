"""Core components of the task2model server."""

from .assembler import ResultAssembler, build_skeleton, price_range
from .context import AppContext
from .orchestrator import ToolOrchestrator
from .recommender import Recommender
from .registry import ToolRegistry

__all__ = [
    "AppContext",
    "Recommender",
    "ResultAssembler",
    "ToolOrchestrator",
    "ToolRegistry",
    "build_skeleton",
    "price_range",
]
