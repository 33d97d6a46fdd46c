"""
MCP server entry point wiring configuration, caches, tools and the JSON-RPC loop.
"""

import asyncio
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from . import __version__
from .config import Settings, load_env_file
from .core.context import AppContext
from .core.orchestrator import ToolOrchestrator
from .core.registry import ToolRegistry
from .json_rpc import (
    ERROR_INVALID_PARAMS,
    JsonRpcServer,
    create_error_response,
    create_result_response,
    create_text_content,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "openrouter-task2model"
PROTOCOL_VERSION = "2024-11-05"


class Task2ModelServer:
    """MCP server exposing sync_catalog, get_model_profile and task2model."""

    def __init__(self, settings: Optional[Settings] = None, context: Optional[AppContext] = None):
        self.settings = settings or Settings.from_env()
        self.context = context or AppContext.create(self.settings)
        self.tool_registry = ToolRegistry(self.context)
        self.tool_registry.discover_tools()
        self.orchestrator = ToolOrchestrator(self.tool_registry)

        # One loop for the process so un-awaited cache writes keep running between calls.
        self.loop = asyncio.new_event_loop()

        self.server = JsonRpcServer(SERVER_NAME)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        self.server.register_handler("initialize", self.handle_initialize)
        self.server.register_handler("ping", self.handle_ping)
        self.server.register_handler("tools/list", self.handle_tools_list)
        self.server.register_handler("tools/call", self.handle_tool_call)

    def handle_initialize(self, request_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        key_status = self.context.client.api_key_status()
        logger.info(f"Client initialized; API key {key_status['format']}")
        return create_result_response(
            request_id,
            {
                "protocolVersion": PROTOCOL_VERSION,
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
                "capabilities": {"tools": {}},
            },
        )

    def handle_ping(self, request_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        return create_result_response(request_id, {})

    def handle_tools_list(self, request_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        return create_result_response(
            request_id, {"tools": self.tool_registry.get_mcp_tool_definitions()}
        )

    def handle_tool_call(self, request_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = params.get("name", "")
        arguments = params.get("arguments") or {}

        if not tool_name:
            return create_error_response(request_id, ERROR_INVALID_PARAMS, "Tool name is required")
        if not isinstance(arguments, dict):
            return create_error_response(
                request_id, ERROR_INVALID_PARAMS, "Tool arguments must be an object"
            )

        output = self.loop.run_until_complete(
            self.orchestrator.execute_tool(tool_name, arguments)
        )
        payload = output.result if output.success else output.error
        logger.debug(f"Tool {tool_name} finished (success={output.success})")

        return create_result_response(
            request_id,
            {
                "content": [create_text_content(json.dumps(payload, indent=2, default=str))],
                "isError": not output.success,
            },
        )

    def run(self) -> None:
        """Hydrate caches, serve until EOF, then flush pending writes."""
        logger.info(f"Starting task2model MCP server v{__version__}")
        try:
            self.loop.run_until_complete(self.context.initialize())
            self.server.run()
        finally:
            self.close()

    def close(self) -> None:
        if self.loop.is_closed():
            return
        self.loop.run_until_complete(self.context.shutdown())
        self.loop.close()


def configure_logging(settings: Settings) -> None:
    """Log to stderr (stdout carries the protocol) and a rotating file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    log_path = settings.log_path
    try:
        os.makedirs(log_path.parent, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_path,
                mode="a",
                encoding="utf-8",
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
            )
        )
    except OSError as e:
        print(f"Could not open log file {log_path}: {e}", file=sys.stderr)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    load_env_file()
    settings = Settings.from_env()
    configure_logging(settings)
    logger.info(f"Logging to file: {settings.log_path}")

    try:
        Task2ModelServer(settings).run()
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
