"""
Line-delimited JSON-RPC 2.0 over stdio for the MCP transport.
"""

import json
import logging
import sys
from typing import IO, Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
ERROR_PARSE = -32700
ERROR_INVALID_REQUEST = -32600
ERROR_METHOD_NOT_FOUND = -32601
ERROR_INVALID_PARAMS = -32602
ERROR_INTERNAL = -32603

Handler = Callable[[Any, Dict[str, Any]], Dict[str, Any]]


class JsonRpcRequest:
    """JSON-RPC 2.0 request or notification."""

    def __init__(self, data: Any):
        if not isinstance(data, dict):
            raise ValueError("Request must be a JSON object")
        self.jsonrpc = data.get("jsonrpc", JSONRPC_VERSION)
        self.method = data.get("method")
        self.params = data.get("params") or {}
        self.id = data.get("id")
        self.is_notification = "id" not in data

        if self.jsonrpc != JSONRPC_VERSION:
            raise ValueError(f"Invalid JSON-RPC version: {self.jsonrpc}")
        if not self.method or not isinstance(self.method, str):
            raise ValueError("Missing method")
        if not isinstance(self.params, dict):
            raise ValueError("params must be an object")


def create_error_response(
    request_id: Any, code: int, message: str, data: Any = None
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def create_result_response(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def create_text_content(text: str) -> Dict[str, str]:
    return {"type": "text", "text": text}


class JsonRpcServer:
    """
    A synchronous JSON-RPC 2.0 server over stdio.
    Handlers return a complete response dict; notifications get no reply.
    """

    def __init__(
        self,
        server_name: str,
        stdin: Optional[IO[str]] = None,
        stdout: Optional[IO[str]] = None,
    ):
        self.server_name = server_name
        self._stdin = stdin
        self._stdout = stdout
        self._handlers: Dict[str, Handler] = {}
        self._running = False

    def register_handler(self, method: str, handler: Handler) -> None:
        logger.debug(f"Registering handler for method: {method}")
        self._handlers[method] = handler

    def _write_message(self, message: Dict[str, Any]) -> None:
        out = self._stdout or sys.stdout
        out.write(json.dumps(message, default=str) + "\n")
        out.flush()

    def process_request(self, request_str: str) -> Optional[Dict[str, Any]]:
        """Handle one raw message and return the response, if any."""
        try:
            data = json.loads(request_str)
        except json.JSONDecodeError as e:
            return create_error_response(None, ERROR_PARSE, f"Parse error: {e}")

        try:
            request = JsonRpcRequest(data)
        except ValueError as e:
            request_id = data.get("id") if isinstance(data, dict) else None
            return create_error_response(request_id, ERROR_INVALID_REQUEST, str(e))

        handler = self._handlers.get(request.method)
        if handler is None:
            if request.is_notification:
                logger.debug(f"Ignoring notification: {request.method}")
                return None
            return create_error_response(
                request.id, ERROR_METHOD_NOT_FOUND, f"Method not found: {request.method}"
            )

        try:
            response = handler(request.id, request.params)
        except Exception as e:
            logger.error(f"Handler error for {request.method}: {e}", exc_info=True)
            response = create_error_response(request.id, ERROR_INTERNAL, f"Internal error: {e}")

        return None if request.is_notification else response

    def run(self) -> None:
        """Read requests line by line until EOF or stop()."""
        logger.info(f"Starting JSON-RPC server '{self.server_name}'...")
        stdin = self._stdin or sys.stdin
        self._running = True

        while self._running:
            try:
                line = stdin.readline()
            except KeyboardInterrupt:
                logger.info("Keyboard interrupt, shutting down")
                break
            if not line:
                logger.info("EOF reached, shutting down")
                break

            line = line.strip()
            if not line:
                continue

            response = self.process_request(line)
            if response is not None:
                self._write_message(response)

        logger.info("Server stopped")

    def stop(self) -> None:
        self._running = False
