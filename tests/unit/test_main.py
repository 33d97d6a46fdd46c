"""
Tests for the main MCP server implementation.
"""

import json
import logging
from unittest.mock import patch

import pytest

from task2model import __version__
from task2model.config import Settings
from task2model.core.context import AppContext
from task2model.json_rpc import ERROR_INVALID_PARAMS
from task2model.main import Task2ModelServer, configure_logging, main
from tests.fixtures import FIXED_NOW, FakeOpenRouterClient, make_record


@pytest.fixture
def server(memory_store):
    client = FakeOpenRouterClient(records=[make_record("a/b", supported_parameters=["tools"])])
    settings = Settings()
    context = AppContext.create(settings, client=client, store=memory_store, now=lambda: FIXED_NOW)
    server = Task2ModelServer(settings, context=context)
    yield server
    server.close()


class TestTask2ModelServer:
    """Test the Task2ModelServer class."""

    def test_setup_handlers(self, server):
        """Test that JSON-RPC handlers are registered."""
        assert set(server.server._handlers) == {"initialize", "ping", "tools/list", "tools/call"}

    def test_initialize(self, server):
        response = server.handle_initialize(1, {})

        assert response["result"]["serverInfo"] == {
            "name": "openrouter-task2model",
            "version": __version__,
        }
        assert response["result"]["capabilities"] == {"tools": {}}

    def test_tools_list(self, server):
        response = server.handle_tools_list(2, {})

        names = {tool["name"] for tool in response["result"]["tools"]}
        assert names == {"sync_catalog", "get_model_profile", "task2model"}

    def test_tool_call_success(self, server):
        response = server.handle_tool_call(3, {"name": "sync_catalog", "arguments": {}})

        result = response["result"]
        assert result["isError"] is False
        payload = json.loads(result["content"][0]["text"])
        assert payload["model_count"] == 1
        assert payload["source"] == "live"

    def test_tool_call_structured_error(self, server):
        """Test tool failures come back as isError content, not protocol errors."""
        response = server.handle_tool_call(
            4, {"name": "get_model_profile", "arguments": {"model_id": "x/unknown"}}
        )

        result = response["result"]
        assert result["isError"] is True
        assert json.loads(result["content"][0]["text"])["code"] == "INVALID_INPUT"

    def test_tool_call_without_name(self, server):
        response = server.handle_tool_call(5, {})

        assert response["error"]["code"] == ERROR_INVALID_PARAMS

    def test_tool_call_bad_arguments(self, server):
        response = server.handle_tool_call(6, {"name": "task2model", "arguments": [1]})

        assert response["error"]["code"] == ERROR_INVALID_PARAMS

    def test_calls_share_the_catalog_cache(self, server):
        """Test consecutive calls on one server reuse the cached catalog."""
        server.handle_tool_call(7, {"name": "sync_catalog", "arguments": {}})
        response = server.handle_tool_call(8, {"name": "sync_catalog", "arguments": {}})

        payload = json.loads(response["result"]["content"][0]["text"])
        assert payload["source"] == "cache"

    def test_close_flushes_cache(self, server, memory_store):
        server.handle_tool_call(9, {"name": "sync_catalog", "arguments": {}})

        server.close()

        assert memory_store.blobs["meta"]["model_count"] == 1
        assert server.context.client.closed
        assert server.loop.is_closed()


class TestLogging:
    def test_configure_logging(self, tmp_path):
        settings = Settings(log_level=logging.DEBUG, log_file=tmp_path / "logs" / "t2m.log")

        configure_logging(settings)

        assert logging.getLogger().level == logging.DEBUG
        assert (tmp_path / "logs").is_dir()
        assert logging.getLogger("httpx").level == logging.WARNING


class TestMain:
    @patch("task2model.main.Task2ModelServer")
    @patch("task2model.main.configure_logging")
    @patch("task2model.main.load_env_file")
    def test_main_runs_server(self, mock_load_env, mock_logging, mock_server):
        main()

        mock_load_env.assert_called_once()
        mock_logging.assert_called_once()
        mock_server.return_value.run.assert_called_once()

    @patch("task2model.main.Task2ModelServer")
    @patch("task2model.main.configure_logging")
    @patch("task2model.main.load_env_file")
    def test_main_exits_on_error(self, mock_load_env, mock_logging, mock_server):
        mock_server.return_value.run.side_effect = RuntimeError("boom")

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
