from __future__ import annotations

import asyncio
from typing import Any

from fsmcp.mcp.dispatcher import OperationDispatcher
from fsmcp.mcp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    ProtocolCore,
    is_initialize_request,
)
from fsmcp.mcp.registry import ToolRegistry


def initialize_message(version: str = "2025-03-26", request_id: int = 1) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "initialize",
        "params": {
            "protocolVersion": version,
            "capabilities": {},
            "clientInfo": {"name": "test-client", "version": "0.1.0"},
        },
    }


def make_core(dispatcher: OperationDispatcher | None = None) -> ProtocolCore:
    registry = ToolRegistry()
    return ProtocolCore(
        dispatcher or OperationDispatcher(registry=registry),
        registry,
        server_name="test-server",
        server_version="9.9.9",
        session_id="s1",
    )


def test_initialize_echoes_supported_version() -> None:
    core = make_core()
    response = asyncio.run(core.handle_message(initialize_message("2025-03-26")))
    result = response["result"]
    assert response["id"] == 1
    assert result["protocolVersion"] == "2025-03-26"
    assert result["serverInfo"] == {"name": "test-server", "version": "9.9.9"}
    assert "tools" in result["capabilities"]
    assert core.initialized
    assert core.client_info == {"name": "test-client", "version": "0.1.0"}


def test_initialize_falls_back_to_latest_version() -> None:
    response = asyncio.run(make_core().handle_message(initialize_message("1999-01-01")))
    assert response["result"]["protocolVersion"] == LATEST_PROTOCOL_VERSION


def test_initialize_with_bad_params() -> None:
    message = {"jsonrpc": "2.0", "id": 3, "method": "initialize", "params": {}}
    response = asyncio.run(make_core().handle_message(message))
    assert response["error"]["code"] == INVALID_PARAMS


def test_initialized_notification_has_no_response() -> None:
    core = make_core()
    message = {"jsonrpc": "2.0", "method": "notifications/initialized"}
    assert asyncio.run(core.handle_message(message)) is None
    assert core.client_ready


def test_ping() -> None:
    response = asyncio.run(make_core().handle_message({"jsonrpc": "2.0", "id": "p", "method": "ping"}))
    assert response == {"jsonrpc": "2.0", "id": "p", "result": {}}


def test_tools_list_order() -> None:
    message = {"jsonrpc": "2.0", "id": 2, "method": "tools/list"}
    response = asyncio.run(make_core().handle_message(message))
    names = [tool["name"] for tool in response["result"]["tools"]]
    assert names == ["read_file", "write_file", "list_directory"]


def test_tools_call_unknown_tool_is_success_shaped() -> None:
    message = {
        "jsonrpc": "2.0",
        "id": 4,
        "method": "tools/call",
        "params": {"name": "nope", "arguments": {}},
    }
    response = asyncio.run(make_core().handle_message(message))
    assert "error" not in response
    assert response["result"] == {
        "content": [{"type": "text", "text": "Error: Unknown tool: nope"}],
        "isError": True,
    }


def test_tools_call_requires_name() -> None:
    message = {"jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": {"arguments": {}}}
    response = asyncio.run(make_core().handle_message(message))
    assert response["error"]["code"] == INVALID_PARAMS


def test_tools_call_rejects_non_object_arguments() -> None:
    message = {
        "jsonrpc": "2.0",
        "id": 6,
        "method": "tools/call",
        "params": {"name": "read_file", "arguments": ["a"]},
    }
    response = asyncio.run(make_core().handle_message(message))
    assert response["error"]["code"] == INVALID_PARAMS


def test_unknown_method() -> None:
    response = asyncio.run(make_core().handle_message({"jsonrpc": "2.0", "id": 7, "method": "resources/list"}))
    assert response["error"] == {"code": METHOD_NOT_FOUND, "message": "Method not found: resources/list"}


def test_invalid_messages() -> None:
    core = make_core()
    assert asyncio.run(core.handle_message("hello"))["error"]["code"] == INVALID_REQUEST
    assert asyncio.run(core.handle_message({"id": 1, "method": "ping"}))["error"]["code"] == INVALID_REQUEST
    assert asyncio.run(core.handle_message({"jsonrpc": "2.0", "id": 1}))["error"]["code"] == INVALID_REQUEST
    assert asyncio.run(core.handle_message({"jsonrpc": "2.0", "id": 1, "result": {}})) is None

    for method in ([], {"x": 1}, 7, None):
        response = asyncio.run(core.handle_message({"jsonrpc": "2.0", "id": 5, "method": method}))
        assert response["id"] == 5
        assert response["error"]["code"] == INVALID_REQUEST
    notification = asyncio.run(core.handle_message({"jsonrpc": "2.0", "method": ["x"]}))
    assert notification["error"]["code"] == INVALID_REQUEST


def test_batch() -> None:
    core = make_core()
    batch = [
        {"jsonrpc": "2.0", "id": 1, "method": "ping"},
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
        {"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
    ]
    responses = asyncio.run(core.handle_payload(batch))
    assert [response["id"] for response in responses] == [1, 2]
    assert asyncio.run(core.handle_payload([{"jsonrpc": "2.0", "method": "x"}])) is None
    assert asyncio.run(core.handle_payload([]))["error"]["code"] == INVALID_REQUEST


class ExplodingDispatcher(OperationDispatcher):
    async def invoke(self, tool_name, arguments=None):
        raise RuntimeError("boom")


def test_handler_failure_becomes_internal_error() -> None:
    core = make_core(ExplodingDispatcher())
    message = {
        "jsonrpc": "2.0",
        "id": 8,
        "method": "tools/call",
        "params": {"name": "read_file", "arguments": {"path": "x"}},
    }
    response = asyncio.run(core.handle_message(message))
    assert response["error"] == {"code": INTERNAL_ERROR, "message": "Internal error"}


def test_is_initialize_request() -> None:
    assert is_initialize_request(initialize_message())
    assert not is_initialize_request([initialize_message()])
    assert not is_initialize_request({"jsonrpc": "2.0", "id": 1, "method": "initialize"})
    assert not is_initialize_request({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
    assert not is_initialize_request(None)
