"""MCP Protocol - JSON-RPC 2.0 codec and the per-session protocol core"""
import json
import sys
import time
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from fsmcp.mcp.dispatcher import OperationDispatcher
from fsmcp.mcp.models import InitializeParams
from fsmcp.mcp.registry import ToolRegistry
from fsmcp.observability.logger import log_tool_invocation, logger

JSONRPC_VERSION = "2.0"

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000

LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")


class ProtocolError(Exception):
    """Raised inside a method handler to answer with a JSON-RPC error"""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def success_response(request_id: Any, result: Any) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "result": result
    }


def error_response(request_id: Any, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    error = {
        "code": code,
        "message": message
    }
    if data is not None:
        error["data"] = data

    return {
        "jsonrpc": JSONRPC_VERSION,
        "error": error,
        "id": request_id
    }


def is_initialize_request(message: Any) -> bool:
    """True for a single, well-formed initialize request"""
    if not isinstance(message, dict) or message.get("method") != "initialize":
        return False
    try:
        InitializeParams.model_validate(message.get("params"))
    except ValidationError:
        return False
    return True


def is_request(message: Any) -> bool:
    return isinstance(message, dict) and "method" in message and "id" in message


class MCPProtocol:
    """Handle MCP JSON-RPC 2.0 framing on stdio"""

    @staticmethod
    def setup_stdio_mode():
        """Setup stdio mode - redirect all print statements to stderr"""
        original_stdout = sys.stdout

        # Only JSON-RPC frames may reach the real stdout
        sys.stdout = sys.stderr

        return original_stdout

    @staticmethod
    def decode_frame(line: str) -> Any:
        """Decode one newline-delimited frame; raises ProtocolError on bad JSON"""
        try:
            return json.loads(line)
        except (ValueError, RecursionError) as e:
            raise ProtocolError(PARSE_ERROR, f"Parse error: {str(e)}")

    @staticmethod
    def write_message(message: Any, stdout_handle=None):
        """Write one JSON-RPC frame to stdout"""
        out = stdout_handle if stdout_handle else sys.__stdout__
        out.write(json.dumps(message, ensure_ascii=False) + "\n")
        out.flush()

    @staticmethod
    def write_error(request_id: Any, code: int, message: str, data: Any = None, stdout_handle=None):
        """Write JSON-RPC error response to stdout"""
        MCPProtocol.write_message(
            error_response(request_id, code, message, data),
            stdout_handle=stdout_handle
        )

    @staticmethod
    def write_manifest(manifest: Dict):
        """Write manifest to stdout (for --manifest flag)"""
        sys.__stdout__.write(json.dumps(manifest, indent=2, ensure_ascii=False) + "\n")
        sys.__stdout__.flush()


class ProtocolCore:
    """Protocol state for one session: initialize, ping, tools/list, tools/call"""

    def __init__(self, dispatcher: OperationDispatcher, registry: ToolRegistry,
                 server_name: str, server_version: str, session_id: Optional[str] = None):
        self.dispatcher = dispatcher
        self.registry = registry
        self.server_name = server_name
        self.server_version = server_version
        self.session_id = session_id

        self.initialized = False
        self.client_ready = False
        self.protocol_version: Optional[str] = None
        self.client_info: Optional[Dict[str, Any]] = None

        self._handlers = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def handle_payload(self, payload: Any) -> Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]:
        """Handle a single message or a batch; None when nothing needs answering"""
        if isinstance(payload, list):
            if not payload:
                return error_response(None, INVALID_REQUEST, "Invalid Request: empty batch")
            responses = []
            for message in payload:
                response = await self.handle_message(message)
                if response is not None:
                    responses.append(response)
            return responses or None
        return await self.handle_message(payload)

    async def handle_message(self, message: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(message, dict) or message.get("jsonrpc") != JSONRPC_VERSION:
            request_id = message.get("id") if isinstance(message, dict) else None
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        if "method" not in message:
            # A response from the client; we never issue requests, so drop it
            if "result" in message or "error" in message:
                return None
            return error_response(message.get("id"), INVALID_REQUEST, "Invalid Request")

        method = message["method"]
        if not isinstance(method, str):
            request_id = message.get("id")
            if isinstance(request_id, (dict, list)):
                request_id = None
            return error_response(request_id, INVALID_REQUEST, "Invalid Request: method must be a string")

        params = message.get("params") or {}

        if "id" not in message:
            self._handle_notification(method)
            return None

        request_id = message["id"]
        handler = self._handlers.get(method)
        if handler is None:
            return error_response(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        try:
            result = await handler(params)
        except ProtocolError as e:
            return error_response(request_id, e.code, e.message, e.data)
        except Exception:
            logger.exception("request_handler_failed", session_id=self.session_id, method=method)
            return error_response(request_id, INTERNAL_ERROR, "Internal error")

        return success_response(request_id, result)

    def _handle_notification(self, method: str):
        if method == "notifications/initialized":
            self.client_ready = True
        else:
            logger.debug("notification_ignored", session_id=self.session_id, method=method)

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            init = InitializeParams.model_validate(params)
        except ValidationError as e:
            raise ProtocolError(INVALID_PARAMS, f"Invalid params: {e.errors()[0]['msg']}")

        if init.protocol_version in SUPPORTED_PROTOCOL_VERSIONS:
            self.protocol_version = init.protocol_version
        else:
            self.protocol_version = LATEST_PROTOCOL_VERSION
        self.client_info = init.client_info.model_dump()
        self.initialized = True

        return {
            "protocolVersion": self.protocol_version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": self.server_name, "version": self.server_version},
        }

    async def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.registry.manifest()

    async def _call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(params, dict):
            raise ProtocolError(INVALID_PARAMS, "Invalid params: expected an object")
        name = params.get("name")
        if not isinstance(name, str):
            raise ProtocolError(INVALID_PARAMS, "Invalid params: tool name must be a string")
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise ProtocolError(INVALID_PARAMS, "Invalid params: arguments must be an object")

        start_ms = int(time.time() * 1000)
        result = await self.dispatcher.invoke(name, arguments)
        end_ms = int(time.time() * 1000)
        log_tool_invocation(self.session_id, name, result.is_error, start_ms, end_ms)

        return result.to_wire()
