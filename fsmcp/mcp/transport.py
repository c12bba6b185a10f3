"""Streamable HTTP transport context bound to one session id

Answers in JSON-response mode only: POST carries requests, DELETE ends the
session, and GET (standalone SSE stream) is not offered.
"""
import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from fsmcp.mcp.protocol import (
    INVALID_REQUEST,
    PARSE_ERROR,
    SERVER_ERROR,
    ProtocolCore,
    error_response,
    is_initialize_request,
)

MCP_SESSION_ID_HEADER = "mcp-session-id"
INVALID_SESSION_MESSAGE = "Bad Request: No valid session ID provided or not an initialization request"


class _ParseFailure:
    """Marker for a request body that is not valid JSON"""

    def __init__(self, error: str):
        self.error = error


async def read_json_body(request: Request) -> Any:
    """Decode a request body; returns a _ParseFailure instead of raising"""
    raw = await request.body()
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as e:
        return _ParseFailure(str(e))


class HTTPSessionTransport:
    def __init__(self, session_id: str, core: ProtocolCore,
                 on_close: Optional[Callable[[str], None]] = None):
        self.session_id = session_id
        self.core = core
        self.created_at = datetime.now(timezone.utc)
        self.is_closed = False
        self._on_close = on_close
        # Requests on one session are handled one at a time
        self._lock = asyncio.Lock()

    async def handle_request(self, request: Request, payload: Any = None) -> Response:
        async with self._lock:
            if self.is_closed:
                # Closed by a DELETE that won the lock; same rejection as an unknown id
                return JSONResponse(
                    status_code=400,
                    content=error_response(None, SERVER_ERROR, INVALID_SESSION_MESSAGE),
                )
            if request.method == "POST":
                return await self._handle_post(request, payload)
            if request.method == "DELETE":
                return await self._handle_delete()
            return self._method_not_allowed()

    async def _handle_post(self, request: Request, payload: Any) -> Response:
        content_type = request.headers.get("content-type", "")
        if not content_type.lower().startswith("application/json"):
            return self._error(
                415, SERVER_ERROR,
                "Unsupported Media Type: Content-Type must be application/json"
            )

        if isinstance(payload, _ParseFailure):
            return self._error(400, PARSE_ERROR, f"Parse error: {payload.error}")

        messages = payload if isinstance(payload, list) else [payload]
        if any(is_initialize_request(message) for message in messages):
            if self.core.initialized:
                return self._error(400, INVALID_REQUEST, "Invalid Request: Server already initialized")
            if len(messages) > 1:
                return self._error(
                    400, INVALID_REQUEST,
                    "Invalid Request: Only one initialization request is allowed"
                )

        response = await self.core.handle_payload(payload)
        if response is None:
            return Response(status_code=202, headers=self._headers())
        return JSONResponse(content=response, headers=self._headers())

    async def _handle_delete(self) -> Response:
        await self.close()
        return Response(status_code=200, headers=self._headers())

    def _method_not_allowed(self) -> Response:
        response = self._error(405, SERVER_ERROR, "Method Not Allowed")
        response.headers["Allow"] = "POST, DELETE"
        return response

    async def close(self):
        """Tear down the context and tell the owner to forget the session"""
        if self.is_closed:
            return
        self.is_closed = True
        if self._on_close is not None:
            self._on_close(self.session_id)

    def _headers(self):
        return {MCP_SESSION_ID_HEADER: self.session_id}

    def _error(self, status_code: int, code: int, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=error_response(None, code, message),
            headers=self._headers(),
        )
