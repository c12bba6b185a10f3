from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from fsmcp.mcp.protocol import INTERNAL_ERROR, SERVER_ERROR, error_response
from fsmcp.mcp.session_manager import SessionManager
from fsmcp.mcp.transport import INVALID_SESSION_MESSAGE, MCP_SESSION_ID_HEADER, read_json_body
from fsmcp.observability.logger import logger

router = APIRouter()


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def iso_timestamp() -> str:
    """UTC timestamp in the 2024-01-01T00:00:00.000Z form"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.api_route("/mcp", methods=["GET", "POST", "DELETE"])
async def handle_mcp(request: Request,
                     sessions: SessionManager = Depends(get_session_manager)) -> Response:
    """Streamable HTTP endpoint: resolve the session, then hand over to its transport"""
    session_id = request.headers.get(MCP_SESSION_ID_HEADER)
    logger.info("http_request_received", method=request.method, session_id=session_id)

    try:
        payload = await read_json_body(request) if request.method == "POST" else None

        transport = sessions.resolve(session_id, request.method, payload)
        if transport is None:
            return JSONResponse(
                status_code=400,
                content=error_response(None, SERVER_ERROR, INVALID_SESSION_MESSAGE),
            )

        return await transport.handle_request(request, payload)
    except Exception:
        logger.exception("http_request_failed", method=request.method, session_id=session_id)
        return JSONResponse(
            status_code=500,
            content=error_response(None, INTERNAL_ERROR, "Internal server error"),
        )


@router.get("/health")
async def health():
    return {"status": "OK", "timestamp": iso_timestamp()}
