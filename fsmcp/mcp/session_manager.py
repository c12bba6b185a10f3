"""Session table for the Streamable HTTP binding

The manager is the only writer of the id -> transport mapping. It is used
from the event loop only, so it needs no locking of its own.
"""
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from fsmcp.mcp.protocol import ProtocolCore, is_initialize_request
from fsmcp.mcp.transport import HTTPSessionTransport
from fsmcp.observability.logger import logger


class SessionManager:
    def __init__(self, core_factory: Callable[[str], ProtocolCore]):
        self._core_factory = core_factory
        self._sessions: Dict[str, HTTPSessionTransport] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    @property
    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def get(self, session_id: Optional[str]) -> Optional[HTTPSessionTransport]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def create(self) -> HTTPSessionTransport:
        """Mint a fresh session id and bind a new transport context to it"""
        session_id = uuid4().hex
        while session_id in self._sessions:
            session_id = uuid4().hex

        transport = HTTPSessionTransport(
            session_id,
            self._core_factory(session_id),
            on_close=self._forget,
        )
        self._sessions[session_id] = transport
        logger.info("session_initialized", session_id=session_id, active_sessions=len(self._sessions))
        return transport

    def resolve(self, session_id: Optional[str], method: str, payload: Any) -> Optional[HTTPSessionTransport]:
        """Find or create the transport for a request; None means reject"""
        if session_id:
            return self.get(session_id)
        if method == "POST" and is_initialize_request(payload):
            return self.create()
        return None

    async def terminate(self, session_id: str) -> bool:
        transport = self._sessions.get(session_id)
        if transport is None:
            return False
        await transport.close()
        return True

    async def close_all(self):
        """Drop every live session (process shutdown)"""
        for transport in list(self._sessions.values()):
            await transport.close()
        self._sessions.clear()

    def _forget(self, session_id: str):
        if self._sessions.pop(session_id, None) is not None:
            logger.info("session_closed", session_id=session_id, active_sessions=len(self._sessions))
