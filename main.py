from contextlib import asynccontextmanager
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from dotenv import load_dotenv

from fsmcp.api.routes import router
from fsmcp.config import Config
from fsmcp.mcp.dispatcher import OperationDispatcher
from fsmcp.mcp.protocol import ProtocolCore
from fsmcp.mcp.registry import ToolRegistry
from fsmcp.mcp.session_manager import SessionManager
from fsmcp.mcp.transport import MCP_SESSION_ID_HEADER
from fsmcp.observability.logger import logger, setup_logging

# Load environment variables from .env file
load_dotenv()
Config.reload()


def create_app(dispatcher: OperationDispatcher = None, registry: ToolRegistry = None) -> FastAPI:
    """Build the HTTP application with its own session table"""
    registry = registry or ToolRegistry()
    dispatcher = dispatcher or OperationDispatcher(registry=registry)

    def core_factory(session_id: str) -> ProtocolCore:
        return ProtocolCore(
            dispatcher,
            registry,
            server_name=Config.HTTP_SERVER_NAME,
            server_version=Config.SERVER_VERSION,
            session_id=session_id,
        )

    session_manager = SessionManager(core_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("application_started", port=Config.PORT)
        try:
            yield
        finally:
            await session_manager.close_all()
            logger.info("application_stopped")

    app = FastAPI(
        title="Filesystem MCP Server",
        description="Filesystem tools over MCP Streamable HTTP",
        version=Config.SERVER_VERSION,
        lifespan=lifespan,
    )
    app.state.session_manager = session_manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[MCP_SESSION_ID_HEADER],
    )
    app.include_router(router)
    return app


app = create_app()


def run():
    setup_logging(sys.stdout, Config.LOG_LEVEL)
    uvicorn.run(
        app,
        host=Config.HOST,
        port=Config.PORT,
        log_level=Config.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
