#!/usr/bin/env python3
"""FileSystem Server - MCP stdio implementation"""
import asyncio
import sys

from dotenv import load_dotenv

from fsmcp.config import Config
from fsmcp.mcp.dispatcher import OperationDispatcher
from fsmcp.mcp.protocol import (
    INTERNAL_ERROR,
    PARSE_ERROR,
    MCPProtocol,
    ProtocolCore,
    ProtocolError,
)
from fsmcp.mcp.registry import ToolRegistry
from fsmcp.observability.logger import logger, setup_logging


def build_core(registry: ToolRegistry = None) -> ProtocolCore:
    """The single implicit session served over stdio"""
    registry = registry or ToolRegistry()
    return ProtocolCore(
        OperationDispatcher(registry=registry),
        registry,
        server_name=Config.STDIO_SERVER_NAME,
        server_version=Config.SERVER_VERSION,
    )


async def run_stdio(reader=None, writer=None, core: ProtocolCore = None):
    """Serve newline-delimited JSON-RPC frames until the input stream closes"""
    reader = reader or sys.stdin
    writer = writer or sys.__stdout__
    core = core or build_core()

    logger.info("stdio_server_started", server=core.server_name)
    while True:
        try:
            line = await asyncio.to_thread(reader.readline)
        except UnicodeDecodeError as e:
            MCPProtocol.write_error(None, PARSE_ERROR, f"Parse error: {str(e)}", stdout_handle=writer)
            continue
        if not line:
            break
        if not line.strip():
            continue

        try:
            payload = MCPProtocol.decode_frame(line)
            response = await core.handle_payload(payload)
            if response is not None:
                MCPProtocol.write_message(response, stdout_handle=writer)
        except ProtocolError as e:
            MCPProtocol.write_error(None, e.code, e.message, stdout_handle=writer)
        except Exception as e:
            logger.exception("stdio_frame_failed", server=core.server_name)
            MCPProtocol.write_error(
                None,
                INTERNAL_ERROR,
                f"Internal error: {str(e)}",
                stdout_handle=writer
            )

    logger.info("stdio_server_stopped", server=core.server_name)


def main():
    """Main entry point for stdio server"""
    load_dotenv()
    Config.reload()

    # Check for --manifest flag
    if len(sys.argv) > 1 and sys.argv[1] == "--manifest":
        MCPProtocol.write_manifest(ToolRegistry().manifest())
        return

    # Setup stdio mode - redirect debug prints to stderr
    original_stdout = MCPProtocol.setup_stdio_mode()
    sys.stdin.reconfigure(encoding="utf-8", errors="replace")
    setup_logging(sys.stderr, Config.LOG_LEVEL)

    try:
        asyncio.run(run_stdio(sys.stdin, original_stdout))
    except KeyboardInterrupt:
        logger.info("stdio_server_interrupted")


if __name__ == "__main__":
    main()
