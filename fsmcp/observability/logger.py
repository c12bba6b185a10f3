import structlog
import logging
import sys


def setup_logging(stream=None, level: str = "INFO"):
    """Configure structlog for JSON output

    The stdio server must pass sys.stderr: stdout carries protocol frames.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    return structlog.get_logger()


logger = structlog.get_logger("fsmcp")


def log_tool_invocation(session_id: str, tool: str, is_error: bool,
                        start_ms: int, end_ms: int):
    """Log structured tool invocation event"""
    logger.info(
        "tool_invoked",
        session_id=session_id,
        tool=tool,
        status="error" if is_error else "success",
        start_ms=start_ms,
        end_ms=end_ms,
        duration_ms=end_ms - start_ms,
    )
