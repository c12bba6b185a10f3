import os

DEFAULT_PORT = 3000


class Config:
    """Configuration management using environment variables"""

    # Server settings
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = None  # resolved below with parse_port

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Server identity reported on initialize
    HTTP_SERVER_NAME = "filesystem-http-mcp-server"
    STDIO_SERVER_NAME = "filesystem-mcp-server"
    SERVER_VERSION = os.getenv("SERVER_VERSION", "1.0.0")

    @staticmethod
    def parse_port(raw) -> int:
        """Parse a port value, falling back to the default when unset or invalid"""
        if raw is None:
            return DEFAULT_PORT
        try:
            port = int(str(raw).strip())
        except ValueError:
            return DEFAULT_PORT
        if not 0 < port < 65536:
            return DEFAULT_PORT
        return port

    @classmethod
    def reload(cls):
        """Re-read environment (used after load_dotenv)"""
        cls.HOST = os.getenv("HOST", "0.0.0.0")
        cls.PORT = cls.parse_port(os.getenv("PORT"))
        cls.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        cls.SERVER_VERSION = os.getenv("SERVER_VERSION", "1.0.0")


Config.PORT = Config.parse_port(os.getenv("PORT"))
