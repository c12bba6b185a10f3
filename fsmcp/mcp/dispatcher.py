"""Operation dispatcher - maps a tool invocation onto the file store

Every outcome, success or failure, comes back as a ToolResult. Filesystem
and validation failures are carried in-band through ``is_error``; nothing
raised by a tool crosses into the protocol layer.
"""
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from fsmcp.mcp.models import (
    ListDirectoryArgs,
    ReadFileArgs,
    ToolArguments,
    ToolResult,
    WriteFileArgs,
)
from fsmcp.mcp.registry import ToolRegistry
from fsmcp.mcp.servers.srv_fs import FileSystemServer

_arguments_adapter = TypeAdapter(ToolArguments)


def parse_tool_arguments(tool_name: str, arguments: Mapping[str, Any]):
    """Validate an argument bag against the tool's parameter model"""
    return _arguments_adapter.validate_python({**arguments, "tool": tool_name})


def format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        # loc[0] is the discriminator branch (the tool name)
        field = ".".join(str(item) for item in error["loc"][1:]) or "arguments"
        parts.append(f"{field}: {error['msg']}")
    return "; ".join(parts)


class OperationDispatcher:
    def __init__(self, store: Optional[FileSystemServer] = None,
                 registry: Optional[ToolRegistry] = None):
        self.store = store or FileSystemServer()
        self.registry = registry or ToolRegistry()
        self._handlers: Dict[str, Callable[[Any], Awaitable[ToolResult]]] = {
            "read_file": self._read_file,
            "write_file": self._write_file,
            "list_directory": self._list_directory,
        }

    async def invoke(self, tool_name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """Run a tool and wrap the outcome in a ToolResult envelope"""
        handler = self._handlers.get(tool_name)
        if handler is None or not self.registry.has_tool(tool_name):
            return ToolResult.error(f"Unknown tool: {tool_name}")

        try:
            args = parse_tool_arguments(tool_name, arguments or {})
        except ValidationError as e:
            return ToolResult.error(
                f"Invalid arguments for {tool_name}: {format_validation_error(e)}"
            )

        try:
            return await handler(args)
        except (OSError, ValueError) as e:
            return ToolResult.error(str(e))

    async def _read_file(self, args: ReadFileArgs) -> ToolResult:
        return ToolResult.text(await self.store.read_file(args.path))

    async def _write_file(self, args: WriteFileArgs) -> ToolResult:
        await self.store.write_file(args.path, args.content)
        return ToolResult.text(f"Successfully wrote to {args.path}")

    async def _list_directory(self, args: ListDirectoryArgs) -> ToolResult:
        entries = await self.store.list_directory(args.path)
        lines = [
            f"{'directory' if is_dir else 'file'}: {name}"
            for name, is_dir in entries
        ]
        return ToolResult.text("\n".join(lines) or "Directory is empty")
