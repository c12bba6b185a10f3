"""Static catalog of the filesystem tools"""
from typing import Any, Dict, List, Optional, Sequence

from fsmcp.mcp.models import ToolDescriptor

FILESYSTEM_TOOLS = (
    ToolDescriptor(
        name="read_file",
        description="Read the contents of a file",
        input_schema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Path of the file to read",
                },
            },
            "required": ["path"],
        },
    ),
    ToolDescriptor(
        name="write_file",
        description="Write content to a file",
        input_schema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Path of the file to write to",
                },
                "content": {
                    "type": "string",
                    "description": "Content to write",
                },
            },
            "required": ["path", "content"],
        },
    ),
    ToolDescriptor(
        name="list_directory",
        description="List the contents of a directory",
        input_schema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Path of the directory to list",
                },
            },
            "required": ["path"],
        },
    ),
)


class ToolRegistry:
    def __init__(self, tools: Sequence[ToolDescriptor] = FILESYSTEM_TOOLS):
        self._tools = tuple(tools)
        self._by_name = {tool.name: tool for tool in self._tools}

    def list_tools(self) -> List[ToolDescriptor]:
        return list(self._tools)

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._by_name.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._by_name

    def manifest(self) -> Dict[str, Any]:
        """Wire form of the catalog, as returned by tools/list"""
        return {"tools": [tool.to_wire() for tool in self._tools]}
