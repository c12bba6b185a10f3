"""Wire and data models shared by both transports"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, Any, Dict, List, Literal, Union


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Uniform envelope for every tool execution outcome"""
    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent]
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=False)

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(content=[TextContent(text=f"Error: {message}")], is_error=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ToolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str
    input_schema: Dict[str, Any] = Field(alias="inputSchema")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# Per-tool arguments, discriminated by the tool name
class ReadFileArgs(BaseModel):
    tool: Literal["read_file"] = "read_file"
    path: str


class WriteFileArgs(BaseModel):
    tool: Literal["write_file"] = "write_file"
    path: str
    content: str


class ListDirectoryArgs(BaseModel):
    tool: Literal["list_directory"] = "list_directory"
    path: str


ToolArguments = Annotated[
    Union[ReadFileArgs, WriteFileArgs, ListDirectoryArgs],
    Field(discriminator="tool"),
]


class ClientInfo(BaseModel):
    name: str
    version: str


class InitializeParams(BaseModel):
    protocol_version: str = Field(alias="protocolVersion")
    capabilities: Dict[str, Any]
    client_info: ClientInfo = Field(alias="clientInfo")
