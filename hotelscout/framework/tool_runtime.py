"""
Tool registry and dispatcher.

Every hotel tool is registered here once; the HTTP API and the MCP server both
dispatch through the same registry so envelopes and logging stay identical
across transports.
"""
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field

from hotelscout.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_SESSION_ID = "default"

FAILURE_TEXT = "Something went wrong while handling this request. Please try again."


class ToolContext(TypedDict):
    """Per-call context handed to a handler."""
    correlation_id: str
    session_id: str
    tool_name: str
    tool_args: Dict[str, Any]


class ToolResult(BaseModel):
    """Uniform envelope returned by every tool.

    ``short_text`` is a terse pointer for the calling agent; the payload lives
    in ``structured_content``.
    """
    success: bool
    short_text: str = ""
    structured_content: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "shortText": self.short_text,
            "structuredContent": self.structured_content,
            "error": self.error,
            "metadata": self.metadata,
        }


ToolHandler = Callable[[Dict[str, Any], ToolContext], Awaitable[ToolResult]]


class ToolDefinition(BaseModel):
    """A named handler plus the JSON schema of its arguments."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    title: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler
    read_only: bool = True

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": self.input_schema.get("properties", {}),
                "required": self.input_schema.get("required", []),
            },
            "annotations": {"readOnlyHint": self.read_only},
        }


class UnknownToolError(ValueError):
    """Raised when a tool name is not registered."""


class ToolRuntime:
    """Registry of tool definitions, dispatching calls by name."""

    def __init__(self):
        self._tools: Dict[str, ToolDefinition] = {}

    def register_tool(self, tool: ToolDefinition) -> None:
        """Add ``tool``; names must be unique (``ValueError`` otherwise)."""
        if tool.name in self._tools:
            raise ValueError(f"Tool with name '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.bind(tool_name=tool.name).debug("Registered tool")

    def register_tools(self, tools: List[ToolDefinition]) -> None:
        for tool in tools:
            self.register_tool(tool)

    def get_tool_schemas(self, tool_names: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """Describe the named tools (all of them by default), skipping unknown names."""
        selected = []
        for name in self._tools if tool_names is None else tool_names:
            tool = self._tools.get(name)
            if tool is None:
                logger.bind(tool_name=name).warning("Schema requested for unknown tool")
                continue
            selected.append(tool.describe())
        return selected

    async def call_tool(
        self,
        name: str,
        payload: Dict[str, Any],
        correlation_id: str,
        session_id: Optional[str] = None,
    ) -> ToolResult:
        """
        Run the handler registered under ``name``.

        Args:
            name: Registered tool name
            payload: Raw tool arguments, validated by the handler
            correlation_id: Identifier threaded through every log line of the call
            session_id: Conversation the call belongs to; discovery state is
                kept per session

        Returns:
            The handler's envelope. An exception escaping the handler becomes
            a failed envelope carrying the exception type.

        Raises:
            UnknownToolError: If nothing is registered under ``name``
        """
        session_id = session_id or DEFAULT_SESSION_ID
        log = logger.bind(correlation_id=correlation_id, session_id=session_id, tool_name=name)

        tool = self._tools.get(name)
        if tool is None:
            log.error("Unknown tool requested")
            raise UnknownToolError(f"Tool not found: {name}")

        context = ToolContext(
            correlation_id=correlation_id,
            session_id=session_id,
            tool_name=name,
            tool_args=payload,
        )
        log.bind(arguments=sorted(payload)).info("Tool call started")

        try:
            result = await tool.handler(payload, context)
        except Exception as e:
            log.opt(exception=e).error("Tool handler raised")
            return ToolResult(
                success=False,
                short_text=FAILURE_TEXT,
                error=f"Error executing tool {name}: {e}",
                metadata={"error_type": type(e).__name__},
            )

        log.bind(success=result.success, error=result.error).info("Tool call finished")
        return result

    def list_tools(self) -> List[str]:
        return list(self._tools)

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)
