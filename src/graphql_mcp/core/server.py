# ============================================================================
# GRAPHQL MCP - BASE PROTOCOL SERVER
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# JSON-RPC method table shared by every transport (SSE sessions, stateless
# HTTP, STDIO). One instance per session or per stateless request — never
# share an instance across sessions.
#
# METHOD TABLE:
#   initialize                 — protocol version, capabilities, server info
#   notifications/initialized  — handshake acknowledgment
#   tools/list, tools/call
#   resources/list, resources/read
#   prompts/list, prompts/get
# ============================================================================

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    PARSE_ERROR,
    CallToolRequestParams,
    CallToolResult,
    GetPromptRequestParams,
    GetPromptResult,
    Implementation,
    InitializeResult,
    ListPromptsResult,
    ListResourcesResult,
    ListToolsResult,
    Prompt,
    PromptsCapability,
    ReadResourceResult,
    Resource,
    ResourcesCapability,
    ServerCapabilities,
    TextContent,
    TextResourceContents,
    Tool,
    ToolAnnotations,
    ToolsCapability,
)

from .errors import ProtocolError

logger = logging.getLogger(__name__)

__all__ = [
    "PROTOCOL_VERSION",
    "PROTOCOL_METHODS",
    "RESOURCE_READ_FAILED",
    "BaseMCPServer",
    "MethodSpec",
    "parse_message",
    "error_envelope",
]

PROTOCOL_VERSION = "2024-11-05"

PROTOCOL_METHODS: tuple[str, ...] = (
    "initialize",
    "notifications/initialized",
    "tools/list",
    "tools/call",
    "resources/list",
    "resources/read",
    "prompts/list",
    "prompts/get",
)

# Server-defined JSON-RPC error code for a resource whose backing fetch failed
RESOURCE_READ_FAILED = -32000

ToolHandler = Callable[[str, dict[str, Any]], Awaitable[Any]]
PromptHandler = Callable[[str, dict[str, str] | None], GetPromptResult]
ResourceReader = Callable[[], Awaitable[str]]


class ReadResourceParams(BaseModel):
    uri: str


@dataclass(frozen=True)
class MethodSpec:
    """A method table entry: handler plus its declared params model."""

    name: str
    handler: Callable[[Any], Awaitable[BaseModel | dict[str, Any]]]
    params_model: type[BaseModel] | None = None
    notification: bool = False


# ============================================================================
# ENVELOPE HELPERS
# ============================================================================

def error_envelope(msg_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


def result_envelope(msg_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "result": result}


def parse_message(raw: str | bytes) -> dict[str, Any]:
    """Decode one JSON-RPC message. Raises ProtocolError before any dispatch."""
    try:
        message = json.loads(raw)
    except ValueError:
        raise ProtocolError(PARSE_ERROR, "Parse error: Invalid JSON") from None
    check_envelope(message)
    return message


def check_envelope(message: Any) -> None:
    if not isinstance(message, dict) or message.get("jsonrpc") != "2.0":
        raise ProtocolError.invalid_request()


def _describe_errors(error: PydanticValidationError) -> str:
    # one "field: reason" per problem, no pydantic URLs or input echoes
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'params'}: {err['msg']}"
        for err in error.errors()
    )


def _dump(result: BaseModel | dict[str, Any]) -> dict[str, Any]:
    if isinstance(result, BaseModel):
        return result.model_dump(by_alias=True, mode="json", exclude_none=True)
    return result


# ============================================================================
# BASE SERVER
# ============================================================================

class BaseMCPServer:
    """Base protocol server with the shared method table.
    Provides: dispatch, tool/prompt/resource registries, error mapping.
    Subclasses add: the concrete tools, prompts and resources.
    """

    def __init__(
        self,
        name: str,
        version: str,
        instructions: str,
    ) -> None:
        self.name = name
        self.version = version
        self.instructions = instructions
        self.initialized = False

        self._tools: list[dict[str, Any]] = []
        self._tool_handlers: dict[str, ToolHandler] = {}
        self._prompts: list[Prompt] = []
        self._prompt_handlers: dict[str, PromptHandler] = {}
        self._resources: dict[str, tuple[Resource, ResourceReader]] = {}

        self._methods = self._build_method_table()
        missing = set(PROTOCOL_METHODS) - set(self._methods)
        if missing:
            raise RuntimeError(f"No handler for protocol methods: {sorted(missing)}")

    def register_tools(self, tools: list[dict[str, Any]]) -> None:
        self._tools.extend(tools)

    def register_tool_handler(self, name: str, handler: ToolHandler) -> None:
        self._tool_handlers[name] = handler

    def register_prompts(self, prompts: list[Prompt]) -> None:
        self._prompts.extend(prompts)

    def register_prompt_handler(self, name: str, handler: PromptHandler) -> None:
        self._prompt_handlers[name] = handler

    def register_resource(self, uri: str, resource: Resource, reader: ResourceReader) -> None:
        self._resources[uri] = (resource, reader)

    def _build_method_table(self) -> dict[str, MethodSpec]:
        specs = [
            MethodSpec("initialize", self._initialize),
            MethodSpec("notifications/initialized", self._initialized, notification=True),
            MethodSpec("tools/list", self._list_tools),
            MethodSpec("tools/call", self._call_tool, CallToolRequestParams),
            MethodSpec("resources/list", self._list_resources),
            MethodSpec("resources/read", self._read_resource, ReadResourceParams),
            MethodSpec("prompts/list", self._list_prompts),
            MethodSpec("prompts/get", self._get_prompt, GetPromptRequestParams),
        ]
        return {spec.name: spec for spec in specs}

    @property
    def methods(self) -> tuple[str, ...]:
        return tuple(self._methods)

    # ====================================================================
    # DISPATCH
    # ====================================================================

    async def dispatch(self, method: Any, params: Any) -> dict[str, Any]:
        """Run one method and return its serialized result.

        Raises ProtocolError for unknown methods and invalid params.
        """
        spec = self._methods.get(method) if isinstance(method, str) else None
        if spec is None:
            raise ProtocolError.method_not_found(f"Method not found: {method}")

        if spec.params_model is not None:
            try:
                params = spec.params_model.model_validate(params or {})
            except PydanticValidationError as e:
                raise ProtocolError(
                    INVALID_PARAMS, f"Invalid params for {method}: {_describe_errors(e)}",
                ) from e

        return _dump(await spec.handler(params))

    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Answer one JSON-RPC message.

        Returns the response envelope, or None for a notification.
        """
        method = message.get("method")

        if "id" not in message:
            spec = self._methods.get(method) if isinstance(method, str) else None
            if spec is not None and spec.notification:
                await spec.handler(message.get("params"))
            else:
                logger.debug(f"Ignoring notification: {method}")
            return None

        msg_id = message["id"]
        try:
            result = await self.dispatch(method, message.get("params"))
        except ProtocolError as e:
            logger.warning(f"Protocol error in {method}: {e.message}")
            return error_envelope(msg_id, e.code, e.message)
        except Exception as e:
            logger.exception(f"Unhandled error in {method}")
            return error_envelope(msg_id, INTERNAL_ERROR, f"Internal error: {e}")
        return result_envelope(msg_id, result)

    # ====================================================================
    # LIFECYCLE
    # ====================================================================

    async def _initialize(self, params: Any) -> InitializeResult:
        return InitializeResult(
            protocolVersion=PROTOCOL_VERSION,
            capabilities=ServerCapabilities(
                tools=ToolsCapability(),
                resources=ResourcesCapability(subscribe=False),
                prompts=PromptsCapability(),
            ),
            serverInfo=Implementation(name=self.name, version=self.version),
            instructions=self.instructions,
        )

    async def _initialized(self, params: Any) -> dict[str, Any]:
        self.initialized = True
        return {}

    # ====================================================================
    # TOOLS
    # ====================================================================

    async def _list_tools(self, params: Any) -> ListToolsResult:
        tools_list = []
        for tool in self._tools:
            annotations = None
            if "annotations" in tool:
                annotations = ToolAnnotations(**tool["annotations"])
            tools_list.append(Tool(
                name=tool["name"],
                title=tool.get("title"),
                description=tool["description"],
                inputSchema=tool["inputSchema"],
                annotations=annotations,
            ))
        return ListToolsResult(tools=tools_list)

    async def _call_tool(self, params: CallToolRequestParams) -> CallToolResult:
        name = params.name
        handler = self._tool_handlers.get(name)
        if handler is None:
            raise ProtocolError.method_not_found(f"Unknown tool: {name}")

        # Tool failures are results, not protocol errors: agents read the text.
        try:
            result = await handler(name, params.arguments or {})
            text = result if isinstance(result, str) else json.dumps(result, default=str)
        except Exception as e:
            logger.error(f"Error in {name}: {e}")
            text = f"Error: {e}"
        return CallToolResult(content=[TextContent(type="text", text=text)])

    # ====================================================================
    # RESOURCES
    # ====================================================================

    async def _list_resources(self, params: Any) -> ListResourcesResult:
        return ListResourcesResult(resources=[resource for resource, _ in self._resources.values()])

    async def _read_resource(self, params: ReadResourceParams) -> ReadResourceResult:
        entry = self._resources.get(params.uri)
        if entry is None:
            raise ProtocolError(INVALID_PARAMS, f"Unknown resource: {params.uri}")

        resource, reader = entry
        try:
            text = await reader()
        except Exception as e:
            logger.error(f"Failed to read resource {params.uri}: {e}")
            raise ProtocolError(RESOURCE_READ_FAILED, f"Failed to read resource: {e}") from e

        return ReadResourceResult(contents=[
            TextResourceContents(uri=params.uri, mimeType=resource.mimeType, text=text),
        ])

    # ====================================================================
    # PROMPTS
    # ====================================================================

    async def _list_prompts(self, params: Any) -> ListPromptsResult:
        return ListPromptsResult(prompts=self._prompts)

    async def _get_prompt(self, params: GetPromptRequestParams) -> GetPromptResult:
        handler = self._prompt_handlers.get(params.name)
        if handler is None:
            raise ProtocolError(INVALID_PARAMS, f"Unknown prompt: {params.name}")
        return handler(params.name, params.arguments)
