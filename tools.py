"""MCP tools for hubspot-mcp-server.

Tools are generated from the CRM object catalog: for each object type there
is a get, search, create and (optionally) update tool, plus one generic
associate_objects tool. Every tool goes through ToolRegistry.invoke(), which
checks for a token, validates the arguments against the tool's pydantic model
(the same model FastMCP advertises as the input schema) and returns the
HubSpot response as pretty-printed JSON.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import pydantic
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from errors import HubSpotMCPError, NotAuthorizedError, ValidationError
from hubspot.client import HubSpotClient, Properties
from hubspot.objects import DEFAULT_ASSOCIATION_CATEGORY, CrmObject
from oauth.stores import TokenStore

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], HubSpotClient]


# ============== Argument schemas ==============

class _Args(BaseModel):
    model_config = ConfigDict(extra="forbid")


class GetObjectArgs(_Args):
    id: str = Field(min_length=1, description="HubSpot internal object ID")
    properties: Optional[list[str]] = Field(None, description="Properties to return")


class SearchObjectsArgs(_Args):
    query: str = Field(min_length=1, description="Value to search for")
    property: Optional[str] = Field(None, description="Property to search on")
    properties: Optional[list[str]] = Field(None, description="Properties to return")


class CreateObjectArgs(_Args):
    properties: Properties = Field(description="Map of property names to values")


class UpdateObjectArgs(_Args):
    id: str = Field(min_length=1, description="HubSpot internal object ID")
    properties: Properties = Field(description="Map of property names to new values")


class AssociateObjectsArgs(_Args):
    from_object_type: str = Field(min_length=1)
    from_id: str = Field(min_length=1)
    to_object_type: str = Field(min_length=1)
    to_id: str = Field(min_length=1)
    association_type_id: int
    association_category: str = DEFAULT_ASSOCIATION_CATEGORY


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    operation: str
    args_model: type[_Args]
    crm_object: Optional[CrmObject] = None

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema()


def build_tool_specs(objects: list[CrmObject], include_update: bool = True) -> list[ToolSpec]:
    """Registration table: one entry per (object type x operation)."""
    specs = []
    for obj in objects:
        specs.append(ToolSpec(
            name=f"get_{obj.name}",
            description=f"Get a HubSpot {obj.name} by its internal ID.",
            operation="get",
            args_model=GetObjectArgs,
            crm_object=obj,
        ))
        specs.append(ToolSpec(
            name=f"search_{obj.type}",
            description=(
                f"Search HubSpot {obj.type} by a property value "
                f"(default property: {obj.search_property})."
            ),
            operation="search",
            args_model=SearchObjectsArgs,
            crm_object=obj,
        ))
        specs.append(ToolSpec(
            name=f"create_{obj.name}",
            description=f"Create a new HubSpot {obj.name} from a map of properties.",
            operation="create",
            args_model=CreateObjectArgs,
            crm_object=obj,
        ))
        if include_update:
            specs.append(ToolSpec(
                name=f"update_{obj.name}",
                description=f"Update properties of an existing HubSpot {obj.name}.",
                operation="update",
                args_model=UpdateObjectArgs,
                crm_object=obj,
            ))
    specs.append(ToolSpec(
        name="associate_objects",
        description=(
            "Associate two HubSpot records, e.g. a contact with a company. "
            "association_type_id is HubSpot's numeric association type."
        ),
        operation="associate",
        args_model=AssociateObjectsArgs,
    ))
    return specs


# ============== Registry ==============

class ToolRegistry:
    """Dispatches tool invocations to the HubSpot API."""

    def __init__(
        self,
        specs: list[ToolSpec],
        tokens: TokenStore,
        search_operator: str = "CONTAINS_TOKEN",
        client_factory: Optional[ClientFactory] = None,
    ):
        self.specs = {spec.name: spec for spec in specs}
        self.tokens = tokens
        self.search_operator = search_operator
        self.client_factory = client_factory or HubSpotClient

    def __contains__(self, name: str) -> bool:
        return name in self.specs

    @property
    def names(self) -> list[str]:
        return list(self.specs)

    def validate(self, spec: ToolSpec, arguments: dict[str, Any]) -> _Args:
        try:
            return spec.args_model.model_validate(arguments or {})
        except pydantic.ValidationError as e:
            fields = []
            details = []
            for err in e.errors():
                field = ".".join(str(part) for part in err["loc"]) or "<root>"
                if field not in fields:
                    fields.append(field)
                details.append(f"{field}: {err['msg']}")
            raise ValidationError(spec.name, fields, details) from e

    def client(self) -> HubSpotClient:
        token = self.tokens.get()
        if not token:
            raise NotAuthorizedError()
        return self.client_factory(token)

    async def invoke(self, name: str, arguments: dict[str, Any]) -> str:
        spec = self.specs.get(name)
        if spec is None:
            raise ValidationError(name, ["name"], [f"unknown tool {name!r}"])

        # Token before arguments: an unauthorized server rejects every call alike.
        async with self.client() as client:
            args = self.validate(spec, arguments)
            logger.info(f"[TOOL] {name} invoked")
            result = await self._dispatch(spec, args, client)
        return json.dumps(result, indent=2, ensure_ascii=False)

    async def _dispatch(self, spec: ToolSpec, args: _Args, client: HubSpotClient) -> Any:
        obj = spec.crm_object
        if spec.operation == "get":
            return await client.get_object(obj.type, args.id, args.properties)
        if spec.operation == "search":
            filters = [{
                "propertyName": args.property or obj.search_property,
                "operator": self.search_operator,
                "value": args.query,
            }]
            return await client.search_objects(obj.type, filters, args.properties)
        if spec.operation == "create":
            return await client.create_object(obj.type, args.properties)
        if spec.operation == "update":
            return await client.update_object(obj.type, args.id, args.properties)
        if spec.operation == "associate":
            return await client.associate_objects(
                args.from_object_type,
                args.from_id,
                args.to_object_type,
                args.to_id,
                args.association_type_id,
                args.association_category,
            )
        raise ValueError(f"Unsupported operation: {spec.operation}")


# ============== FastMCP wiring ==============

class RegistryTool(Tool):
    """FastMCP tool whose only schema is the registry's argument model."""

    _registry: ToolRegistry = PrivateAttr()

    @classmethod
    def from_spec(cls, registry: ToolRegistry, spec: ToolSpec) -> "RegistryTool":
        tool = cls(name=spec.name, description=spec.description, parameters=spec.input_schema)
        tool._registry = registry
        return tool

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        try:
            text = await self._registry.invoke(self.name, arguments)
        except HubSpotMCPError as e:
            logger.info(f"[TOOL] {self.name} failed: {e}")
            raise ToolError(str(e)) from e
        return ToolResult(content=[TextContent(type="text", text=text)])


def register_tools(mcp: FastMCP, registry: ToolRegistry) -> None:
    for spec in registry.specs.values():
        mcp.add_tool(RegistryTool.from_spec(registry, spec))
    logger.info(f"[STARTUP] Registered {len(registry.specs)} MCP tools")


def build_mcp(registry: ToolRegistry, name: str = "hubspot-mcp-server") -> FastMCP:
    """Create the FastMCP server instance with every registry tool attached."""
    mcp = FastMCP(name)
    register_tools(mcp, registry)
    return mcp
