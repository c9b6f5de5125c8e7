# commerce_tools/schemas/tools.py
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolDefinition(BaseModel):
    """
    Discovery metadata for one tool, served by GET /tools.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    input_schema: dict[str, Any] = Field(alias="inputSchema")


class ToolCatalog(BaseModel):
    tools: list[ToolDefinition]


class ToolCall(BaseModel):
    """
    Body of POST /call.

    The router builds this leniently: a missing or malformed body
    becomes ToolCall(name=None, arguments={}).
    """

    name: Any = None
    arguments: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_body(cls, body: Any) -> "ToolCall":
        if not isinstance(body, dict):
            return cls()
        arguments = body.get("arguments")
        return cls(
            name=body.get("name"),
            arguments=arguments if isinstance(arguments, dict) else {},
        )


TOOL_DEFINITIONS: list[ToolDefinition] = [
    ToolDefinition(
        name="list_products",
        description="List products with optional search by name/description/category.",
        input_schema={
            "type": "object",
            "properties": {
                "query": {"type": "string"},
                "limit": {"type": "integer", "minimum": 1, "maximum": 50, "default": 10},
                "offset": {"type": "integer", "minimum": 0, "default": 0},
            },
            "additionalProperties": False,
        },
    ),
    ToolDefinition(
        name="get_product",
        description="Get detailed information for a product by id.",
        input_schema={
            "type": "object",
            "properties": {"product_id": {"type": "integer"}},
            "required": ["product_id"],
            "additionalProperties": False,
        },
    ),
    ToolDefinition(
        name="create_cart",
        description="Create (or return) a cart for the given conversation_id (idempotent).",
        input_schema={
            "type": "object",
            "properties": {"conversation_id": {"type": "string"}},
            "required": ["conversation_id"],
            "additionalProperties": False,
        },
    ),
    ToolDefinition(
        name="add_to_cart",
        description="Add product to cart with qty, validates stock and returns updated cart.",
        input_schema={
            "type": "object",
            "properties": {
                "cart_id": {"type": "string"},
                "product_id": {"type": "integer"},
                "qty": {"type": "integer", "minimum": 1},
                "conversation_id": {
                    "type": "string",
                    "description": "Optional: tags the Chatwoot conversation with purchase labels",
                },
            },
            "required": ["cart_id", "product_id", "qty"],
            "additionalProperties": False,
        },
    ),
    ToolDefinition(
        name="get_cart",
        description="Get cart items and totals.",
        input_schema={
            "type": "object",
            "properties": {"cart_id": {"type": "string"}},
            "required": ["cart_id"],
            "additionalProperties": False,
        },
    ),
]
