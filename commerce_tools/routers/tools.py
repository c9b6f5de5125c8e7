# commerce_tools/routers/tools.py
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlmodel import Session

from commerce_tools.core.chatwoot_client import ConversationLabeler, get_labeler
from commerce_tools.core.errors import ToolError
from commerce_tools.database import get_session
from commerce_tools.repositories.cart_repo import CartRepository
from commerce_tools.repositories.product_repo import ProductRepository
from commerce_tools.schemas.tools import TOOL_DEFINITIONS, ToolCall, ToolCatalog
from commerce_tools.services.cart_service import CartService
from commerce_tools.services.product_service import ProductService
from commerce_tools.services.tool_service import ToolService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tools"])

cart_repo = CartRepository()
product_repo = ProductRepository()
product_service = ProductService(product_repo)


def get_tool_service(
    labeler: ConversationLabeler = Depends(get_labeler),
) -> ToolService:
    """
    Build the tool dispatcher with the configured conversation labeler.
    """
    return ToolService(product_service, CartService(cart_repo, product_repo, labeler))


@router.get("/tools", response_model=ToolCatalog, response_model_by_alias=True)
def list_tools():
    """
    Static tool metadata (name, description, JSON input schema) for discovery.
    """
    return ToolCatalog(tools=TOOL_DEFINITIONS)


@router.post("/call")
async def call_tool(
    request: Request,
    session: Session = Depends(get_session),
    tools: ToolService = Depends(get_tool_service),
):
    """
    Execute a tool call.

    Body: {"name": "<tool>", "arguments": {...}}

    - A malformed body is treated as empty arguments.
    - Tool errors map to {"error": CODE, ...} with their HTTP status.
    - Anything else is a generic 500 INTERNAL_ERROR.
    """
    try:
        body = await request.json()
    except (ValueError, RecursionError):
        # Invalid JSON, bad encoding or nesting too deep to decode
        body = None
    call = ToolCall.from_body(body)

    try:
        result = await run_in_threadpool(tools.call, session, call.name, call.arguments)
    except ToolError as e:
        return JSONResponse(e.to_body(), status_code=e.status_code)
    except Exception:
        logger.exception("Tool call %r failed", call.name)
        await run_in_threadpool(session.rollback)
        return JSONResponse(
            {"error": "INTERNAL_ERROR", "message": "Internal server error"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return JSONResponse(result)
