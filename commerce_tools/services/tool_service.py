# commerce_tools/services/tool_service.py
from typing import Any, Callable

from sqlmodel import Session

from commerce_tools.core.errors import InvalidArgumentError, UnknownToolError
from commerce_tools.schemas.cart import CartCreated, CartView
from commerce_tools.schemas.product import ProductDetail, ProductList, ProductRead
from commerce_tools.services.cart_service import CartService
from commerce_tools.services.product_service import DEFAULT_LIST_LIMIT, ProductService

# Largest value an INTEGER id column holds (Postgres int4)
MAX_SQL_INT = 2**31 - 1


def _as_int(value: Any, maximum: int | None = MAX_SQL_INT) -> int | None:
    """
    Lenient integer coercion for tool arguments.

    Accepts ints, integral floats and numeric strings; anything else
    (including booleans and fractional numbers) becomes None.
    Values whose magnitude exceeds `maximum` also become None, so they
    never reach a database column. Pass maximum=None for values that are
    only compared in Python.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    if maximum is not None and abs(number) > maximum:
        return None
    return number


def _as_str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _required_str(arguments: dict[str, Any], key: str) -> str:
    value = _as_str(arguments.get(key))
    if value is None:
        raise InvalidArgumentError(key)
    return value


class ToolService:
    """
    Routes a tool call {name, arguments} to the matching service operation.

    Arguments arrive as untyped JSON; each handler coerces what it needs
    and leaves validation order to the services.
    """

    def __init__(self, product_service: ProductService, cart_service: CartService):
        self.product_service = product_service
        self.cart_service = cart_service
        self._handlers: dict[str, Callable[[Session, dict[str, Any]], Any]] = {
            "list_products": self._list_products,
            "get_product": self._get_product,
            "create_cart": self._create_cart,
            "add_to_cart": self._add_to_cart,
            "get_cart": self._get_cart,
        }

    def call(self, session: Session, name: Any, arguments: dict[str, Any]) -> dict[str, Any]:
        handler = self._handlers.get(name) if isinstance(name, str) else None
        if handler is None:
            raise UnknownToolError(name)
        return handler(session, arguments).model_dump()

    # ---- handlers ----

    def _list_products(self, session: Session, arguments: dict[str, Any]) -> ProductList:
        limit = _as_int(arguments.get("limit"), maximum=None)
        offset = _as_int(arguments.get("offset"), maximum=None)
        products = self.product_service.list_products(
            session,
            query=_as_str(arguments.get("query")),
            limit=DEFAULT_LIST_LIMIT if limit is None else limit,
            offset=0 if offset is None else offset,
        )
        return ProductList(products=[ProductRead.model_validate(p) for p in products])

    def _get_product(self, session: Session, arguments: dict[str, Any]) -> ProductDetail:
        product = self.product_service.get_product(
            session, _as_int(arguments.get("product_id"))
        )
        return ProductDetail(product=ProductRead.model_validate(product))

    def _create_cart(self, session: Session, arguments: dict[str, Any]) -> CartCreated:
        conversation_id = _required_str(arguments, "conversation_id")
        cart_id = self.cart_service.get_or_create_cart(session, conversation_id)
        return CartCreated(cart_id=cart_id)

    def _add_to_cart(self, session: Session, arguments: dict[str, Any]) -> CartView:
        return self.cart_service.add_to_cart(
            session,
            cart_id=_as_str(arguments.get("cart_id")) or "",
            product_id=_as_int(arguments.get("product_id")),
            qty=_as_int(arguments.get("qty"), maximum=None),
            conversation_id=_as_str(arguments.get("conversation_id")),
        )

    def _get_cart(self, session: Session, arguments: dict[str, Any]) -> CartView:
        return self.cart_service.get_cart_view(session, _required_str(arguments, "cart_id"))
