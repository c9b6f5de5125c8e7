# commerce_tools/core/errors.py
from typing import Any

from fastapi import status


class ToolError(Exception):
    """
    Base class for errors a tool call reports back to the caller.

    Each subclass pins an error `code` and the HTTP status it maps to.
    Extra keyword arguments are merged into the response body, e.g.
    `InsufficientStockError(stock=3)` -> {"error": "INSUFFICIENT_STOCK", "stock": 3}.
    """

    code: str = "INTERNAL_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None, **extra: Any):
        super().__init__(message or self.code)
        self.message = message
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.code}
        if self.message:
            body["message"] = self.message
        body.update(self.extra)
        return body


class ProductNotFoundError(ToolError):
    code = "PRODUCT_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidQuantityError(ToolError):
    code = "INVALID_QTY"
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStockError(ToolError):
    code = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, stock: int):
        super().__init__(stock=stock)
        self.stock = stock


class InvalidArgumentError(ToolError):
    code = "INVALID_ARGUMENT"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, argument: str):
        super().__init__(argument=argument)
        self.argument = argument


class UnknownToolError(ToolError):
    code = "UNKNOWN_TOOL"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, name: Any):
        super().__init__(name=name)
        self.name = name


class CartStoreError(ToolError):
    """Unrecoverable storage failure while creating or mutating a cart."""

    code = "CART_STORE_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
