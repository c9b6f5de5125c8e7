# commerce_tools/schemas/cart.py
from sqlmodel import SQLModel


class CartItemRead(SQLModel):
    """
    Read model for a single line item, joined with the product name.
    """

    product_id: int
    qty: int
    unit_price: float
    name: str


class CartView(SQLModel):
    """
    Full cart response model with total.
    """

    cart_id: str
    items: list[CartItemRead]
    total: float


class CartCreated(SQLModel):
    cart_id: str
