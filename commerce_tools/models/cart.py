# commerce_tools/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Cart(SQLModel, table=True):
    """
    Shopping cart bound to an external conversation.
    One conversation cannot have 2 carts (unique conversation_id).
    """

    __tablename__ = "carts"

    id: str = Field(
        default_factory=_new_id,
        primary_key=True,
    )

    conversation_id: str = Field(
        unique=True,
        index=True,
        description="Chat/support conversation this cart belongs to",
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
    )


class CartItem(SQLModel, table=True):
    """
    Line item of a cart.
    One cart cannot have 2 rows for the same product.
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
    )

    id: str = Field(
        default_factory=_new_id,
        primary_key=True,
    )

    cart_id: str = Field(index=True)

    product_id: int = Field(
        foreign_key="products.id",
        index=True,
    )

    qty: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    unit_price: float = Field(
        description="Tier price resolved on the last add of this product",
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
    )

    updated_at: datetime = Field(
        default_factory=_utcnow,
    )
