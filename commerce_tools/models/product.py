# commerce_tools/models/product.py
from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Catalog entry. Read-only for the cart logic.

    Three unit price tiers are selected by the quantity of a single add:
      - price_50  : base tier (any qty below 100)
      - price_100 : 100..199 units
      - price_200 : 200+ units
    """

    __tablename__ = "products"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    name: str = Field(
        index=True,
        description="Display name",
    )

    description: str = Field(default="")
    category: str = Field(default="", index=True)
    size: str = Field(default="")
    color: str = Field(default="")

    stock: int = Field(
        default=0,
        ge=0,
        description="Available-to-sell units (compared on add, never decremented)",
    )

    available: bool = Field(
        default=True,
        index=True,
        description="Whether the product can be listed and added to carts",
    )

    price_50: float = Field(description="Unit price for qty < 100")
    price_100: float = Field(description="Unit price for 100 <= qty < 200")
    price_200: float = Field(description="Unit price for qty >= 200")
