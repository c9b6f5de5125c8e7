# commerce_tools/schemas/product.py
from pydantic import ConfigDict
from sqlmodel import SQLModel


class ProductRead(SQLModel):
    """
    Product representation for tool callers.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    category: str
    size: str
    color: str
    stock: int
    available: bool
    price_50: float
    price_100: float
    price_200: float


class ProductList(SQLModel):
    products: list[ProductRead]


class ProductDetail(SQLModel):
    product: ProductRead
