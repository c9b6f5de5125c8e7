# commerce_tools/services/product_service.py
from sqlmodel import Session

from commerce_tools.core.errors import ProductNotFoundError
from commerce_tools.models.product import Product
from commerce_tools.repositories.product_repo import ProductRepository

DEFAULT_LIST_LIMIT = 10
MAX_LIST_LIMIT = 50
# Largest OFFSET a 64-bit SQL integer accepts
MAX_LIST_OFFSET = 2**63 - 1


class ProductService:
    """
    Read-only catalog operations exposed as tools.

    Responsibilities:
      - clamp pagination to safe bounds
      - hide unavailable products from listings
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def list_products(
        self,
        session: Session,
        query: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> list[Product]:
        """
        List available products, optionally filtered by a search term
        matched against name, description and category.

        - limit is clamped to [1, MAX_LIST_LIMIT]
        - offset is clamped to [0, MAX_LIST_OFFSET]
        """
        limit = min(max(limit, 1), MAX_LIST_LIMIT)
        offset = min(max(offset, 0), MAX_LIST_OFFSET)
        query = (query or "").strip() or None
        return self.repo.list(session, query=query, offset=offset, limit=limit)

    def get_product(self, session: Session, product_id: int | None) -> Product:
        """
        Fetch any product by id, available or not.
        """
        product = self.repo.get_by_id(session, product_id) if product_id is not None else None
        if not product:
            raise ProductNotFoundError()
        return product
