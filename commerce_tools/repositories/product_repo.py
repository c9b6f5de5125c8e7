# commerce_tools/repositories/product_repo.py
from sqlalchemy import or_
from sqlmodel import Session, col, select

from commerce_tools.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (queries only; the catalog is read-only here).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: int) -> Product | None:
        return session.get(Product, product_id)

    def list(
        self,
        session: Session,
        query: str | None = None,
        offset: int = 0,
        limit: int = 10,
        only_available: bool = True,
    ) -> list[Product]:
        stmt = select(Product)
        if only_available:
            stmt = stmt.where(Product.available == True)  # noqa: E712
        if query:
            like = f"%{query}%"
            stmt = stmt.where(
                or_(
                    col(Product.name).ilike(like),
                    col(Product.description).ilike(like),
                    col(Product.category).ilike(like),
                )
            )
        stmt = stmt.order_by(Product.id).offset(offset).limit(limit)
        return session.exec(stmt).all()
