# commerce_tools/repositories/cart_repo.py
from datetime import datetime, timezone

from sqlalchemy import update
from sqlmodel import Session, select

from commerce_tools.models.cart import Cart, CartItem
from commerce_tools.models.product import Product


class CartRepository:
    """
    Data access layer for Cart & CartItem.

    Every write is a single statement committed on its own; callers must not
    assume multi-statement transactions. Unique-constraint violations surface
    as sqlalchemy.exc.IntegrityError after the session has been rolled back.
    """

    # ----- Carts -----

    def get_by_conversation(self, session: Session, conversation_id: str) -> Cart | None:
        stmt = select(Cart).where(Cart.conversation_id == conversation_id)
        return session.exec(stmt).first()

    def create(self, session: Session, cart: Cart) -> Cart:
        session.add(cart)
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(cart)
        return cart

    # ----- Line items -----

    def get_item(
        self, session: Session, cart_id: str, product_id: int
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.cart_id == cart_id, CartItem.product_id == product_id
        )
        # Bypass the identity map so a retry sees the committed row
        stmt = stmt.execution_options(populate_existing=True)
        return session.exec(stmt).first()

    def create_item(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(item)
        return item

    def update_item_if_qty(
        self,
        session: Session,
        item_id: str,
        *,
        expected_qty: int,
        new_qty: int,
        unit_price: float,
    ) -> bool:
        """
        Compare-and-swap update of a line item.

        Only applies when the stored qty still equals `expected_qty`.
        Returns True if the row was updated, False if another writer got
        there first.
        """
        stmt = (
            update(CartItem)
            .where(CartItem.id == item_id, CartItem.qty == expected_qty)
            .values(
                qty=new_qty,
                unit_price=unit_price,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = session.exec(stmt)  # type: ignore[call-overload]
            session.commit()
        except Exception:
            session.rollback()
            raise
        return result.rowcount == 1

    def list_view_rows(self, session: Session, cart_id: str) -> list[tuple[CartItem, str]]:
        """
        Line items of a cart joined with current product names,
        ordered by product id.
        """
        stmt = (
            select(CartItem, Product.name)
            .join(Product, Product.id == CartItem.product_id)
            .where(CartItem.cart_id == cart_id)
            .order_by(Product.id)
        )
        return session.exec(stmt).all()
