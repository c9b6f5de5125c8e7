# commerce_tools/services/cart_service.py
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from commerce_tools.core.chatwoot_client import ConversationLabeler, NullLabeler
from commerce_tools.core.errors import (
    CartStoreError,
    InsufficientStockError,
    InvalidArgumentError,
    InvalidQuantityError,
    ProductNotFoundError,
)
from commerce_tools.models.cart import Cart, CartItem
from commerce_tools.models.product import Product
from commerce_tools.repositories.cart_repo import CartRepository
from commerce_tools.repositories.product_repo import ProductRepository
from commerce_tools.schemas.cart import CartItemRead, CartView
from commerce_tools.services.pricing import unit_price_for_qty

logger = logging.getLogger(__name__)

# Bound on read-merge-write retries when concurrent adds keep winning
MAX_MUTATION_ATTEMPTS = 5

PURCHASE_INTENT_LABEL = "intent:purchase"


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - one cart per conversation (get-or-create, race-safe)
      - validate product existence and availability
      - enforce merged quantity <= stock
      - snapshot the tier unit price on every add
      - tag the conversation with purchase labels (best-effort)
      - compute cart totals
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        labeler: ConversationLabeler | None = None,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.labeler = labeler or NullLabeler()

    # ---- internal helpers ----

    def _get_available_product(self, session: Session, product_id: int | None) -> Product:
        product = self.product_repo.get_by_id(session, product_id) if product_id is not None else None
        if not product or not product.available:
            raise ProductNotFoundError()
        return product

    def _upsert_item(
        self,
        session: Session,
        cart_id: str,
        product: Product,
        qty: int,
        unit_price: float,
    ) -> None:
        """
        Insert the line item or merge `qty` into the existing one.

        Optimistic loop: the update only applies if qty is unchanged since
        we read it, and a lost insert race falls through to the merge path.
        """
        for attempt in range(1, MAX_MUTATION_ATTEMPTS + 1):
            existing = self.cart_repo.get_item(session, cart_id, product.id)

            if existing:
                new_qty = existing.qty + qty
                if new_qty > product.stock:
                    logger.info(
                        "Merged qty %s exceeds stock %s (cart=%s, product=%s)",
                        new_qty, product.stock, cart_id, product.id,
                    )
                    raise InsufficientStockError(stock=product.stock)

                if self.cart_repo.update_item_if_qty(
                    session,
                    existing.id,
                    expected_qty=existing.qty,
                    new_qty=new_qty,
                    unit_price=unit_price,
                ):
                    return
            else:
                try:
                    self.cart_repo.create_item(
                        session,
                        CartItem(
                            cart_id=cart_id,
                            product_id=product.id,
                            qty=qty,
                            unit_price=unit_price,
                        ),
                    )
                    return
                except IntegrityError:
                    pass

            logger.info(
                "Concurrent change on cart=%s product=%s, retrying (%s/%s)",
                cart_id, product.id, attempt, MAX_MUTATION_ATTEMPTS,
            )

        raise CartStoreError("Cart item kept changing concurrently")

    def _tag_purchase_intent(self, conversation_id: str, cart_id: str, product_id: int) -> None:
        labels = {
            PURCHASE_INTENT_LABEL,
            f"cart:{cart_id}",
            f"product:{product_id}",
        }
        try:
            self.labeler.tag_conversation(conversation_id, labels)
        except Exception:
            # Labelers are expected not to raise; keep the cart result anyway
            logger.warning("Labeler raised for conversation %s", conversation_id, exc_info=True)

    # ---- public operations ----

    def get_or_create_cart(self, session: Session, conversation_id: str) -> str:
        """
        Return the cart id for a conversation, creating the cart on first use.

        Two concurrent callers for a new conversation both try to insert;
        the unique constraint on conversation_id rejects one of them, and the
        loser returns the winner's cart.
        """
        if not conversation_id:
            raise InvalidArgumentError("conversation_id")

        try:
            existing = self.cart_repo.get_by_conversation(session, conversation_id)
            if existing:
                return existing.id

            try:
                cart = self.cart_repo.create(session, Cart(conversation_id=conversation_id))
                logger.info("Created cart %s for conversation %s", cart.id, conversation_id)
                return cart.id
            except IntegrityError:
                logger.info("Lost cart creation race for conversation %s", conversation_id)

            winner = self.cart_repo.get_by_conversation(session, conversation_id)
        except SQLAlchemyError as e:
            logger.exception("Cart store failure for conversation %s", conversation_id)
            raise CartStoreError("Could not create cart") from e

        if not winner:
            raise CartStoreError("Could not create cart")
        return winner.id

    def get_cart_view(self, session: Session, cart_id: str) -> CartView:
        """
        Return the cart's line items (ordered by product id) and total.

        An unknown cart id yields an empty view, not an error.
        """
        items: list[CartItemRead] = []
        total = 0.0

        for it, name in self.cart_repo.list_view_rows(session, cart_id):
            total += it.qty * it.unit_price
            items.append(
                CartItemRead(
                    product_id=it.product_id,
                    qty=it.qty,
                    unit_price=it.unit_price,
                    name=name,
                )
            )

        return CartView(cart_id=cart_id, items=items, total=round(total, 2))

    def add_to_cart(
        self,
        session: Session,
        cart_id: str,
        product_id: int | None,
        qty,
        conversation_id: str | None = None,
    ) -> CartView:
        """
        Add `qty` units of a product to the cart.

        Checks, in order (first failure wins):
          1. product exists and is available   -> PRODUCT_NOT_FOUND
          2. qty is a positive integer          -> INVALID_QTY
          3. qty <= stock                       -> INSUFFICIENT_STOCK
          4. existing qty + qty <= stock        -> INSUFFICIENT_STOCK

        The unit price is resolved from this add's qty and overwrites the
        snapshot on an existing line. Stock is compared, never decremented.
        """
        product = self._get_available_product(session, product_id)

        if not _is_positive_int(qty):
            raise InvalidQuantityError()

        if qty > product.stock:
            raise InsufficientStockError(stock=product.stock)

        if not cart_id:
            raise InvalidArgumentError("cart_id")

        unit_price = unit_price_for_qty(product, qty)
        self._upsert_item(session, cart_id, product, qty, unit_price)

        if conversation_id:
            self._tag_purchase_intent(conversation_id, cart_id, product.id)

        return self.get_cart_view(session, cart_id)
