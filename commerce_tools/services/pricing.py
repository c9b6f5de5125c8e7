# commerce_tools/services/pricing.py
from commerce_tools.models.product import Product

TIER_100_MIN_QTY = 100
TIER_200_MIN_QTY = 200


def unit_price_for_qty(product: Product, qty: int) -> float:
    """
    Pick the unit price tier for a single add of `qty` units.

    The tier follows the quantity of this add, not the cart's accumulated
    quantity for the product.
    """
    if qty >= TIER_200_MIN_QTY:
        return product.price_200
    if qty >= TIER_100_MIN_QTY:
        return product.price_100
    return product.price_50
