"""Cart seeding from a referring URL's query string."""
import logging
from urllib.parse import parse_qs

from ..schema import CartItem

logger = logging.getLogger(__name__)


def parse_cart_query(query: str) -> list[CartItem]:
    """
    Parse repeated ``item=id,name,price,quantity`` parameters.

    Price is in minor units. Malformed tuples are skipped.
    """
    params = parse_qs((query or "").lstrip("?"))
    items: list[CartItem] = []

    for raw in params.get("item", []):
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) != 4 or not all(parts):
            logger.warning("Skipping malformed cart item: %r", raw)
            continue
        item_id, name, price, quantity = parts
        try:
            items.append(CartItem(id=item_id, name=name, price=int(price), quantity=int(quantity)))
        except ValueError:
            logger.warning("Skipping cart item with non-numeric price/quantity: %r", raw)

    return items
