from threading import RLock
from typing import List
import logging

from storefront.models.product import Identifier, Product

logger = logging.getLogger(__name__)


class WishlistStore:
    """Saved-for-later products, one entry per product id, in the order added"""

    def __init__(self):
        self._items: List[Product] = []
        self._lock = RLock()

    @property
    def items(self) -> List[Product]:
        with self._lock:
            return list(self._items)

    @property
    def item_count(self) -> int:
        with self._lock:
            return len(self._items)

    def contains(self, product_id: Identifier) -> bool:
        with self._lock:
            return any(item.id == product_id for item in self._items)

    def add(self, product: Product) -> bool:
        """Returns False when the product was already saved"""
        with self._lock:
            if self.contains(product.id):
                return False
            self._items.append(product)
        logger.info(f"Added to wishlist: {product.name}")
        return True

    def remove(self, product_id: Identifier) -> bool:
        with self._lock:
            before = len(self._items)
            self._items = [item for item in self._items if item.id != product_id]
            removed = len(self._items) < before
        if removed:
            logger.info(f"Removed from wishlist: {product_id}")
        return removed

    def toggle(self, product: Product) -> bool:
        """Flip membership; returns True if the product is saved afterwards"""
        with self._lock:
            if self.remove(product.id):
                return False
            return self.add(product)
