from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Tuple

from storefront.models.product import Identifier, Product, ProductVariant

CartKey = Tuple[Identifier, Optional[Identifier]]


@dataclass
class CartItem:
    """A product (optionally pinned to one variant) and a positive quantity"""
    product: Product
    variant: Optional[ProductVariant] = None
    quantity: int = 1

    @property
    def key(self) -> CartKey:
        """Identity slot: the bare product and each of its variants are distinct"""
        return (self.product.id, self.variant.id if self.variant else None)

    def matches(self, product_id: Identifier, variant_id: Optional[Identifier] = None) -> bool:
        return self.key == (product_id, variant_id)

    def to_dict(self, threshold: Optional[int] = None) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "productId": self.product.id,
            "productName": self.product.name,
            "variant": self.variant.to_dict(threshold) if self.variant else None,
            "quantity": self.quantity,
        }


@dataclass
class Cart:
    """Ordered collection of cart lines, at most one per identity key"""
    items: List[CartItem] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        """Number of distinct lines"""
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        """Total quantity of all items"""
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return len(self.items) == 0

    def find(self, product_id: Identifier, variant_id: Optional[Identifier] = None) -> Optional[CartItem]:
        return next((item for item in self.items if item.matches(product_id, variant_id)), None)

    def add_item(self, item: CartItem) -> None:
        self.items.append(item)

    def remove_product(self, product_id: Identifier) -> int:
        """Drop every line for the product, whatever its variant; returns lines removed"""
        original_length = len(self.items)
        self.items = [item for item in self.items if item.product.id != product_id]
        return original_length - len(self.items)

    def clear(self) -> None:
        self.items.clear()

    def to_dict(self, threshold: Optional[int] = None) -> Dict[str, Any]:
        return {
            "totalItems": self.total_items,
            "itemCount": self.total_quantity,
            "isEmpty": self.is_empty,
            "items": [item.to_dict(threshold) for item in self.items],
        }
