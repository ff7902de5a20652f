from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Union

from storefront.utils.stock_calculations import StockStatus, calculate_stock_status

Identifier = Union[int, str]


@dataclass
class ProductVariant:
    """A purchasable configuration of a product (size, scent profile, ...)"""
    id: Identifier
    value: str  # e.g. "50ml", "Floral"
    sku: str
    type: str = "size"
    price: Optional[float] = None  # Price override, falls back to the product price
    currency: Optional[str] = None
    stock_quantity: Optional[int] = None  # Source of truth; None means unknown
    images: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def stock_status(self) -> StockStatus:
        return self.status_for()

    def status_for(self, threshold: Optional[int] = None) -> StockStatus:
        return calculate_stock_status(self.stock_quantity, threshold)

    @property
    def is_available(self) -> bool:
        return self.stock_status is not StockStatus.OUT_OF_STOCK

    def has_stock_for(self, requested_quantity: int) -> bool:
        """A variant with no or zero stock never satisfies a request"""
        if not self.stock_quantity or self.stock_quantity <= 0:
            return False
        return self.stock_quantity >= requested_quantity

    def to_dict(self, threshold: Optional[int] = None) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization; `threshold` is the configured low-stock level"""
        return {
            "id": self.id,
            "type": self.type,
            "value": self.value,
            "sku": self.sku,
            "price": self.price,
            "currency": self.currency,
            "stockQuantity": self.stock_quantity,
            "stockStatus": self.status_for(threshold).value,
            "isAvailable": self.is_available,
        }


@dataclass
class Product:
    """A catalogue product with its variants"""
    id: Identifier
    name: str
    sku: str = ""
    price: float = 0.0
    currency: str = "EUR"
    variants: List[ProductVariant] = field(default_factory=list)
    in_stock: Optional[bool] = None  # Fallback flag, only consulted without variants

    @property
    def has_variants(self) -> bool:
        return len(self.variants) > 0

    @property
    def is_available(self) -> bool:
        """OR over variant availability; the product-level flag otherwise"""
        if self.has_variants:
            return any(v.is_available for v in self.variants)
        return self.in_stock is not False
