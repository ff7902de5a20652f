from dataclasses import dataclass
from enum import Enum
from threading import RLock
from typing import List, Optional
import logging

from storefront.models.cart import Cart, CartItem
from storefront.models.product import Identifier, Product, ProductVariant
from storefront.utils.stock_calculations import StockStatus

logger = logging.getLogger(__name__)


class CartErrorCode(str, Enum):
    OUT_OF_STOCK = "OUT_OF_STOCK"
    INSUFFICIENT_QUANTITY = "INSUFFICIENT_QUANTITY"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    INVALID_QUANTITY = "INVALID_QUANTITY"


@dataclass
class CartResult:
    success: bool
    error: Optional[str] = None
    code: Optional[CartErrorCode] = None

    @classmethod
    def ok(cls) -> "CartResult":
        return cls(success=True)

    @classmethod
    def failure(cls, code: CartErrorCode, message: str) -> "CartResult":
        return cls(success=False, error=message, code=code)


class CartStore:
    """
    Client-side shopping cart with stock admission control

    Business Rules:
    - Every mutation is validated against the stock known at that moment
    - One line per (product, variant) slot; repeated adds accumulate
    - Failures never raise: they come back as a CartResult and are mirrored
      in `error` until the next call overwrites it
    """

    def __init__(self, low_stock_threshold: Optional[int] = None):
        self.low_stock_threshold = low_stock_threshold
        self._cart = Cart()
        self._error: Optional[str] = None
        self._lock = RLock()

    @property
    def items(self) -> List[CartItem]:
        with self._lock:
            return list(self._cart.items)

    @property
    def item_count(self) -> int:
        """Sum of quantities across all lines"""
        with self._lock:
            return self._cart.total_quantity

    @property
    def error(self) -> Optional[str]:
        return self._error

    def add_to_cart(
        self,
        product: Product,
        variant: Optional[ProductVariant] = None,
        quantity: int = 1,
    ) -> CartResult:
        """
        Add a product (optionally a specific variant) to the cart

        Business Rules:
        - With a variant: its stock must cover the requested quantity
        - Without a variant: any single variant covering the quantity is enough
        - Without variants at all: fall back to the product's in_stock flag
        - Merging into an existing variant line re-checks the combined total
        """
        with self._lock:
            self._error = None

            if quantity < 1:
                return self._fail(CartErrorCode.INVALID_QUANTITY, f"Quantity must be at least 1 (got {quantity})")

            if not self._check_product_stock(product, variant, quantity):
                return self._fail(*self._stock_failure(product, variant, quantity))

            existing = self._cart.find(product.id, variant.id if variant else None)
            if existing:
                total_quantity = existing.quantity + quantity
                if variant and not variant.has_stock_for(total_quantity):
                    message = self._stock_error_message(product, variant, quantity, existing.quantity)
                    return self._fail(CartErrorCode.INSUFFICIENT_QUANTITY, message)
                existing.quantity = total_quantity
            else:
                self._cart.add_item(CartItem(product=product, variant=variant, quantity=quantity))

            logger.info(
                f"Added to cart: {product.name}{f' ({variant.value})' if variant else ''} x{quantity}"
            )
            return CartResult.ok()

    def remove_from_cart(self, product_id: Identifier) -> None:
        """Remove every line for the product, regardless of variant"""
        with self._lock:
            removed = self._cart.remove_product(product_id)
        if removed:
            logger.info(f"Removed {removed} line(s) for product {product_id} from cart")

    def update_quantity(
        self,
        product_id: Identifier,
        quantity: int,
        variant_id: Optional[Identifier] = None,
    ) -> CartResult:
        """Set the absolute quantity of one line after re-validating stock"""
        with self._lock:
            self._error = None

            if quantity < 1:
                return self._fail(CartErrorCode.INVALID_QUANTITY, f"Quantity must be at least 1 (got {quantity})")

            item = self._cart.find(product_id, variant_id)
            if not item:
                slot = f"Product {product_id}" + (f" (variant {variant_id})" if variant_id is not None else "")
                return self._fail(CartErrorCode.ITEM_NOT_FOUND, f"{slot} not found in cart")

            if item.variant:
                if not item.variant.has_stock_for(quantity):
                    return self._fail(*self._stock_failure(item.product, item.variant, quantity))
            elif not self._check_product_stock(item.product, None, quantity):
                return self._fail(*self._stock_failure(item.product, None, quantity))

            item.quantity = quantity
            logger.info(f"Cart line {item.key} set to quantity {quantity}")
            return CartResult.ok()

    def clear_cart(self) -> None:
        with self._lock:
            self._cart.clear()

    def to_dict(self) -> dict:
        with self._lock:
            data = self._cart.to_dict(self.low_stock_threshold)
        data["error"] = self._error
        return data

    # ------------------------------------------------------------------ #
    # Admission control                                                   #
    # ------------------------------------------------------------------ #
    @staticmethod
    def _check_product_stock(product: Product, variant: Optional[ProductVariant], requested_quantity: int) -> bool:
        if variant:
            return variant.has_stock_for(requested_quantity)

        if product.has_variants:
            return any(v.has_stock_for(requested_quantity) for v in product.variants)

        return product.in_stock is not False

    def _stock_failure(self, product: Product, variant: Optional[ProductVariant], requested_quantity: int):
        if variant is not None and variant.stock_quantity and variant.stock_quantity > 0:
            code = CartErrorCode.INSUFFICIENT_QUANTITY
        elif variant is None and product.has_variants and any(v.is_available for v in product.variants):
            code = CartErrorCode.INSUFFICIENT_QUANTITY
        else:
            code = CartErrorCode.OUT_OF_STOCK
        return code, self._stock_error_message(product, variant, requested_quantity)

    @staticmethod
    def _stock_error_message(
        product: Product,
        variant: Optional[ProductVariant],
        requested_quantity: int,
        in_cart: int = 0,
    ) -> str:
        if variant:
            if variant.stock_status is StockStatus.OUT_OF_STOCK:
                return f'Variant "{variant.value}" of {product.name} is out of stock'
            if variant.stock_quantity is not None:
                message = (
                    f'Only {variant.stock_quantity} unit(s) available for variant "{variant.value}" '
                    f'of {product.name} (requested {requested_quantity}'
                )
                if in_cart:
                    message += f", {in_cart} already in cart"
                return message + ")"

        if product.has_variants and any(v.is_available for v in product.variants):
            return f"No variant of {product.name} has {requested_quantity} unit(s) in stock"

        return f"{product.name} is out of stock"

    def _fail(self, code: CartErrorCode, message: str) -> CartResult:
        self._error = message
        logger.warning(f"Cart operation rejected ({code.value}): {message}")
        return CartResult.failure(code, message)
