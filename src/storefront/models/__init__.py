from .product import Product, ProductVariant
from .cart import Cart, CartItem
from .stock import StockReservation, StockNotification, SentAlertRecord, AlertKey

__all__ = [
    "Product", "ProductVariant",
    "Cart", "CartItem",
    "StockReservation", "StockNotification", "SentAlertRecord", "AlertKey",
]
