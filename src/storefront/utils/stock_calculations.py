"""
Stock status calculation utilities.

Pure functions mapping a raw stock quantity onto a StockStatus. The
process-wide threshold lives in configuration; callers read it there and pass
it in, these helpers only fall back to DEFAULT_LOW_STOCK_THRESHOLD.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

DEFAULT_LOW_STOCK_THRESHOLD = 10

Quantity = Optional[Union[int, float]]


class StockStatus(str, Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


def calculate_stock_status(quantity: Quantity, threshold: Optional[int] = None) -> StockStatus:
    """
    Calculate stock status based on quantity and threshold

    Args:
        quantity: Current stock quantity (None means unknown, treated as out of stock)
        threshold: Low stock threshold, inclusive (default: 10)
    """
    low_stock_threshold = DEFAULT_LOW_STOCK_THRESHOLD if threshold is None else threshold

    if quantity is None or quantity <= 0:
        return StockStatus.OUT_OF_STOCK

    if quantity > low_stock_threshold:
        return StockStatus.IN_STOCK

    return StockStatus.LOW_STOCK


def is_variant_available(quantity: Quantity, threshold: Optional[int] = None) -> bool:
    """Check if a variant has any stock at all"""
    return calculate_stock_status(quantity, threshold) is not StockStatus.OUT_OF_STOCK


@dataclass(frozen=True)
class StockStatusSummary:
    """Status plus the convenience flags product pages render from"""
    status: StockStatus
    quantity: Quantity
    threshold: int

    @property
    def is_available(self) -> bool:
        return self.status is not StockStatus.OUT_OF_STOCK

    @property
    def is_low_stock(self) -> bool:
        return self.status is StockStatus.LOW_STOCK

    @property
    def is_out_of_stock(self) -> bool:
        return self.status is StockStatus.OUT_OF_STOCK

    def to_dict(self) -> dict:
        return {
            "stockStatus": self.status.value,
            "quantity": self.quantity,
            "threshold": self.threshold,
            "isAvailable": self.is_available,
            "isLowStock": self.is_low_stock,
            "isOutOfStock": self.is_out_of_stock,
        }


def stock_status_summary(quantity: Quantity, threshold: Optional[int] = None) -> StockStatusSummary:
    low_stock_threshold = DEFAULT_LOW_STOCK_THRESHOLD if threshold is None else threshold
    return StockStatusSummary(
        status=calculate_stock_status(quantity, low_stock_threshold),
        quantity=quantity,
        threshold=low_stock_threshold,
    )
