from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any, NamedTuple

from storefront.models.product import Identifier
from storefront.utils.date_utils import DateUtils


@dataclass
class StockReservation:
    """
    A time-boxed hold on variant stock taken at checkout start.

    Lifecycle: created -> (active) -> released | expired. Once `now` is past
    `expires_at` the reservation is never handed back to a caller again.
    """
    id: str
    variant_id: Identifier
    product_id: Identifier
    quantity: int
    created_at: datetime
    expires_at: datetime
    session_id: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return DateUtils.is_expired(self.expires_at, now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "variantId": self.variant_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "createdAt": DateUtils.to_iso_string(self.created_at),
            "expiresAt": DateUtils.to_iso_string(self.expires_at),
            "sessionId": self.session_id,
        }


@dataclass
class StockNotification:
    """
    A "notify me on restock" subscription.

    `notified` flips exactly once; afterwards the record is inert but kept.
    """
    id: str
    product_id: Identifier
    email: str
    created_at: datetime
    variant_id: Optional[Identifier] = None
    notified: bool = False
    notified_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return not self.notified

    def matches(self, product_id: Identifier, variant_id: Optional[Identifier]) -> bool:
        """Exact match on both ids; a missing variant only matches a missing variant"""
        return self.product_id == product_id and self.variant_id == variant_id

    def mark_notified(self, when: datetime) -> None:
        self.notified = True
        self.notified_at = when

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "productId": self.product_id,
            "variantId": self.variant_id,
            "email": self.email,
            "notified": self.notified,
            "createdAt": DateUtils.to_iso_string(self.created_at),
            "notifiedAt": DateUtils.to_iso_string(self.notified_at),
        }


class AlertKey(NamedTuple):
    """Cooldown key for low-stock alerts"""
    product_id: Identifier
    variant_id: Optional[Identifier] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"productId": self.product_id}
        if self.variant_id is not None:
            data["variantId"] = self.variant_id
        return data


@dataclass
class SentAlertRecord:
    key: AlertKey
    sent_at: datetime
