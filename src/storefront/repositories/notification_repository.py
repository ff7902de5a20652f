from datetime import datetime
from typing import Callable, List, Optional, Set, Tuple

from storefront.models.product import Identifier
from storefront.models.stock import StockNotification
from storefront.repositories.base import InMemoryRepository


class NotificationRepository(InMemoryRepository[StockNotification]):
    """Ledger of restock subscriptions, kept after they fire for audit"""

    entity_name = "Notification"

    def __init__(self):
        super().__init__()
        self._in_flight: Set[str] = set()

    def find_active(
        self, product_id: Identifier, variant_id: Optional[Identifier], email: str
    ) -> Optional[StockNotification]:
        with self.locked() as entries:
            return next(
                (
                    n for n in entries.values()
                    if n.is_active and n.matches(product_id, variant_id) and n.email == email
                ),
                None,
            )

    def find_active_or_add(
        self,
        product_id: Identifier,
        variant_id: Optional[Identifier],
        email: str,
        factory: Callable[[], StockNotification],
    ) -> Tuple[StockNotification, bool]:
        """
        Return the active subscription for the triple, creating one if needed.

        Check and insert share one critical section. Returns (notification, created).
        """
        with self.locked() as entries:
            existing = self.find_active(product_id, variant_id, email)
            if existing is not None:
                return existing, False
            notification = factory()
            entries[notification.id] = notification
            return notification, True

    def list_active_for_email(self, email: str) -> List[StockNotification]:
        return self.filter(lambda n: n.email == email and n.is_active)

    def claim_active_for_item(
        self, product_id: Identifier, variant_id: Optional[Identifier]
    ) -> List[StockNotification]:
        """
        Take the active subscriptions for an item out of circulation for sending.

        A claimed subscription is skipped by any concurrent claim until it is
        either marked notified or released.
        """
        with self.locked() as entries:
            claimed = [
                n for n in entries.values()
                if n.is_active and n.matches(product_id, variant_id) and n.id not in self._in_flight
            ]
            self._in_flight.update(n.id for n in claimed)
            return claimed

    def mark_notified(self, notification_id: str, when: datetime) -> bool:
        with self.locked() as entries:
            self._in_flight.discard(notification_id)
            notification = entries.get(notification_id)
            if notification is None or notification.notified:
                return False
            notification.mark_notified(when)
            return True

    def release_claim(self, notification_id: str) -> None:
        with self.locked():
            self._in_flight.discard(notification_id)
