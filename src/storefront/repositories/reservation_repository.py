from datetime import datetime
from typing import Optional, Tuple
import logging

from storefront.models.stock import StockReservation
from storefront.repositories.base import InMemoryRepository

logger = logging.getLogger(__name__)


class ReservationRepository(InMemoryRepository[StockReservation]):
    """Ledger of stock reservations"""

    entity_name = "Reservation"

    def get_unexpired(self, reservation_id: str, now: datetime) -> Tuple[Optional[StockReservation], bool]:
        """
        Look up a reservation, evicting it if its window has lapsed.

        Returns (reservation, expired). An expired entry is deleted inside the
        same critical section and reported as (None, True); a missing one as
        (None, False).
        """
        with self.locked() as entries:
            reservation = entries.get(reservation_id)
            if reservation is None:
                return None, False
            if reservation.is_expired(now):
                del entries[reservation_id]
                logger.info(f"Reservation {reservation_id} expired at {reservation.expires_at.isoformat()}")
                return None, True
            return reservation, False

    def delete_expired(self, now: datetime) -> int:
        """Drop every reservation whose expires_at is before `now`"""
        return self.delete_where(lambda reservation: reservation.expires_at < now)
