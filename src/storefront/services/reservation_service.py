import uuid
from datetime import datetime
from typing import Callable, Optional
import logging

from storefront.core.exceptions import (
    GoneError, InsufficientStockError, NotFoundError, ValidationError
)
from storefront.models.product import Identifier
from storefront.models.stock import StockReservation
from storefront.repositories.reservation_repository import ReservationRepository
from storefront.utils.date_utils import DateUtils
from storefront.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

RESERVATION_TTL_MINUTES = 15

# (product_id, variant_id, quantity) -> True when the hold can be honoured
StockChecker = Callable[[Identifier, Identifier, int], bool]


class ReservationStore:
    """
    Checkout stock holds with a hard expiry

    Business Rules:
    - A reservation lives for `ttl_minutes` from creation, then it is gone
    - Expiry is lazy: enforced on read and by `sweep()`, which creation also
      triggers; long-running processes should schedule `sweep()` as well
    - Without a `stock_checker` creation is trusted; no inventory is consulted
    """

    def __init__(
        self,
        repository: Optional[ReservationRepository] = None,
        ttl_minutes: int = RESERVATION_TTL_MINUTES,
        clock: Callable[[], datetime] = DateUtils.now_utc,
        stock_checker: Optional[StockChecker] = None,
    ):
        self.repository = repository or ReservationRepository()
        self.ttl_minutes = ttl_minutes
        self.clock = clock
        self.stock_checker = stock_checker

    def create(
        self,
        variant_id: Identifier,
        product_id: Identifier,
        quantity: int,
        session_id: Optional[str] = None,
    ) -> StockReservation:
        field_errors = []
        if not ValidationUtils.has_identifier(variant_id):
            field_errors.append({"field": "variantId", "message": "variantId is required"})
        if not ValidationUtils.has_identifier(product_id):
            field_errors.append({"field": "productId", "message": "productId is required"})
        if not ValidationUtils.validate_quantity(quantity):
            field_errors.append({"field": "quantity", "message": "quantity must be a positive integer"})
        if field_errors:
            raise ValidationError(
                "variantId, productId, and quantity (positive) are required", field_errors
            )

        if self.stock_checker and not self.stock_checker(product_id, variant_id, quantity):
            logger.warning(f"Reservation refused: {quantity} x variant {variant_id} exceeds available stock")
            raise InsufficientStockError(product_id, variant_id, quantity)

        now = self.clock()
        reservation = StockReservation(
            id=f"res_{uuid.uuid4().hex}",
            variant_id=variant_id,
            product_id=product_id,
            quantity=quantity,
            created_at=now,
            expires_at=DateUtils.create_expiry_time(self.ttl_minutes, now),
            session_id=session_id,
        )
        self.repository.add(reservation.id, reservation)
        logger.info(
            f"Reservation {reservation.id} created: {quantity} x variant {variant_id} "
            f"until {reservation.expires_at.isoformat()}"
        )

        self.sweep()
        return reservation

    def get(self, reservation_id: str) -> StockReservation:
        reservation, expired = self.repository.get_unexpired(reservation_id, self.clock())
        if expired:
            raise GoneError("Reservation", reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    def release(self, reservation_id: str) -> StockReservation:
        """Checkout completed or cancelled: drop the hold"""
        reservation = self.repository.delete(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        logger.info(f"Reservation {reservation_id} released")
        return reservation

    def sweep(self) -> int:
        """Delete every reservation past its deadline; returns how many went"""
        cleaned = self.repository.delete_expired(self.clock())
        if cleaned:
            logger.info(f"Swept {cleaned} expired reservation(s)")
        return cleaned

    def active_count(self) -> int:
        return self.repository.count()
