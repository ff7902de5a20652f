from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, Tuple
import logging

from storefront.clients.email_client import (
    EmailDispatcher, EmailMessage, NotificationSink, describe_item, render_low_stock_alert_email
)
from storefront.core.exceptions import ConfigurationError
from storefront.models.product import Product, ProductVariant
from storefront.models.stock import AlertKey, SentAlertRecord
from storefront.repositories.alert_repository import SentAlertRepository
from storefront.utils.date_utils import DateUtils
from storefront.utils.stock_calculations import DEFAULT_LOW_STOCK_THRESHOLD

logger = logging.getLogger(__name__)

ALERT_COOLDOWN_HOURS = 24


@dataclass(frozen=True)
class LowStockCheck:
    is_low_stock: bool
    current_quantity: int
    threshold: int


@dataclass
class _PendingAlert:
    key: AlertKey
    message: EmailMessage
    previous: Optional[SentAlertRecord]


class LowStockAlerter:
    """
    Admin alerts for products and variants running low

    Business Rules:
    - Low means 0 < quantity <= threshold; sold-out items are not "low"
    - One alert per (product, variant) per cooldown window
    - Products without variants never trigger; only variant stock is tracked
    """

    def __init__(
        self,
        email_client: NotificationSink,
        admin_email: Optional[str],
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        cooldown_hours: int = ALERT_COOLDOWN_HOURS,
        repository: Optional[SentAlertRepository] = None,
        dispatcher: Optional[EmailDispatcher] = None,
        clock: Callable[[], datetime] = DateUtils.now_utc,
    ):
        self.email_client = email_client
        self.admin_email = admin_email
        self.default_threshold = default_threshold
        self.cooldown = timedelta(hours=cooldown_hours)
        self.repository = repository or SentAlertRepository()
        self.dispatcher = dispatcher or EmailDispatcher()
        self.clock = clock

    def check_low_stock(
        self,
        product: Product,
        variant: Optional[ProductVariant] = None,
        threshold: Optional[int] = None,
    ) -> LowStockCheck:
        """
        Evaluate one variant, or a whole product when no variant is given.

        For a whole product the reported quantity is the largest one among
        its low variants, not the smallest.
        """
        threshold = self.default_threshold if threshold is None else threshold

        if variant is not None:
            quantity = variant.stock_quantity or 0
            return LowStockCheck(0 < quantity <= threshold, quantity, threshold)

        low_quantities = [
            v.stock_quantity for v in product.variants
            if v.stock_quantity and 0 < v.stock_quantity <= threshold
        ]
        if low_quantities:
            return LowStockCheck(True, max(low_quantities), threshold)

        return LowStockCheck(False, 0, threshold)

    def dispatch_alerts(
        self,
        products: Optional[Sequence[Product]] = None,
        product: Optional[Product] = None,
        variant: Optional[ProductVariant] = None,
        threshold: Optional[int] = None,
    ) -> List[AlertKey]:
        """
        Check the given stock and email the admin about anything low.

        `product` (with optional `variant`) is checked as one unit; every
        variant in `products` is checked on its own. Returns the keys that
        were actually alerted, in check order.
        """
        self.ensure_configured()

        candidates: List[Tuple[Product, Optional[ProductVariant]]] = []
        if product is not None:
            candidates.append((product, variant))
        for prod in products or []:
            if prod.has_variants:
                candidates.extend((prod, v) for v in prod.variants)
            else:
                candidates.append((prod, None))

        now = self.clock()
        pending: List[_PendingAlert] = []
        try:
            for prod, var in candidates:
                check = self.check_low_stock(prod, var, threshold)
                if not check.is_low_stock:
                    continue

                key = AlertKey(prod.id, var.id if var else None)
                if self.repository.in_cooldown(key, now, self.cooldown):
                    logger.debug(f"Low stock alert for {key} suppressed (cooldown)")
                    continue

                message = self._build_message(prod, var, check, now)
                claimed, previous = self.repository.claim(key, now, self.cooldown)
                if not claimed:
                    logger.debug(f"Low stock alert for {key} suppressed (cooldown)")
                    continue

                pending.append(_PendingAlert(key, message, previous))

            outcomes = self.dispatcher.dispatch(
                [self._send_job(alert.message) for alert in pending]
            )
        except Exception:
            for alert in pending:
                self.repository.restore(alert.key, alert.previous)
            raise

        alerted: List[AlertKey] = []
        for alert, outcome in zip(pending, outcomes):
            if outcome.ok:
                alerted.append(alert.key)
            else:
                self.repository.restore(alert.key, alert.previous)
                logger.error(f"Failed to send low stock alert for {alert.key}: {outcome.error}")

        if alerted:
            logger.info(f"Sent {len(alerted)} low stock alert(s) to {self.admin_email}")
        return alerted

    def ensure_configured(self) -> None:
        """Fail before any work when alerts could not be delivered at all"""
        if not self.admin_email:
            raise ConfigurationError(
                "ADMIN_EMAIL",
                "ADMIN_EMAIL is not configured. Please set ADMIN_EMAIL environment variable.",
            )
        self.email_client.ensure_configured()

    def last_sent(self, product_id, variant_id=None) -> Optional[datetime]:
        return self.repository.last_sent(AlertKey(product_id, variant_id))

    def reset_cooldowns(self) -> None:
        self.repository.clear()
        logger.info("Low stock alert cooldowns cleared")

    def _send_job(self, message: EmailMessage):
        return lambda: self.email_client.send(message)

    def _build_message(
        self,
        product: Product,
        variant: Optional[ProductVariant],
        check: LowStockCheck,
        now: datetime,
    ) -> EmailMessage:
        variant_value = variant.value if variant else None
        html = render_low_stock_alert_email(
            product_name=product.name,
            variant_value=variant_value,
            current_quantity=check.current_quantity,
            threshold=check.threshold,
            sku=(variant.sku if variant else None) or product.sku or "N/A",
            checked_at=DateUtils.format_for_display(now),
        )
        return EmailMessage(
            to=self.admin_email,
            subject=f"Low stock alert: {describe_item(product.name, variant_value)}",
            html=html,
        )
