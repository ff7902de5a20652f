import uuid
from datetime import datetime
from typing import Callable, List, Optional, Tuple
import logging

from storefront.clients.email_client import (
    EmailDispatcher, EmailMessage, NotificationSink, describe_item, render_stock_available_email
)
from storefront.core.exceptions import NotFoundError, ValidationError
from storefront.models.product import Identifier
from storefront.models.stock import StockNotification
from storefront.repositories.notification_repository import NotificationRepository
from storefront.utils.date_utils import DateUtils
from storefront.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


class NotificationStore:
    """
    "Notify me when available" subscriptions

    Business Rules:
    - At most one active subscription per (product, variant, email)
    - A subscription fires at most once; afterwards it is kept but inert
    - One failed delivery never stops the rest of a restock batch
    """

    def __init__(
        self,
        email_client: NotificationSink,
        repository: Optional[NotificationRepository] = None,
        dispatcher: Optional[EmailDispatcher] = None,
        clock: Callable[[], datetime] = DateUtils.now_utc,
    ):
        self.email_client = email_client
        self.repository = repository or NotificationRepository()
        self.dispatcher = dispatcher or EmailDispatcher()
        self.clock = clock

    def subscribe(
        self,
        product_id: Identifier,
        email: str,
        variant_id: Optional[Identifier] = None,
    ) -> Tuple[StockNotification, bool]:
        """
        Subscribe an email to a product/variant restock.

        Returns (notification, created); created is False when an active
        subscription for the same triple already existed.
        """
        if not ValidationUtils.has_identifier(product_id) or not email:
            raise ValidationError("productId and email are required")

        if not ValidationUtils.validate_email(email):
            raise ValidationError(
                "Please provide a valid email address",
                [{"field": "email", "message": "invalid email format"}],
            )

        def new_notification() -> StockNotification:
            return StockNotification(
                id=f"notif_{uuid.uuid4().hex}",
                product_id=product_id,
                variant_id=variant_id,
                email=email,
                created_at=self.clock(),
            )

        notification, created = self.repository.find_active_or_add(
            product_id, variant_id, email, new_notification
        )
        if created:
            logger.info(f"Restock subscription {notification.id} created for product {product_id}")
        else:
            logger.info(f"Restock subscription {notification.id} already active for product {product_id}")
        return notification, created

    def list(self, email: str) -> List[StockNotification]:
        if not email:
            raise ValidationError("Email query parameter is required")
        return self.repository.list_active_for_email(email)

    def unsubscribe(self, notification_id: str) -> StockNotification:
        notification = self.repository.delete(notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        logger.info(f"Restock subscription {notification_id} removed")
        return notification

    def notify_restock(
        self,
        product_id: Identifier,
        variant_id: Optional[Identifier],
        product_name: str,
        variant_value: Optional[str],
        product_url: str,
        sku: str,
    ) -> int:
        """
        Email every active subscriber of the product/variant; returns count sent.

        Called by whatever observes stock going from zero to positive.
        """
        if not ValidationUtils.validate_url(product_url):
            raise ValidationError(f"Invalid product URL: {product_url}")
        self.email_client.ensure_configured()

        html = render_stock_available_email(
            product_name=product_name,
            variant_value=variant_value,
            product_url=product_url,
            sku=sku,
        )
        subject = f"{describe_item(product_name, variant_value)} is available again"

        pending = self.repository.claim_active_for_item(product_id, variant_id)
        if not pending:
            return 0

        def make_job(notification: StockNotification):
            return lambda: self.email_client.send(
                EmailMessage(to=notification.email, subject=subject, html=html)
            )

        try:
            outcomes = self.dispatcher.dispatch([make_job(n) for n in pending])
        except Exception:
            for notification in pending:
                self.repository.release_claim(notification.id)
            raise

        sent = 0
        for notification, outcome in zip(pending, outcomes):
            if outcome.ok:
                if self.repository.mark_notified(notification.id, self.clock()):
                    sent += 1
            else:
                self.repository.release_claim(notification.id)
                logger.error(f"Failed to send restock notification to {notification.email}: {outcome.error}")

        logger.info(f"Restock notifications for product {product_id} variant {variant_id}: {sent}/{len(pending)} sent")
        return sent
