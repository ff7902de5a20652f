# tests/conftest.py
from datetime import datetime, timedelta
from threading import Lock
from typing import List

import pytest
import pytz

from storefront.app import create_app
from storefront.clients.email_client import EmailMessage, NotificationSink, SendResult
from storefront.core.config import Config, EmailConfig, StockConfig
from storefront.core.exceptions import ConfigurationError, DeliveryError
from storefront.models.product import Product, ProductVariant
from storefront.services.low_stock_alert_service import LowStockAlerter
from storefront.services.notification_service import NotificationStore
from storefront.services.reservation_service import ReservationStore


class FrozenClock:
    """Mutable clock: stays put until a test moves it."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingSink(NotificationSink):
    """Notification sink that records messages instead of sending them."""

    def __init__(self):
        self.sent: List[EmailMessage] = []
        self.failing_recipients = set()
        self.configured = True
        self._lock = Lock()

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("RESEND_API_KEY")

    def send(self, message: EmailMessage) -> SendResult:
        recipient = message.recipients[0]
        if recipient in self.failing_recipients:
            raise DeliveryError(recipient, "Email provider rejected the message", 422)
        with self._lock:
            self.sent.append(message)
            return SendResult(id=f"email_{len(self.sent)}")

    @property
    def recipients(self) -> List[str]:
        return [m.recipients[0] for m in self.sent]


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at a fixed UTC instant."""
    return FrozenClock(datetime(2026, 3, 14, 9, 30, tzinfo=pytz.UTC))


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def reservation_store(clock) -> ReservationStore:
    return ReservationStore(ttl_minutes=15, clock=clock)


@pytest.fixture
def notification_store(sink, clock) -> NotificationStore:
    return NotificationStore(email_client=sink, clock=clock)


@pytest.fixture
def alerter(sink, clock) -> LowStockAlerter:
    return LowStockAlerter(
        email_client=sink,
        admin_email="ops@maisonparfum.com",
        default_threshold=10,
        cooldown_hours=24,
        clock=clock,
    )


@pytest.fixture
def variant_50ml() -> ProductVariant:
    return ProductVariant(id=501, value="50ml", sku="NR-050", stock_quantity=3)


@pytest.fixture
def variant_100ml() -> ProductVariant:
    return ProductVariant(id=502, value="100ml", sku="NR-100", stock_quantity=25)


@pytest.fixture
def perfume(variant_50ml, variant_100ml) -> Product:
    """A product with one low and one well stocked variant."""
    return Product(
        id=42,
        name="Nuit Rose",
        sku="NR",
        price=89.0,
        variants=[variant_50ml, variant_100ml],
    )


@pytest.fixture
def test_config() -> Config:
    app_config = Config()
    app_config.environment = "testing"
    app_config.stock = StockConfig(low_stock_threshold=10, reservation_ttl_minutes=15, alert_cooldown_hours=24)
    app_config.email = EmailConfig(api_key="re_test_key", admin_email="ops@maisonparfum.com")
    return app_config


@pytest.fixture
def app(test_config, reservation_store, notification_store, alerter):
    """App wired to the in-test stores and the recording sink."""
    application = create_app(test_config)
    application.config["TESTING"] = True
    container = application.extensions["storefront"]
    container.register_singleton(ReservationStore, reservation_store)
    container.register_singleton(NotificationStore, notification_store)
    container.register_singleton(LowStockAlerter, alerter)
    return application


@pytest.fixture
def client(app):
    return app.test_client()
