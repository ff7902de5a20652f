from threading import Lock
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from storefront.core.config import Config, config as default_config

T = TypeVar("T")


class DependencyContainer:
    """
    Process-wide registry of the stock-state stores.

    Each class resolves to one shared instance. Factories run on first
    `get` only, so unused collaborators (the email client when no mail is
    sent) are never built.
    """

    def __init__(self):
        self._instances: Dict[type, Any] = {}
        self._factories: Dict[type, Callable[[], Any]] = {}
        self._lock = Lock()

    def register_singleton(self, service_class: Type[T], instance: T) -> None:
        """Pin an instance; replaces whatever the factory built"""
        with self._lock:
            self._instances[service_class] = instance

    def register_factory(self, service_class: Type[T], factory: Callable[[], T]) -> None:
        self._factories[service_class] = factory

    def get(self, service_class: Type[T]) -> T:
        if service_class in self._instances:
            return self._instances[service_class]

        factory = self._factories.get(service_class)
        if factory is None:
            raise ValueError(f"Service {service_class.__name__} not registered")

        instance = factory()
        with self._lock:
            # two requests racing on first use keep the first instance
            return self._instances.setdefault(service_class, instance)


def build_container(app_config: Optional[Config] = None) -> DependencyContainer:
    """
    Wire the shared stock-state stores.

    Each store is a process-wide singleton: every request handled by the app
    sees the same reservation, notification and sent-alert ledgers.
    """
    from storefront.clients.email_client import EmailDispatcher, ResendEmailClient
    from storefront.services.low_stock_alert_service import LowStockAlerter
    from storefront.services.notification_service import NotificationStore
    from storefront.services.reservation_service import ReservationStore

    app_config = app_config or default_config
    container = DependencyContainer()
    container.register_singleton(Config, app_config)

    container.register_factory(ResendEmailClient, lambda: ResendEmailClient(app_config.email))
    container.register_factory(
        EmailDispatcher, lambda: EmailDispatcher(max_workers=app_config.email.max_workers)
    )
    container.register_factory(
        ReservationStore,
        lambda: ReservationStore(ttl_minutes=app_config.stock.reservation_ttl_minutes),
    )
    container.register_factory(
        NotificationStore,
        lambda: NotificationStore(
            email_client=container.get(ResendEmailClient),
            dispatcher=container.get(EmailDispatcher),
        ),
    )
    container.register_factory(
        LowStockAlerter,
        lambda: LowStockAlerter(
            email_client=container.get(ResendEmailClient),
            admin_email=app_config.email.admin_email,
            default_threshold=app_config.stock.low_stock_threshold,
            cooldown_hours=app_config.stock.alert_cooldown_hours,
            dispatcher=container.get(EmailDispatcher),
        ),
    )
    return container
