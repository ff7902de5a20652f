"""Notification sink: transactional email through the Resend HTTP API."""

import concurrent.futures
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar, Union

import requests
from jinja2 import Environment, PackageLoader, select_autoescape
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from storefront.core.config import EmailConfig
from storefront.core.exceptions import ConfigurationError, DeliveryError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_templates = Environment(
    loader=PackageLoader("storefront", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class EmailMessage:
    to: Union[str, List[str]]
    subject: str
    html: str
    from_address: Optional[str] = None
    reply_to: Optional[str] = None

    @property
    def recipients(self) -> List[str]:
        return list(self.to) if isinstance(self.to, (list, tuple)) else [self.to]


@dataclass
class SendResult:
    id: str
    success: bool = True


class NotificationSink(ABC):
    """Anything that can deliver an EmailMessage"""

    @abstractmethod
    def send(self, message: EmailMessage) -> SendResult:
        """Deliver one message; raises DeliveryError on failure."""
        pass

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if the sink cannot send at all."""
        return None


class ResendEmailClient(NotificationSink):
    def __init__(self, email_config: EmailConfig) -> None:
        self.api_key = email_config.api_key
        self.api_url = email_config.api_url
        self.default_from = email_config.from_address
        self.timeout = email_config.timeout_seconds

        # POST is not idempotent: retry 429 only
        self.session = requests.Session()
        retry_strategy = Retry(
            total=3,
            status_forcelist=[429],
            allowed_methods=["POST"],
            backoff_factor=1,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=10)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("RESEND_API_KEY")

    def send(self, message: EmailMessage) -> SendResult:
        self.ensure_configured()

        payload = {
            "from": message.from_address or self.default_from,
            "to": message.recipients,
            "subject": message.subject,
            "html": message.html,
        }
        if message.reply_to:
            payload["reply_to"] = message.reply_to

        recipient = ", ".join(message.recipients)
        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.Timeout as e:
            raise DeliveryError(recipient, f"Email send timed out: {e}")
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise DeliveryError(recipient, f"Email provider rejected the message: {e}", status)
        except requests.exceptions.RequestException as e:
            raise DeliveryError(recipient, f"Email send failed: {e}")
        except ValueError as e:
            raise DeliveryError(recipient, f"Unreadable response from email provider: {e}")

        logger.info(f"Email '{message.subject}' sent to {recipient}")
        return SendResult(id=body.get("id", ""), success=True)


@dataclass
class DispatchOutcome(Generic[T]):
    index: int
    result: Optional[T] = None
    error: Optional[BaseException] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None


class EmailDispatcher:
    """
    Fans sends out over a thread pool.

    Each job runs in isolation: a job that raises only marks its own outcome
    as failed. Outcomes come back in submission order.
    """

    def __init__(self, max_workers: int = 4) -> None:
        self.max_workers = max_workers

    def dispatch(self, jobs: Sequence[Callable[[], T]]) -> List[DispatchOutcome[T]]:
        if not jobs:
            return []

        workers = min(self.max_workers, len(jobs))
        outcomes: List[DispatchOutcome[T]] = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(job) for job in jobs]
            for index, future in enumerate(futures):
                try:
                    outcomes.append(DispatchOutcome(index=index, result=future.result()))
                except Exception as exc:
                    outcomes.append(DispatchOutcome(index=index, error=exc))
        return outcomes


def render_low_stock_alert_email(
    product_name: str,
    current_quantity: int,
    threshold: int,
    sku: str,
    variant_value: Optional[str] = None,
    checked_at: Optional[str] = None,
) -> str:
    return _templates.get_template("email/low_stock_alert.html").render(
        product_name=product_name,
        variant_value=variant_value,
        current_quantity=current_quantity,
        threshold=threshold,
        sku=sku,
        checked_at=checked_at,
    )


def render_stock_available_email(
    product_name: str,
    product_url: str,
    sku: str,
    variant_value: Optional[str] = None,
) -> str:
    return _templates.get_template("email/stock_available.html").render(
        product_name=product_name,
        variant_value=variant_value,
        product_url=product_url,
        sku=sku,
    )


def describe_item(product_name: str, variant_value: Optional[Any] = None) -> str:
    """'Name (Variant)' or just 'Name'"""
    return f"{product_name} ({variant_value})" if variant_value else product_name
