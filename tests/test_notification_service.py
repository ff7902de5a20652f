"""Tests for restock ("notify me") subscriptions."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from storefront.core.exceptions import ConfigurationError, NotFoundError, ValidationError

PRODUCT_URL = "https://maisonparfum.com/products/nuit-rose"


def _notify(store, product_id=42, variant_id=501):
    return store.notify_restock(
        product_id=product_id,
        variant_id=variant_id,
        product_name="Nuit Rose",
        variant_value="50ml",
        product_url=PRODUCT_URL,
        sku="NR-050",
    )


def test_subscribe_creates_active_subscription(notification_store, clock) -> None:
    notification, created = notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)

    assert created
    assert notification.id.startswith("notif_")
    assert notification.is_active
    assert notification.created_at == clock.now
    assert notification_store.list("lea@maisonparfum.com") == [notification]


def test_subscribe_twice_returns_existing(notification_store) -> None:
    first, _ = notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)
    second, created = notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)

    assert not created
    assert second is first
    assert len(notification_store.list("lea@maisonparfum.com")) == 1


def test_product_and_variant_subscriptions_are_distinct(notification_store) -> None:
    notification_store.subscribe(42, "lea@maisonparfum.com")
    notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)

    assert len(notification_store.list("lea@maisonparfum.com")) == 2


@pytest.mark.parametrize("product_id, email", [(None, "lea@maisonparfum.com"), (42, ""), ("", "lea@maisonparfum.com")])
def test_subscribe_requires_product_and_email(notification_store, product_id, email) -> None:
    with pytest.raises(ValidationError, match="productId and email are required"):
        notification_store.subscribe(product_id, email)


@pytest.mark.parametrize("email", ["not-an-email", "lea@", "@maisonparfum.com", "lea maisonparfum.com"])
def test_subscribe_rejects_malformed_email(notification_store, email) -> None:
    with pytest.raises(ValidationError, match="valid email address"):
        notification_store.subscribe(42, email)


def test_list_requires_email(notification_store) -> None:
    with pytest.raises(ValidationError, match="Email query parameter is required"):
        notification_store.list("")


def test_unsubscribe(notification_store) -> None:
    notification, _ = notification_store.subscribe(42, "lea@maisonparfum.com")

    notification_store.unsubscribe(notification.id)

    assert notification_store.list("lea@maisonparfum.com") == []
    with pytest.raises(NotFoundError):
        notification_store.unsubscribe(notification.id)


def test_notify_restock_emails_each_subscriber_once(notification_store, sink, clock) -> None:
    notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)
    notification_store.subscribe(42, "marc@maisonparfum.com", variant_id=501)
    notification_store.subscribe(42, "ines@maisonparfum.com", variant_id=502)

    assert _notify(notification_store) == 2
    assert sorted(sink.recipients) == ["lea@maisonparfum.com", "marc@maisonparfum.com"]
    assert sink.sent[0].subject == "Nuit Rose (50ml) is available again"
    assert PRODUCT_URL in sink.sent[0].html

    # already notified subscriptions stay inert
    assert _notify(notification_store) == 0
    assert len(sink.sent) == 2
    assert notification_store.list("lea@maisonparfum.com") == []


def test_notified_subscriber_can_subscribe_again(notification_store) -> None:
    first, _ = notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)
    _notify(notification_store)

    second, created = notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)

    assert created
    assert second.id != first.id
    assert first.notified and first.notified_at is not None


def test_failed_delivery_does_not_stop_the_batch(notification_store, sink) -> None:
    notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)
    notification_store.subscribe(42, "bounce@maisonparfum.com", variant_id=501)
    notification_store.subscribe(42, "marc@maisonparfum.com", variant_id=501)
    sink.failing_recipients.add("bounce@maisonparfum.com")

    assert _notify(notification_store) == 2

    # the failed one is still active and goes out on the next restock
    sink.failing_recipients.clear()
    assert _notify(notification_store) == 1
    assert sink.recipients[-1] == "bounce@maisonparfum.com"


def test_notify_restock_fails_fast_without_credentials(notification_store, sink) -> None:
    notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)
    sink.configured = False

    with pytest.raises(ConfigurationError):
        _notify(notification_store)

    assert len(notification_store.list("lea@maisonparfum.com")) == 1


def test_notify_restock_rejects_bad_url(notification_store) -> None:
    with pytest.raises(ValidationError):
        notification_store.notify_restock(42, 501, "Nuit Rose", "50ml", "javascript:alert(1)", "NR-050")


def test_concurrent_restock_events_send_once(notification_store, sink) -> None:
    for i in range(10):
        notification_store.subscribe(42, f"client{i}@maisonparfum.com", variant_id=501)

    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(lambda _: _notify(notification_store), range(4)))

    assert sum(results) == 10
    assert len(sink.sent) == 10


def test_render_failure_leaves_subscription_notifiable(notification_store, sink, mocker) -> None:
    notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)
    mocker.patch(
        "storefront.services.notification_service.render_stock_available_email",
        side_effect=RuntimeError("template missing"),
    )

    with pytest.raises(RuntimeError):
        _notify(notification_store)

    mocker.stopall()
    assert _notify(notification_store) == 1
    assert sink.recipients == ["lea@maisonparfum.com"]


def test_dispatch_failure_releases_claimed_subscriptions(notification_store, sink, mocker) -> None:
    notification_store.subscribe(42, "lea@maisonparfum.com", variant_id=501)
    notification_store.subscribe(42, "marc@maisonparfum.com", variant_id=501)
    mocker.patch.object(notification_store.dispatcher, "dispatch", side_effect=RuntimeError("pool shut down"))

    with pytest.raises(RuntimeError):
        _notify(notification_store)

    mocker.stopall()
    assert _notify(notification_store) == 2
    assert len(notification_store.list("lea@maisonparfum.com")) == 0
