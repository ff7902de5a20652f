"""Tests for the Resend email client and the dispatcher."""

from unittest.mock import Mock

import pytest
import requests

from storefront.clients.email_client import (
    EmailDispatcher,
    EmailMessage,
    ResendEmailClient,
    describe_item,
    render_low_stock_alert_email,
    render_stock_available_email,
)
from storefront.core.config import EmailConfig
from storefront.core.exceptions import ConfigurationError, DeliveryError


@pytest.fixture
def email_client() -> ResendEmailClient:
    return ResendEmailClient(EmailConfig(api_key="re_test_key", from_address="shop@maisonparfum.com"))


@pytest.fixture
def message() -> EmailMessage:
    return EmailMessage(to="lea@maisonparfum.com", subject="Back in stock", html="<p>hi</p>")


def _response(status: int = 200, body=None) -> Mock:
    response = Mock(spec=requests.Response)
    response.status_code = status
    response.json.return_value = body if body is not None else {"id": "email_123"}
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    else:
        response.raise_for_status.return_value = None
    return response


def test_send_posts_payload_with_bearer_token(email_client, message, mocker) -> None:
    post = mocker.patch.object(email_client.session, "post", return_value=_response())

    result = email_client.send(message)

    assert result.id == "email_123"
    assert result.success
    _, kwargs = post.call_args
    assert kwargs["json"] == {
        "from": "shop@maisonparfum.com",
        "to": ["lea@maisonparfum.com"],
        "subject": "Back in stock",
        "html": "<p>hi</p>",
    }
    assert kwargs["headers"]["Authorization"] == "Bearer re_test_key"
    assert kwargs["timeout"] == 10


def test_send_includes_reply_to_and_custom_sender(email_client, mocker) -> None:
    post = mocker.patch.object(email_client.session, "post", return_value=_response())
    message = EmailMessage(
        to=["a@maisonparfum.com", "b@maisonparfum.com"],
        subject="s",
        html="h",
        from_address="ops@maisonparfum.com",
        reply_to="support@maisonparfum.com",
    )

    email_client.send(message)

    payload = post.call_args.kwargs["json"]
    assert payload["from"] == "ops@maisonparfum.com"
    assert payload["to"] == ["a@maisonparfum.com", "b@maisonparfum.com"]
    assert payload["reply_to"] == "support@maisonparfum.com"


def test_send_without_api_key_raises_configuration_error(message) -> None:
    client = ResendEmailClient(EmailConfig(api_key=None))

    with pytest.raises(ConfigurationError) as exc_info:
        client.send(message)

    assert exc_info.value.details == {"setting": "RESEND_API_KEY"}


def test_provider_rejection_becomes_delivery_error(email_client, message, mocker) -> None:
    mocker.patch.object(email_client.session, "post", return_value=_response(422))

    with pytest.raises(DeliveryError) as exc_info:
        email_client.send(message)

    assert exc_info.value.status_code == 502
    assert exc_info.value.details == {"recipient": "lea@maisonparfum.com", "upstream_status": 422}


@pytest.mark.parametrize(
    "error",
    [requests.exceptions.Timeout("slow"), requests.exceptions.ConnectionError("down")],
)
def test_transport_failure_becomes_delivery_error(email_client, message, mocker, error) -> None:
    mocker.patch.object(email_client.session, "post", side_effect=error)

    with pytest.raises(DeliveryError):
        email_client.send(message)


def test_unreadable_response_becomes_delivery_error(email_client, message, mocker) -> None:
    response = _response()
    response.json.side_effect = ValueError("not json")
    mocker.patch.object(email_client.session, "post", return_value=response)

    with pytest.raises(DeliveryError, match="Unreadable response"):
        email_client.send(message)


def test_dispatcher_isolates_failures_and_keeps_order() -> None:
    def boom():
        raise DeliveryError("x@maisonparfum.com")

    outcomes = EmailDispatcher(max_workers=3).dispatch([lambda: 1, boom, lambda: 3])

    assert [o.index for o in outcomes] == [0, 1, 2]
    assert [o.ok for o in outcomes] == [True, False, True]
    assert outcomes[0].result == 1
    assert outcomes[2].result == 3
    assert isinstance(outcomes[1].error, DeliveryError)


def test_dispatcher_with_no_jobs() -> None:
    assert EmailDispatcher().dispatch([]) == []


def test_low_stock_template_contains_alert_details() -> None:
    html = render_low_stock_alert_email(
        product_name="Nuit Rose",
        variant_value="50ml",
        current_quantity=3,
        threshold=10,
        sku="NR-050",
        checked_at="2026-03-14 10:30 CET",
    )

    assert "Nuit Rose (Variant: 50ml)" in html
    assert "NR-050" in html
    assert "Current quantity: 3" in html
    assert "10 units" in html
    assert "2026-03-14 10:30 CET" in html


def test_stock_available_template_escapes_html() -> None:
    html = render_stock_available_email(
        product_name="<b>Rose</b>",
        product_url="https://maisonparfum.com/products/rose",
        sku="R-1",
    )

    assert "&lt;b&gt;Rose&lt;/b&gt;" in html
    assert "https://maisonparfum.com/products/rose" in html


def test_describe_item() -> None:
    assert describe_item("Nuit Rose", "50ml") == "Nuit Rose (50ml)"
    assert describe_item("Nuit Rose") == "Nuit Rose"
