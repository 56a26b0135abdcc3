"""Tests for the HTTP adapters using a mocked requests session."""

from unittest.mock import MagicMock

import pytest
import requests

from checkout.gateways.http_adapter import (
    HostedCheckoutProvider,
    HttpDocumentGenerator,
    HttpOrderApi,
    HttpPostalLookup,
    _HttpClient,
)
from checkout.gateways.port import PaymentOrder


def _response(data, status_error=None):
    resp = MagicMock()
    resp.json.return_value = data
    if status_error:
        resp.raise_for_status.side_effect = status_error
    return resp


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return _HttpClient("http://api.test/", timeout=2, session=session)


class TestHttpPostalLookup:
    def test_success(self, client, session):
        session.get.return_value = _response({"status": "Success", "city": "Pune", "state": "Maharashtra"})
        result = HttpPostalLookup(client).lookup("411001")

        assert result.success is True
        assert (result.city, result.state) == ("Pune", "Maharashtra")
        session.get.assert_called_once_with("http://api.test/api/postal/411001", timeout=2)

    def test_no_records(self, client, session):
        session.get.return_value = _response({"status": "Error"})
        result = HttpPostalLookup(client).lookup("999999")
        assert result.success is False
        assert result.failure_reason == "No records found"

    @pytest.mark.slow
    def test_transport_errors_are_retried_then_reported(self, client, session):
        session.get.side_effect = requests.ConnectionError("refused")
        result = HttpPostalLookup(client).lookup("411001")
        assert result.success is False
        assert session.get.call_count == 3


class TestHttpDocumentGenerator:
    def test_returns_url(self, client, session):
        session.post.return_value = _response({"url": "https://docs/1.pdf"})
        result = HttpDocumentGenerator(client).generate({"name": "Vikram"}, [{"name": "Router", "quantity": 1}])

        assert result.success is True
        assert result.url == "https://docs/1.pdf"
        _, kwargs = session.post.call_args
        assert kwargs["json"]["items"] == [{"name": "Router", "quantity": 1}]

    def test_missing_url(self, client, session):
        session.post.return_value = _response({})
        assert HttpDocumentGenerator(client).generate({}, []).success is False


class TestHttpOrderApi:
    def test_submit_parses_payment_order(self, client, session):
        session.post.return_value = _response(
            {"orderHandle": "ord_1", "paymentOrder": {"id": "order_abc", "amount": 23600, "currency": "INR"}}
        )
        result = HttpOrderApi(client).submit_order({"kind": "direct", "total_amount": 236.0})

        assert result.success is True
        assert result.order_handle == "ord_1"
        assert result.payment_order == PaymentOrder(id="order_abc", amount=23600, currency="INR")

    def test_submit_without_payment_order(self, client, session):
        session.post.return_value = _response({"orderHandle": "ord_1"})
        result = HttpOrderApi(client).submit_order({})
        assert result.success is True
        assert result.payment_order is None

    @pytest.mark.slow
    def test_http_error_is_reported(self, client, session):
        session.post.return_value = _response({}, status_error=requests.HTTPError("500 Server Error"))
        result = HttpOrderApi(client).verify_payment("ord_1", "pay_1", "sig")
        assert result.success is False
        assert "500" in result.failure_reason

    def test_verify_sends_identifiers(self, client, session):
        session.post.return_value = _response({"message": "Payment verified"})
        assert HttpOrderApi(client).verify_payment("ord_1", "pay_1", "sig").success is True
        session.post.assert_called_once_with(
            "http://api.test/api/orders/verify",
            json={"orderHandle": "ord_1", "paymentId": "pay_1", "signature": "sig"},
            timeout=2,
        )


class TestHostedCheckoutProvider:
    def test_unavailable_without_key(self):
        assert HostedCheckoutProvider(None).is_available() is False

    def test_open_records_pending_checkout(self):
        provider = HostedCheckoutProvider("rzp_test_1")
        order = PaymentOrder(id="order_1", amount=100, currency="INR")
        provider.open_checkout(order, {"name": "Asha", "email": "asha@example.com"})
        assert provider.pending[0]["key"] == "rzp_test_1"
        assert provider.pending[0]["payment_order"] == order
