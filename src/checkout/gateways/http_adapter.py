"""HTTP adapters for the storefront backend.

Transport errors are retried (3 attempts, exponential backoff) and then reported
as failed results; nothing from ``requests`` escapes these adapters.
"""

import requests
import structlog
from requests import RequestException
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from checkout.gateways.port import (
    CheckoutGateways,
    DocumentGenerator,
    DocumentResult,
    OrderApi,
    OrderSubmissionResult,
    PaymentOrder,
    PaymentProvider,
    PostalLookup,
    PostalLookupResult,
    VerificationResult,
)

logger = structlog.get_logger(__name__)


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(RequestException),
    )


class _HttpClient:
    def __init__(self, base_url: str, timeout: int = 5, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @http_retry()
    def get_json(self, path: str) -> dict:
        url = f"{self.base_url}{path}"
        logger.debug("http_get", url=url)
        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    @http_retry()
    def post_json(self, path: str, body: dict) -> dict:
        url = f"{self.base_url}{path}"
        logger.debug("http_post", url=url)
        resp = self.session.post(url, json=body, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()


class HttpPostalLookup(PostalLookup):
    def __init__(self, client: _HttpClient) -> None:
        self.client = client

    def lookup(self, postal_code: str) -> PostalLookupResult:
        try:
            data = self.client.get_json(f"/api/postal/{postal_code}")
        except (RequestException, ValueError) as exc:
            logger.warning("postal_lookup_failed", postal_code=postal_code, error=str(exc))
            return PostalLookupResult(success=False, failure_reason=str(exc))

        status = data.get("status")
        if status != "Success" or not data.get("city") or not data.get("state"):
            return PostalLookupResult(success=False, status=status, failure_reason="No records found")
        return PostalLookupResult(success=True, status=status, city=data["city"], state=data["state"])


class HttpDocumentGenerator(DocumentGenerator):
    def __init__(self, client: _HttpClient) -> None:
        self.client = client

    def generate(self, customer: dict, items: list[dict]) -> DocumentResult:
        try:
            data = self.client.post_json("/api/documents", {"customer": customer, "items": items})
        except (RequestException, ValueError) as exc:
            logger.warning("document_generation_failed", error=str(exc))
            return DocumentResult(success=False, failure_reason=str(exc))

        url = data.get("url")
        if not url:
            return DocumentResult(success=False, failure_reason="Document service returned no URL")
        return DocumentResult(success=True, url=url)


class HttpOrderApi(OrderApi):
    def __init__(self, client: _HttpClient) -> None:
        self.client = client

    def submit_order(self, payload: dict) -> OrderSubmissionResult:
        try:
            data = self.client.post_json("/api/orders", payload)
        except (RequestException, ValueError) as exc:
            logger.warning("order_submission_failed", error=str(exc))
            return OrderSubmissionResult(success=False, failure_reason=str(exc))

        raw_payment_order = data.get("paymentOrder")
        payment_order = None
        if raw_payment_order:
            payment_order = PaymentOrder(
                id=str(raw_payment_order["id"]),
                amount=int(raw_payment_order["amount"]),
                currency=raw_payment_order["currency"],
            )
        return OrderSubmissionResult(
            success=True,
            order_handle=data.get("orderHandle"),
            payment_order=payment_order,
        )

    def verify_payment(self, order_handle: str, payment_id: str, signature: str) -> VerificationResult:
        try:
            self.client.post_json(
                "/api/orders/verify",
                {"orderHandle": order_handle, "paymentId": payment_id, "signature": signature},
            )
        except (RequestException, ValueError) as exc:
            logger.warning("payment_verification_failed", order_handle=order_handle, error=str(exc))
            return VerificationResult(success=False, failure_reason=str(exc))
        return VerificationResult(success=True)


class HostedCheckoutProvider(PaymentProvider):
    """Hosted checkout opened client-side; available once a public key is configured.

    The provider's callback is relayed to ``CheckoutFlow.confirm_payment`` or
    ``CheckoutFlow.fail_payment`` by the caller.
    """

    def __init__(self, key_id: str | None) -> None:
        self.key_id = key_id
        self.pending: list[dict] = []

    def is_available(self) -> bool:
        return bool(self.key_id)

    def open_checkout(self, payment_order: PaymentOrder, prefill: dict) -> None:
        self.pending.append({"key": self.key_id, "payment_order": payment_order, "prefill": prefill})
        logger.info("hosted_checkout_opened", payment_order_id=payment_order.id, amount=payment_order.amount)


def http_gateways(base_url: str, timeout: int = 5, key_id: str | None = None) -> CheckoutGateways:
    client = _HttpClient(base_url, timeout=timeout)
    return CheckoutGateways(
        postal=HttpPostalLookup(client),
        documents=HttpDocumentGenerator(client),
        orders=HttpOrderApi(client),
        payments=HostedCheckoutProvider(key_id),
    )
