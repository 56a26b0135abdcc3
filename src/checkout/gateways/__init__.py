"""Collaborator factory.

Provides get_gateways() / set_gateways() to swap implementations:
- fakes for development and testing (default)
- HTTP adapters against the storefront backend (CHECKOUT_GATEWAY_ADAPTER=http)
"""

from checkout.config import CheckoutSettings
from checkout.gateways.port import CheckoutGateways

_current_gateways: CheckoutGateways | None = None


def build_gateways(settings: CheckoutSettings) -> CheckoutGateways:
    if settings.gateway_adapter == "fake":
        from checkout.gateways.fake_adapter import FakeOrderApi, fake_gateways

        gateways = fake_gateways()
        gateways.orders = FakeOrderApi(currency=settings.currency)
        return gateways
    if settings.gateway_adapter == "http":
        from checkout.gateways.http_adapter import http_gateways

        return http_gateways(settings.api_base_url, timeout=settings.http_timeout, key_id=settings.payment_key_id)
    raise ValueError(f"Unknown gateway adapter: {settings.gateway_adapter}")


def get_gateways(settings: CheckoutSettings | None = None) -> CheckoutGateways:
    """Return the current collaborators, building them from settings on first use."""
    global _current_gateways
    if _current_gateways is None:
        _current_gateways = build_gateways(settings or CheckoutSettings.from_env())
    return _current_gateways


def set_gateways(gateways: CheckoutGateways) -> None:
    """Override the active collaborators (useful for tests)."""
    global _current_gateways
    _current_gateways = gateways


def reset_gateways() -> None:
    """Reset to default collaborators."""
    global _current_gateways
    _current_gateways = None
