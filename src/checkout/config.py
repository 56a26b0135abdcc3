"""Runtime settings for the checkout engine, read from environment variables."""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return Decimal(default)
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class CheckoutSettings:
    bulk_quote_line_limit: int = 3
    default_tax_percentage: Decimal = Decimal("18")
    shipping_fee: Decimal = Decimal("0")
    postal_code_length: int = 6
    currency: str = "INR"
    gateway_adapter: str = "fake"
    api_base_url: str = "http://localhost:5000"
    http_timeout: int = 5
    payment_key_id: str | None = None

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        return cls(
            bulk_quote_line_limit=_env_int("CHECKOUT_BULK_QUOTE_LINE_LIMIT", 3),
            default_tax_percentage=_env_decimal("CHECKOUT_DEFAULT_TAX_PERCENT", "18"),
            shipping_fee=_env_decimal("CHECKOUT_SHIPPING_FEE", "0"),
            postal_code_length=_env_int("CHECKOUT_POSTAL_CODE_LENGTH", 6),
            currency=os.environ.get("CHECKOUT_CURRENCY", "INR"),
            gateway_adapter=os.environ.get("CHECKOUT_GATEWAY_ADAPTER", "fake"),
            api_base_url=os.environ.get("CHECKOUT_API_BASE_URL", "http://localhost:5000").rstrip("/"),
            http_timeout=_env_int("CHECKOUT_HTTP_TIMEOUT", 5),
            payment_key_id=os.environ.get("CHECKOUT_PAYMENT_KEY_ID") or None,
        )
