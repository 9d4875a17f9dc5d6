"""Payment provider seam.

`OrderService` talks to anything shaped like `PaymentProvider`; production
wires in `RazorpayProvider`, tests wire in a fake.
"""

import asyncio
from typing import Any, Protocol

import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError, ServerError

from payrelay.common.config import ProviderCredentials


# The Python SDK drops the provider's error code and encodes it in the class.
SDK_ERROR_CODES: dict[type[Exception], str] = {
    BadRequestError: "BAD_REQUEST_ERROR",
    GatewayError: "GATEWAY_ERROR",
    ServerError: "SERVER_ERROR",
}


class PaymentProvider(Protocol):
    def create_order(self, options: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        ...


class RazorpayProvider:
    """Thin adapter over `razorpay.Client` order creation."""

    def __init__(self, credentials: ProviderCredentials, client: razorpay.Client | None = None) -> None:
        self.key_id = credentials.key_id
        self.client = client or razorpay.Client(auth=(credentials.key_id, credentials.key_secret))

    def create_order(self, options: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        # Extra kwargs flow through the SDK into `requests`.
        if timeout is None:
            return self.client.order.create(data=options)
        return self.client.order.create(data=options, timeout=timeout)


def build_provider(credentials: ProviderCredentials) -> PaymentProvider | None:
    """Return a live provider, or None when the key pair is incomplete."""

    if not credentials.complete:
        return None
    return RazorpayProvider(credentials)


def is_timeout(exc: BaseException) -> bool:
    return isinstance(exc, (asyncio.TimeoutError, TimeoutError, requests.exceptions.Timeout))


def describe_provider_error(exc: BaseException) -> tuple[str, str | None]:
    """Extract a human-readable description and provider error code.

    Structured errors (an `error` mapping with `description`/`code`, the shape
    Razorpay returns over the wire) win; SDK exception classes map to their
    code; anything else reports its message without a code.
    """

    structured = getattr(exc, "error", None)
    if isinstance(structured, dict):
        description = structured.get("description") or str(exc) or type(exc).__name__
        code = structured.get("code")
        return str(description), (str(code) if code is not None else None)

    description = str(exc) or type(exc).__name__
    for error_type, code in SDK_ERROR_CODES.items():
        if isinstance(exc, error_type):
            return description, code
    return description, None
