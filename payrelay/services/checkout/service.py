"""Order creation and payment-signature verification.

Both services are stateless; everything they need (provider client, key
secret, timeout) is handed to them at construction.
"""

import asyncio
import hashlib
import hmac
import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable
from uuid import uuid4

from payrelay.common.config import ProviderCredentials
from payrelay.common.errors import (
    InvalidAmount,
    MissingField,
    ProviderError,
    ProviderNotConfigured,
    ProviderTimeout,
)
from payrelay.common.logging import logger, order_id_ctx
from payrelay.common.metrics import (
    order_failures_total,
    orders_created_total,
    payment_verifications_total,
    provider_latency_seconds,
)
from payrelay.services.checkout.provider import PaymentProvider, describe_provider_error, is_timeout

MINOR_UNITS_PER_MAJOR = 100
# 1 = capture immediately on authorization.
IMMEDIATE_CAPTURE = 1


def to_minor_units(amount: Any) -> int:
    """Convert a major-unit amount to integer minor units, rounding half up.

    Goes through `str` so floats convert by their shortest repr
    (10.5 -> 1050, 1.005 -> 101) rather than their binary expansion.
    """

    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def new_receipt(now: Callable[[], float] = time.time) -> str:
    """Receipt token: epoch milliseconds plus a random suffix."""

    return f"receipt_{int(now() * 1000)}_{uuid4().hex[:8]}"


def parse_amount(amount: Any) -> Decimal:
    """Return `amount` as a positive finite Decimal or raise InvalidAmount."""

    if amount is None or isinstance(amount, bool):
        raise InvalidAmount(amount)
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(amount) from None
    if not value.is_finite() or value <= 0:
        raise InvalidAmount(amount)
    return value


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """HMAC-SHA256 over `order_id|payment_id`, lowercase hex."""

    message = f"{order_id}|{payment_id}"
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


class OrderService:
    """Validates an amount and delegates order creation to the provider."""

    def __init__(
        self,
        provider: PaymentProvider | None,
        timeout_seconds: float = 15.0,
        default_currency: str = "INR",
        service_name: str = "payrelay",
        receipt_factory: Callable[[], str] = new_receipt,
    ) -> None:
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.default_currency = default_currency
        self.service_name = service_name
        self.receipt_factory = receipt_factory

    @property
    def configured(self) -> bool:
        return self.provider is not None

    def build_options(self, amount: Any, currency: str | None = None) -> dict[str, Any]:
        """Validate input and build the provider's order-creation payload."""

        value = parse_amount(amount)
        try:
            amount_minor = to_minor_units(value)
        except InvalidOperation:
            # Beyond decimal precision; no provider takes amounts this large.
            raise InvalidAmount(amount) from None
        return {
            "amount": amount_minor,
            "currency": currency or self.default_currency,
            "receipt": self.receipt_factory(),
            "payment_capture": IMMEDIATE_CAPTURE,
        }

    async def create_order(self, amount: Any, currency: str | None = None) -> dict[str, Any]:
        """Create a provider order and return it marked `success: True`.

        Raises InvalidAmount before any provider call, ProviderTimeout when the
        call exceeds `timeout_seconds`, and ProviderError for anything else the
        provider raises.
        """

        try:
            options = self.build_options(amount, currency)
        except InvalidAmount:
            order_failures_total.labels(service=self.service_name, reason="invalid_amount").inc()
            raise
        if self.provider is None:
            order_failures_total.labels(service=self.service_name, reason="not_configured").inc()
            raise ProviderNotConfigured()

        logger.info("creating provider order options=%s", options)
        try:
            with provider_latency_seconds.labels(service=self.service_name).time():
                order = await asyncio.wait_for(
                    asyncio.to_thread(self.provider.create_order, options, self.timeout_seconds),
                    timeout=self.timeout_seconds,
                )
        except Exception as exc:
            if is_timeout(exc):
                order_failures_total.labels(service=self.service_name, reason="timeout").inc()
                logger.error("provider order timed out after %ss receipt=%s", self.timeout_seconds, options["receipt"])
                raise ProviderTimeout(self.timeout_seconds) from exc
            details, code = describe_provider_error(exc)
            order_failures_total.labels(service=self.service_name, reason="provider_error").inc()
            logger.error("provider order failed details=%s code=%s", details, code, exc_info=exc)
            raise ProviderError(details, code) from exc

        order_id_ctx.set(str(order.get("id", "")))
        orders_created_total.labels(service=self.service_name, currency=options["currency"]).inc()
        logger.info("provider order created order=%s", order)
        return {"success": True, **order}


class VerificationService:
    """Authenticates payment callbacks against the shared key secret."""

    def __init__(self, credentials: ProviderCredentials, service_name: str = "payrelay") -> None:
        self._secret = credentials.key_secret
        self.service_name = service_name

    def verify_payment(self, order_id: str | None, payment_id: str | None, signature: str | None) -> bool:
        missing = [
            name
            for name, value in (
                ("razorpay_order_id", order_id),
                ("razorpay_payment_id", payment_id),
                ("razorpay_signature", signature),
            )
            if not value
        ]
        if missing:
            payment_verifications_total.labels(service=self.service_name, result="missing_field").inc()
            raise MissingField(missing)
        if not self._secret:
            raise ProviderNotConfigured()

        order_id_ctx.set(order_id)
        expected = compute_signature(self._secret, order_id, payment_id)
        verified = hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
        payment_verifications_total.labels(
            service=self.service_name,
            result="verified" if verified else "mismatch",
        ).inc()
        if verified:
            logger.info("payment signature verified payment_id=%s", payment_id)
        else:
            logger.warning("payment signature mismatch payment_id=%s", payment_id)
        return verified
