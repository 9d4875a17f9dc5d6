"""Error taxonomy for the checkout relay.

Each error knows its HTTP status and the JSON body the client sees, so route
code raises and a single exception handler renders.
"""

import math
from decimal import Decimal
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


class RelayError(Exception):
    """Base class for errors reported to the client in a fixed JSON shape."""

    status_code = 500
    message = "Internal server error"

    def body(self) -> dict[str, Any]:
        return {"error": self.message}

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=jsonable_encoder(self.body()))


def _echoable(value: Any) -> Any:
    """Make a rejected value JSON-safe; non-finite numbers are echoed as text."""

    if isinstance(value, Decimal):
        if value.is_finite() and math.isfinite(float(value)):
            return float(value)
        return str(value)
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return value


class InvalidInput(RelayError):
    """A request value failed validation; the value is echoed back."""

    status_code = 400

    def __init__(self, received: Any = None) -> None:
        super().__init__(f"{self.message}: {received!r}")
        self.received = received

    def body(self) -> dict[str, Any]:
        return {"error": self.message, "received": _echoable(self.received)}


class InvalidAmount(InvalidInput):
    """Amount missing, non-numeric, or not strictly positive."""

    message = "Valid amount is required"


class InvalidCurrency(InvalidInput):
    message = "Valid currency is required"


class MalformedBody(RelayError):
    status_code = 400
    message = "Malformed JSON body"


class MissingField(RelayError):
    """Required verification fields absent or empty."""

    status_code = 400

    def __init__(self, fields: list[str]) -> None:
        self.fields = list(fields)
        self.message = f"Missing required field(s): {', '.join(self.fields)}"
        super().__init__(self.message)

    def body(self) -> dict[str, Any]:
        return {"success": False, "message": self.message}


class ProviderError(RelayError):
    """The payment provider failed to create an order."""

    status_code = 500
    message = "Failed to create Razorpay order"

    def __init__(self, details: str, code: str | None = None) -> None:
        super().__init__(details)
        self.details = details
        self.code = code

    def body(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details, "code": self.code}


class ProviderNotConfigured(ProviderError):
    def __init__(self, details: str = "Razorpay credentials are not configured") -> None:
        super().__init__(details, code="PROVIDER_NOT_CONFIGURED")


class ProviderTimeout(ProviderError):
    status_code = 504
    message = "Razorpay order request timed out"

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"no response within {timeout_seconds:g}s", code="PROVIDER_TIMEOUT")
        self.timeout_seconds = timeout_seconds
