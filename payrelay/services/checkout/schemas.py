"""API request/response schemas for checkout endpoints."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderRequest(BaseModel):
    """Payload accepted by `POST /create-order`."""

    model_config = ConfigDict(extra="ignore")

    amount: Decimal = Field(gt=0, allow_inf_nan=False)
    currency: str | None = Field(default=None, pattern=r"^[A-Za-z]{3}$")

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_from_number(cls, value):
        # Floats go through their repr so 1.005 stays 1.005, not 1.00499...
        if isinstance(value, bool):
            raise ValueError("amount must be numeric")
        if isinstance(value, float):
            return str(value)
        return value

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str | None) -> str | None:
        return value.upper() if value else value


class VerificationRequest(BaseModel):
    """Payload accepted by `POST /verify-payment`; emptiness is checked by the service."""

    model_config = ConfigDict(extra="ignore")

    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None


class VerificationResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str
    razorpay: str
