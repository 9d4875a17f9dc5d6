"""Unit tests for order creation: conversion, receipts, and provider errors."""

import asyncio
from decimal import Decimal

import pytest
import requests
from razorpay.errors import BadRequestError, GatewayError

from payrelay.common.errors import InvalidAmount, ProviderError, ProviderNotConfigured, ProviderTimeout
from payrelay.services.checkout.provider import describe_provider_error
from payrelay.services.checkout.service import OrderService, new_receipt, to_minor_units


@pytest.mark.parametrize(
    "amount, expected",
    [(10.5, 1050), (1, 100), ("19.99", 1999), (1.005, 101), (0.015, 2), (0.004, 0), (2499.995, 250000)],
)
def test_to_minor_units(amount, expected):
    """Major units scale by 100 and round half up."""

    assert to_minor_units(amount) == expected


def test_receipt_uses_clock_and_fits_provider_limit():
    receipt = new_receipt(now=lambda: 1_700_000_000.123)

    assert receipt.startswith("receipt_1700000000123_")
    assert len(receipt) <= 40


def test_receipts_unique_within_same_millisecond():
    """Random suffix keeps receipts apart even on a frozen clock."""

    receipts = {new_receipt(now=lambda: 1.0) for _ in range(50)}
    assert len(receipts) == 50


def test_create_order_defaults_to_inr(provider):
    service = OrderService(provider)

    result = asyncio.run(service.create_order(1))

    assert len(provider.calls) == 1
    options = provider.calls[0]
    assert options["amount"] == 100
    assert options["currency"] == "INR"
    assert options["payment_capture"] == 1
    assert options["receipt"]
    assert result["success"] is True
    assert result["id"] == "order_TESTabc123"
    assert result["receipt"] == options["receipt"]


def test_create_order_passes_converted_amount_and_currency(provider):
    service = OrderService(provider, receipt_factory=lambda: "receipt_fixed")

    asyncio.run(service.create_order(10.5, "USD"))

    assert provider.calls == [
        {"amount": 1050, "currency": "USD", "receipt": "receipt_fixed", "payment_capture": 1}
    ]


@pytest.mark.parametrize("amount", [None, 0, -1, -0.01, "abc", "", True, float("nan"), float("inf")])
def test_invalid_amount_never_reaches_provider(provider, amount):
    """Rejected amounts are echoed back and the provider stays untouched."""

    service = OrderService(provider)

    with pytest.raises(InvalidAmount) as excinfo:
        asyncio.run(service.create_order(amount))

    assert excinfo.value.received is amount
    assert provider.calls == []


def test_structured_provider_error_is_reported(fake_provider_cls, rejection):
    provider = fake_provider_cls(error=rejection("card declined", "BAD_REQUEST"))
    service = OrderService(provider)

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(service.create_order(5))

    assert excinfo.value.details == "card declined"
    assert excinfo.value.code == "BAD_REQUEST"
    assert excinfo.value.body() == {
        "error": "Failed to create Razorpay order",
        "details": "card declined",
        "code": "BAD_REQUEST",
    }


def test_plain_provider_exception_has_no_code(fake_provider_cls):
    provider = fake_provider_cls(error=ConnectionError("connection refused"))
    service = OrderService(provider)

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(service.create_order(5))

    assert excinfo.value.details == "connection refused"
    assert excinfo.value.code is None


def test_sdk_error_classes_map_to_codes():
    assert describe_provider_error(BadRequestError("The amount must be atleast INR 1.00")) == (
        "The amount must be atleast INR 1.00",
        "BAD_REQUEST_ERROR",
    )
    assert describe_provider_error(GatewayError("upstream down")) == ("upstream down", "GATEWAY_ERROR")
    assert describe_provider_error(RuntimeError()) == ("RuntimeError", None)


def test_slow_provider_times_out(fake_provider_cls):
    provider = fake_provider_cls(delay=0.5)
    service = OrderService(provider, timeout_seconds=0.05)

    with pytest.raises(ProviderTimeout) as excinfo:
        asyncio.run(service.create_order(5))

    assert excinfo.value.status_code == 504
    assert excinfo.value.code == "PROVIDER_TIMEOUT"


def test_transport_timeout_is_provider_timeout(fake_provider_cls):
    provider = fake_provider_cls(error=requests.exceptions.ReadTimeout("read timed out"))
    service = OrderService(provider, timeout_seconds=3)

    with pytest.raises(ProviderTimeout):
        asyncio.run(service.create_order(5))


def test_missing_provider_is_not_configured():
    service = OrderService(None)

    assert service.configured is False
    with pytest.raises(ProviderNotConfigured) as excinfo:
        asyncio.run(service.create_order(5))
    assert excinfo.value.code == "PROVIDER_NOT_CONFIGURED"


@pytest.mark.parametrize("amount", [1e30, "1e26", Decimal("9" * 40)])
def test_amount_beyond_decimal_precision_is_invalid(provider, amount):
    """Huge positive amounts are rejected instead of blowing up the conversion."""

    service = OrderService(provider)

    with pytest.raises(InvalidAmount) as excinfo:
        asyncio.run(service.create_order(amount))

    assert excinfo.value.received is amount
    assert excinfo.value.status_code == 400
    assert provider.calls == []


def test_rejected_non_finite_amount_echo_is_json_safe():
    assert InvalidAmount(float("nan")).body() == {"error": "Valid amount is required", "received": "nan"}
    assert InvalidAmount(Decimal("Infinity")).body()["received"] == "Infinity"
    assert InvalidAmount(Decimal("1E+30")).body()["received"] == 1e30
