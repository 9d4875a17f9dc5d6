"""Shared fixtures: a fake provider client and settings without env leakage."""

import time

import pytest

from payrelay.common.config import Settings


class ProviderRejection(Exception):
    """Provider failure carrying Razorpay's structured `error` body."""

    def __init__(self, description: str, code: str | None = None) -> None:
        super().__init__("provider rejected request")
        self.error = {"description": description, "code": code}


class FakeProvider:
    """Records order options and answers like Razorpay's orders API."""

    def __init__(self, error: Exception | None = None, delay: float = 0.0) -> None:
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    def create_order(self, options, timeout=None):
        self.calls.append(dict(options))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {
            "id": "order_TESTabc123",
            "entity": "order",
            "amount": options["amount"],
            "amount_paid": 0,
            "currency": options["currency"],
            "receipt": options["receipt"],
            "status": "created",
        }


def make_settings(**overrides) -> Settings:
    values = {
        "razorpay_key_id": "rzp_test_key",
        "razorpay_key_secret": "test_secret",
        "provider_timeout_seconds": 1.0,
        "otel_exporter_otlp_endpoint": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def rejection():
    return ProviderRejection


@pytest.fixture
def fake_provider_cls():
    return FakeProvider


@pytest.fixture
def settings_factory():
    return make_settings
