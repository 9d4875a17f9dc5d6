"""Prometheus metric definitions for the checkout relay."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
orders_created_total = Counter("orders_created_total", "Orders created at the provider", ["service", "currency"])
order_failures_total = Counter(
    "order_failures_total",
    "Order requests that did not produce a provider order",
    ["service", "reason"],
)
provider_latency_seconds = Histogram(
    "provider_latency_seconds",
    "Latency of provider order-creation calls",
    ["service"],
)
payment_verifications_total = Counter(
    "payment_verifications_total",
    "Payment signature verifications by outcome",
    ["service", "result"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
