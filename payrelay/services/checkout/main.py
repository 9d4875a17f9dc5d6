"""HTTP surface for the checkout relay.

Creates provider orders and verifies payment signatures for the web client.
Services are built once per app from settings and can be swapped out in tests.
"""

import json
import re
from datetime import datetime, timezone
from time import perf_counter
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from payrelay.common.config import Settings, settings as default_settings
from payrelay.common.errors import InvalidAmount, InvalidCurrency, MalformedBody, MissingField, ProviderNotConfigured, RelayError
from payrelay.common.logging import configure_logging, logger, order_id_ctx, request_id_ctx
from payrelay.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from payrelay.common.startup import log_startup_config
from payrelay.common.tracing import instrument_app, setup_tracing
from payrelay.services.checkout.provider import PaymentProvider, build_provider
from payrelay.services.checkout.schemas import HealthResponse, OrderRequest, VerificationRequest, VerificationResponse
from payrelay.services.checkout.service import OrderService, VerificationService

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def split_origins(origins: list[str]) -> tuple[list[str], str | None]:
    """Separate exact origins from `*` patterns, folding the latter into one regex."""

    exact = [origin for origin in origins if "*" not in origin]
    patterns = [re.escape(origin).replace(r"\*", r"[^/]+") for origin in origins if "*" in origin]
    return exact, ("|".join(patterns) if patterns else None)


def _reject_constant(name: str):
    raise MalformedBody()


async def read_body(request: Request) -> dict:
    """Parse a JSON or form body into a dict; an empty body is an empty dict."""

    if request.headers.get("content-type", "").startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return dict(form)
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as exc:
        raise MalformedBody() from exc
    if not isinstance(payload, dict):
        raise MalformedBody()
    return payload


def create_app(
    app_settings: Settings | None = None,
    provider: PaymentProvider | None = None,
) -> FastAPI:
    """Build the checkout app.

    `provider` overrides the Razorpay client built from settings; both services
    receive their collaborators here rather than through module globals.
    """

    cfg = app_settings or default_settings
    configure_logging(cfg.service_name, cfg.log_level)
    setup_tracing(cfg.service_name, cfg.otel_exporter_otlp_endpoint)
    log_startup_config(cfg)

    credentials = cfg.credentials()
    order_service = OrderService(
        provider if provider is not None else build_provider(credentials),
        timeout_seconds=cfg.provider_timeout_seconds,
        default_currency=cfg.default_currency,
        service_name=cfg.service_name,
    )
    verification_service = VerificationService(credentials, service_name=cfg.service_name)

    app = FastAPI(title="payrelay checkout")
    instrument_app(app)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Tag the request with an id and record count and latency."""

        request_id = request.headers.get("x-request-id") or str(uuid4())
        request_id_ctx.set(request_id)
        request.state.request_id = request_id
        order_id_ctx.set("")
        start = perf_counter()
        route = "unmatched"
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(service=cfg.service_name, route=route, method=method).observe(elapsed)
            http_requests_total.labels(
                service=cfg.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()

    exact_origins, origin_regex = split_origins(cfg.origin_list())
    app.add_middleware(
        CORSMiddleware,
        allow_origins=exact_origins,
        allow_origin_regex=origin_regex,
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        return exc.to_response()

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Known path with the wrong method is still "not found" to clients.
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error path=%s", request.url.path, exc_info=exc)
        response = JSONResponse(status_code=500, content={"error": "Internal server error"})
        request_id = getattr(request.state, "request_id", None) or request_id_ctx.get()
        if request_id:
            response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health", response_model=HealthResponse)
    def health():
        """Liveness probe reporting whether the provider client is wired."""

        logger.info("health check received")
        return HealthResponse(
            status="OK",
            message="Server is running",
            timestamp=datetime.now(timezone.utc).isoformat(),
            razorpay="Initialized" if order_service.configured else "Not initialized",
        )

    @app.post("/create-order")
    async def create_order(request: Request):
        """Validate the amount and create a provider order for it."""

        body = await read_body(request)
        logger.info("create order request received body=%s", body)
        try:
            req = OrderRequest.model_validate(body)
        except ValidationError as exc:
            failed = {err["loc"][0] for err in exc.errors() if err["loc"]}
            if "currency" in failed and "amount" not in failed:
                raise InvalidCurrency(body.get("currency")) from None
            raise InvalidAmount(body.get("amount")) from None
        return await order_service.create_order(req.amount, req.currency)

    @app.post("/verify-payment", response_model=VerificationResponse)
    async def verify_payment(request: Request):
        """Check the callback signature against our key secret."""

        body = await read_body(request)
        try:
            req = VerificationRequest.model_validate(body)
        except ValidationError as exc:
            raise MissingField(sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})) from None
        try:
            verified = verification_service.verify_payment(
                req.razorpay_order_id,
                req.razorpay_payment_id,
                req.razorpay_signature,
            )
        except ProviderNotConfigured:
            logger.error("payment verification requested without a key secret")
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": "Payment verification unavailable"},
            )
        if not verified:
            return JSONResponse(
                status_code=400,
                content={"success": False, "message": "Payment verification failed"},
            )
        return VerificationResponse(success=True, message="Payment verified successfully")

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    return app


app = create_app()


def run() -> None:
    """Serve the module-level app with uvicorn on the configured port."""

    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
