"""Startup-time helpers for safe config logging."""

from payrelay.common.config import Settings
from payrelay.common.logging import logger

SECRET_MARKERS = ("key", "secret", "password", "token")


def redacted_config(cfg: Settings) -> dict[str, object]:
    """Settings as a dict with secret-like values reduced to set/missing."""

    config: dict[str, object] = {}
    for name, value in cfg.model_dump().items():
        if any(marker in name for marker in SECRET_MARKERS):
            config[name] = "set" if value else "missing"
        else:
            config[name] = value
    return config


def log_startup_config(cfg: Settings) -> None:
    """Log effective startup config for quick troubleshooting."""

    logger.info("startup_config=%s", redacted_config(cfg))
