"""Central environment-driven settings for the checkout relay.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from dataclasses import dataclass, field

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ProviderCredentials:
    """Key pair shared by the provider client and signature verification."""

    key_id: str
    key_secret: str = field(default="", repr=False)

    @property
    def complete(self) -> bool:
        return bool(self.key_id and self.key_secret)


class Settings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "payrelay"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    allowed_origins: str = "http://localhost:3000,https://*.vercel.app,https://*.onrender.com"
    provider_timeout_seconds: float = 15.0
    default_currency: str = "INR"
    otel_exporter_otlp_endpoint: str = ""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def credentials(self) -> ProviderCredentials:
        return ProviderCredentials(key_id=self.razorpay_key_id, key_secret=self.razorpay_key_secret)

    def origin_list(self) -> list[str]:
        """Split the comma-separated origin setting, dropping blanks."""

        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
