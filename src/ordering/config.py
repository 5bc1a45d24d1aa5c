"""Runtime settings for the ordering service, read from the environment."""

import os
from dataclasses import dataclass


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, default))


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


@dataclass(frozen=True)
class Settings:
    currency: str
    catalog_timeout_seconds: float
    gateway_timeout_seconds: float
    payment_link_base: str
    stripe_api_key: str | None
    stripe_webhook_secret: str | None
    catalog_base_url: str | None
    notification_max_attempts: int
    notification_backoff_seconds: float
    notification_max_backoff_seconds: float
    smtp_host: str | None
    smtp_port: int
    smtp_sender: str

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            currency=os.getenv("ORDERING_CURRENCY", "USD"),
            catalog_timeout_seconds=_float("CATALOG_TIMEOUT_SECONDS", 2.0),
            gateway_timeout_seconds=_float("GATEWAY_TIMEOUT_SECONDS", 10.0),
            payment_link_base=os.getenv("PAYMENT_LINK_BASE", "http://localhost:3000/payment?orderId="),
            stripe_api_key=os.getenv("STRIPE_API_KEY") or None,
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET") or None,
            catalog_base_url=os.getenv("CATALOG_BASE_URL") or None,
            notification_max_attempts=_int("NOTIFICATION_MAX_ATTEMPTS", 3),
            notification_backoff_seconds=_float("NOTIFICATION_BACKOFF_SECONDS", 0.5),
            notification_max_backoff_seconds=_float("NOTIFICATION_MAX_BACKOFF_SECONDS", 30.0),
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=_int("SMTP_PORT", 25),
            smtp_sender=os.getenv("SMTP_SENDER", "orders@localhost"),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
