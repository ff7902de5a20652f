import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


@dataclass
class StockConfig:
    """Stock-state tuning knobs"""
    low_stock_threshold: int = 10
    reservation_ttl_minutes: int = 15
    alert_cooldown_hours: int = 24
    sweep_interval_seconds: int = 60


@dataclass
class EmailConfig:
    """Notification sink (Resend) configuration"""
    api_key: Optional[str] = None
    from_address: str = "noreply@d3mo.com"
    admin_email: Optional[str] = None
    api_url: str = "https://api.resend.com/emails"
    timeout_seconds: int = 10
    max_workers: int = 4


@dataclass
class AppConfig:
    """Application configuration"""
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"
    base_url: str = "http://127.0.0.1:5000"  # where the standalone sweeper reaches the app


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class Config:
    def __init__(self):
        self.environment = os.getenv("ENVIRONMENT", "development")

        self.stock = StockConfig(
            low_stock_threshold=int(os.getenv("LOW_STOCK_THRESHOLD", "10")),
            reservation_ttl_minutes=int(os.getenv("RESERVATION_TTL_MINUTES", "15")),
            alert_cooldown_hours=int(os.getenv("ALERT_COOLDOWN_HOURS", "24")),
            sweep_interval_seconds=int(os.getenv("SWEEP_INTERVAL_SECONDS", "60")),
        )

        self.email = EmailConfig(
            api_key=_optional("RESEND_API_KEY"),
            from_address=os.getenv("RESEND_FROM_EMAIL", "noreply@d3mo.com"),
            admin_email=_optional("ADMIN_EMAIL"),
            api_url=os.getenv("RESEND_API_URL", "https://api.resend.com/emails"),
            timeout_seconds=int(os.getenv("EMAIL_TIMEOUT_SECONDS", "10")),
            max_workers=int(os.getenv("EMAIL_MAX_WORKERS", "4")),
        )

        self.app = AppConfig(
            debug=os.getenv("DEBUG", "false").lower() == "true",
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            environment=self.environment,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            base_url=os.getenv("APP_BASE_URL", "http://127.0.0.1:5000"),
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> None:
        """Validate critical configuration"""
        if self.stock.low_stock_threshold < 0:
            raise ValueError("LOW_STOCK_THRESHOLD cannot be negative")

        if self.stock.reservation_ttl_minutes <= 0:
            raise ValueError("RESERVATION_TTL_MINUTES must be positive")

        if self.stock.alert_cooldown_hours < 0:
            raise ValueError("ALERT_COOLDOWN_HOURS cannot be negative")

        if self.stock.sweep_interval_seconds < 1:
            raise ValueError("SWEEP_INTERVAL_SECONDS must be at least 1")

        if self.email.max_workers < 1:
            raise ValueError("EMAIL_MAX_WORKERS must be at least 1")

        # ADMIN_EMAIL / RESEND_API_KEY are checked per request by the senders


config = Config()
