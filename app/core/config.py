from decimal import Decimal
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env lives at the project root: app/core/config.py -> app/core -> app -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./bazar.db"
    # CORS: comma separated origins; production: https://shop.example.com
    cors_origins: str = "*"
    # Requests per minute per IP on the quote / order endpoints
    rate_limit_per_minute: int = 60
    # Honour X-Forwarded-For for the limiter key; turn off when not behind a proxy
    trust_forwarded_for: bool = True
    admin_secret: str = ""             # X-Admin-Secret for /admin/coupons
    environment: str = "development"
    log_level: str = "INFO"
    # Charge currency. BDT has no minor unit in practice, so totals are whole taka.
    currency: str = "BDT"
    currency_decimals: int = 0

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("admin_secret", "currency", mode="before")
    @classmethod
    def strip_value(cls, v: str | None) -> str:
        """Trailing whitespace from copy/paste breaks secret compares."""
        return (v or "").strip()

    @field_validator("currency_decimals")
    @classmethod
    def check_decimals(cls, v: int) -> int:
        # Money columns are Numeric(12, 2)
        if not 0 <= v <= 2:
            raise ValueError("currency_decimals must be between 0 and 2")
        return v


settings = Settings()


def money_quantum() -> Decimal:
    """Smallest currency unit: Decimal('1') for BDT, Decimal('0.01') for 2-decimal currencies."""
    return Decimal(1).scaleb(-settings.currency_decimals)
