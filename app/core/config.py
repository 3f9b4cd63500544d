from datetime import date
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = False
    # Upper bound for a single repository round-trip
    repository_timeout_seconds: float = 5.0

    # JWT (tokens are issued by the phone-OTP login flow)
    secret_key: str
    access_token_expire_minutes: int = 60
    algorithm: str = "HS256"
    # Comma-separated owner ids allowed to use the admin endpoints
    admin_user_ids: str = ""

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Shop business rules
    shop_timezone: str = "Europe/Sarajevo"
    business_start: str = "08:30"
    business_end: str = "18:30"  # exclusive, so last slot starts at 18:00
    slot_granularity_minutes: int = 30
    booking_window_days: int = 7
    min_booking_date: date | None = None
    # Python weekday numbers (Monday=0); Sunday closed
    closed_weekdays: list[int] = [6]
    max_upcoming_per_user: int = 3

    # Env
    env: str = "development"

    # SMS (Twilio). Leave twilio_account_sid empty to disable sending.
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""
    sms_country_code: str = "+387"
    site_name: str = "Barbershop"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def admin_user_ids_list(self) -> list[str]:
        return [u.strip() for u in self.admin_user_ids.split(",") if u.strip()]

    @property
    def sms_enabled(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.shop_timezone)


settings = Settings()
