import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_FRONTEND_ORIGINS = [
    "http://localhost:5173",
    "https://project-catalyst-three.vercel.app",
]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


def _env_list(name: str, sep: str = ",") -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(sep) if item.strip()]


def parse_recipients(raw: str) -> List[str]:
    """Split a ``,`` or ``;`` separated address list, dropping blanks."""
    parts = raw.replace(";", ",").split(",")
    return [p.strip() for p in parts if p.strip()]


@dataclass(frozen=True)
class SheetsSettings:
    service_account_email: Optional[str] = None
    private_key: Optional[str] = None
    spreadsheet_id: Optional[str] = None
    spreadsheet_url: Optional[str] = None
    worksheet_title: str = "Sheet1"


@dataclass(frozen=True)
class SMTPSettings:
    host: Optional[str] = None
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    secure: bool = False
    debug: bool = False
    timeout: float = 60.0

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password)


@dataclass(frozen=True)
class EmailSettings:
    from_name: str = "Project Catalyst"
    from_address: str = ""
    support_address: Optional[str] = None
    admin_recipients: List[str] = field(default_factory=list)
    brand_color: str = "#0f766e"
    cta_url: str = "https://example.com/book"
    company_address: str = "Your City"
    header_image_url: Optional[str] = None
    header_image_path: Optional[str] = None
    logo_path: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    app_env: str = "development"
    frontend_origins: List[str] = field(default_factory=lambda: list(DEFAULT_FRONTEND_ORIGINS))
    rate_limit_window_seconds: int = 60
    rate_limit_max_requests: int = 30
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    sheets: SheetsSettings = field(default_factory=SheetsSettings)
    smtp: SMTPSettings = field(default_factory=SMTPSettings)
    email: EmailSettings = field(default_factory=EmailSettings)

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


def load_settings() -> Settings:
    """Build settings from the process environment."""
    smtp_port = int(os.getenv("SMTP_PORT", "587"))
    admin_raw = (
        os.getenv("ADMIN_NOTIFICATION_EMAILS")
        or os.getenv("NOTIFY_EMAIL")
        or os.getenv("EMAIL_TO")
        or ""
    )
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        frontend_origins=_env_list("FRONTEND_ORIGINS") or list(DEFAULT_FRONTEND_ORIGINS),
        rate_limit_window_seconds=int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60")),
        rate_limit_max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "30")),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        sheets=SheetsSettings(
            service_account_email=os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
            private_key=os.getenv("GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY"),
            spreadsheet_id=os.getenv("GOOGLE_SHEETS_SPREADSHEET_ID"),
            spreadsheet_url=os.getenv("GOOGLE_SHEETS_SPREADSHEET_URL"),
            worksheet_title=os.getenv("GOOGLE_SHEETS_WORKSHEET_TITLE", "Sheet1"),
        ),
        smtp=SMTPSettings(
            host=os.getenv("SMTP_HOST"),
            port=smtp_port,
            user=os.getenv("SMTP_USER"),
            password=os.getenv("SMTP_PASS"),
            secure=_env_bool("SMTP_SECURE") or smtp_port == 465,
            debug=_env_bool("SMTP_DEBUG"),
        ),
        email=EmailSettings(
            from_name=os.getenv("EMAIL_FROM_NAME", "Project Catalyst"),
            from_address=(os.getenv("EMAIL_FROM") or "").strip(),
            support_address=os.getenv("SUPPORT_EMAIL") or os.getenv("REPLY_TO"),
            admin_recipients=parse_recipients(admin_raw),
            brand_color=os.getenv("BRAND_COLOR", "#0f766e"),
            cta_url=os.getenv("CLIENT_CTA_URL", "https://example.com/book"),
            company_address=os.getenv("COMPANY_ADDRESS", "Your City"),
            header_image_url=os.getenv("EMAIL_HEADER_IMAGE_URL"),
            header_image_path=os.getenv("EMAIL_HEADER_IMAGE_PATH"),
            logo_path=os.getenv("EMAIL_LOGO_PATH"),
        ),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
