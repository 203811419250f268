import os
from typing import Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_DATABASE_URL = "sqlite:///./employee.db"

TIMESHEET_LIST_LIMIT = 200


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def get_env() -> str:
    return os.getenv("ENV", "dev").strip().lower()


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def get_jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET is required")
    if len(secret) < 32:
        raise ValueError("JWT_SECRET must be at least 32 characters")
    return secret


def get_jwt_exp_hours() -> int:
    return max(1, _env_int("JWT_EXP_HOURS", 8))


def get_app_timezone() -> ZoneInfo:
    name = os.getenv("APP_TIMEZONE", "UTC").strip() or "UTC"
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"Unknown APP_TIMEZONE: {name}") from exc


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_hr_bootstrap_credentials() -> Tuple[str, str]:
    """
    Name/PIN of the HR account created at startup when no HR user exists.

    The default PIN only applies in dev-like environments. Elsewhere
    HR_BOOTSTRAP_PIN must be set explicitly, otherwise the PIN comes back
    empty and bootstrap is skipped.
    """
    name = os.getenv("HR_BOOTSTRAP_NAME", "Admin").strip()
    pin = os.getenv("HR_BOOTSTRAP_PIN")
    if pin is None:
        pin = "1234" if get_env() in {"dev", "local", "test"} else ""
    return name, pin.strip()
