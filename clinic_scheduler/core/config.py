import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _get_int_list(value: str | None, default: tuple[int, ...]) -> tuple[int, ...]:
    if value is None or not value.strip():
        return default
    return tuple(int(item) for item in value.split(",") if item.strip())


APP_ENV = os.getenv("APP_ENV", "development")
DEBUG_SQL = _get_bool(os.getenv("DEBUG_SQL"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic_scheduler.db")

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:4200").split(",")
    if origin.strip()
]

# Wall-clock zone every provider calendar is evaluated in.
PROVIDER_TIMEZONE = os.getenv("PROVIDER_TIMEZONE", "America/Sao_Paulo")

DEFAULT_APPOINTMENT_DURATION_MINUTES = _get_int(os.getenv("DEFAULT_APPOINTMENT_DURATION_MINUTES"), 60)
OFFERED_DURATIONS = _get_int_list(os.getenv("OFFERED_DURATIONS"), (30, 45, 60, 90, 120))
PUBLIC_MIN_DURATION_MINUTES = _get_int(os.getenv("PUBLIC_MIN_DURATION_MINUTES"), 15)
PUBLIC_MAX_DURATION_MINUTES = _get_int(os.getenv("PUBLIC_MAX_DURATION_MINUTES"), 240)
MAX_APPOINTMENT_DURATION_MINUTES = _get_int(os.getenv("MAX_APPOINTMENT_DURATION_MINUTES"), 24 * 60)
NEXT_SLOT_MAX_DAYS_AHEAD = _get_int(os.getenv("NEXT_SLOT_MAX_DAYS_AHEAD"), 30)
SLOT_RANGE_MAX_DAYS = _get_int(os.getenv("SLOT_RANGE_MAX_DAYS"), 31)
UPCOMING_BLOCKS_DAYS_AHEAD = _get_int(os.getenv("UPCOMING_BLOCKS_DAYS_AHEAD"), 30)
BOOKING_COMMIT_ATTEMPTS = _get_int(os.getenv("BOOKING_COMMIT_ATTEMPTS"), 2)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = _get_int(os.getenv("JWT_EXPIRES_MINUTES"), 60)


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if MAX_APPOINTMENT_DURATION_MINUTES < PUBLIC_MAX_DURATION_MINUTES:
        raise RuntimeError("MAX_APPOINTMENT_DURATION_MINUTES must cover PUBLIC_MAX_DURATION_MINUTES.")
