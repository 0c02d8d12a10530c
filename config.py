import hashlib
import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# SHA-256 of the built-in admin password ("ipassword")
DEFAULT_ADMIN_PASSWORD_SHA256 = hashlib.sha256(b"ipassword").hexdigest()


def _get_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    admin_login: str = "admin"
    admin_password_sha256: str = DEFAULT_ADMIN_PASSWORD_SHA256
    seed_on_startup: bool = True
    seed_year: int = 2026
    log_level: str = "INFO"
    sql_echo: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        # Fail fast: without a database there is nothing to serve.
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise ValueError("DATABASE_URL is not set. Please check your .env file.")

        return cls(
            database_url=database_url,
            admin_login=os.getenv("ADMIN_LOGIN", "admin"),
            admin_password_sha256=os.getenv(
                "ADMIN_PASSWORD_SHA256", DEFAULT_ADMIN_PASSWORD_SHA256
            ).lower(),
            seed_on_startup=_get_bool("SEED_ON_STARTUP", True),
            seed_year=int(os.getenv("SEED_YEAR", "2026")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            sql_echo=_get_bool("SQL_ECHO", False),
        )
