"""
Environment-driven configuration for the shop API.

Values come from the process environment (optionally a local .env file).
"""
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

PAYPAL_MODES = ("sandbox", "live")


@dataclass(frozen=True)
class Settings:
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "shop"

    jwt_secret: str = "dev-secret-change-me"
    jwt_expires_min: int = 60
    bcrypt_rounds: int = 12

    paypal_mode: str = "sandbox"
    paypal_client_id: str = ""
    paypal_client_secret: str = ""

    client_base_url: str = "http://localhost:5173"
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_name=os.getenv("DATABASE_NAME", cls.database_name),
            jwt_secret=os.getenv("JWT_SECRET", cls.jwt_secret),
            jwt_expires_min=int(os.getenv("JWT_EXPIRES_MIN", cls.jwt_expires_min)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", cls.bcrypt_rounds)),
            paypal_mode=os.getenv("PAYPAL_MODE", cls.paypal_mode),
            paypal_client_id=os.getenv("PAYPAL_CLIENT_ID", ""),
            paypal_client_secret=os.getenv("PAYPAL_CLIENT_SECRET", ""),
            client_base_url=os.getenv("CLIENT_BASE_URL", cls.client_base_url),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            port=int(os.getenv("PORT", cls.port)),
        )

    def missing_paypal_credentials(self):
        """Names of the PayPal variables that are not set."""
        missing = []
        if not self.paypal_client_id:
            missing.append("PAYPAL_CLIENT_ID")
        if not self.paypal_client_secret:
            missing.append("PAYPAL_CLIENT_SECRET")
        return missing


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
