"""Process configuration read from environment variables."""
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from urllib.parse import quote_plus


def _split_origins(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ("*",)
    origins = tuple(origin.strip() for origin in raw.split(",") if origin.strip())
    return origins or ("*",)


def build_mongodb_uri(env: Mapping[str, str]) -> Optional[str]:
    """Returns MONGODB_URI, or an Atlas SRV URI composed from DB_USER/DB_PASS/DB_HOST."""
    uri = env.get("MONGODB_URI")
    if uri:
        return uri
    user, password, host = env.get("DB_USER"), env.get("DB_PASS"), env.get("DB_HOST")
    if not (user and password and host):
        return None
    return (
        f"mongodb+srv://{quote_plus(user)}:{quote_plus(password)}@{host}"
        "/?retryWrites=true&w=majority"
    )


@dataclass(frozen=True)
class Settings:
    mongodb_uri: Optional[str] = None
    db_name: str = "expenseTracker"
    collection_name: str = "expenses"
    allowed_origins: Tuple[str, ...] = ("*",)
    rate_limit: Optional[str] = None
    api_prefix: str = ""
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            mongodb_uri=build_mongodb_uri(env),
            db_name=env.get("DB_NAME", "expenseTracker"),
            collection_name=env.get("COLLECTION_NAME", "expenses"),
            allowed_origins=_split_origins(env.get("ALLOWED_ORIGINS")),
            rate_limit=env.get("RATE_LIMIT") or None,
            api_prefix=env.get("API_PREFIX", "").rstrip("/"),
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "5000")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
