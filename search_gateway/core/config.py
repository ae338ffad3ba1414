import os
from dataclasses import dataclass
from functools import lru_cache

REFRESH_POLICIES = {"true", "false", "wait_for"}


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    return value if value is not None else default


def _parse_bool(raw: str | None) -> bool:
    if not raw:
        return False
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _parse_refresh(raw: str | None) -> str:
    value = (raw or "false").strip().lower()
    if value not in REFRESH_POLICIES:
        raise ValueError("ELASTIC_REFRESH must be one of true, false, wait_for")
    return value


@dataclass(frozen=True)
class Settings:
    elastic_url: str
    elastic_index: str
    elastic_timeout: float
    elastic_refresh: str
    strict_bulk: bool
    max_result_window: int
    reconnect_delay: float
    redis_url: str
    couchbase_url: str
    couchbase_bucket: str
    couchbase_username: str
    couchbase_password: str
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    elastic_url = _get_env("ELASTIC_URL", "http://elasticsearch:9200")
    elastic_index = _get_env("ELASTIC_INDEX", "documents")
    elastic_timeout = float(_get_env("ELASTIC_TIMEOUT", "10"))
    elastic_refresh = _parse_refresh(_get_env("ELASTIC_REFRESH"))
    strict_bulk = _parse_bool(_get_env("ELASTIC_STRICT_BULK"))
    max_result_window = int(_get_env("ELASTIC_MAX_RESULT_WINDOW", "10000"))
    reconnect_delay = float(_get_env("RECONNECT_DELAY_SECONDS", "3.0"))
    redis_url = _get_env("REDIS_URL", "redis://redis-master:6379/0")
    couchbase_url = _get_env("COUCHBASE_URL", "couchbase://couchbase-master-service")
    couchbase_bucket = _get_env("COUCHBASE_BUCKET", "default")
    couchbase_username = _get_env("COUCHBASE_USERNAME", "Administrator")
    couchbase_password = _get_env("COUCHBASE_PASSWORD", "")
    log_level = _get_env("LOG_LEVEL", "INFO")

    return Settings(
        elastic_url=elastic_url,
        elastic_index=elastic_index,
        elastic_timeout=elastic_timeout,
        elastic_refresh=elastic_refresh,
        strict_bulk=strict_bulk,
        max_result_window=max_result_window,
        reconnect_delay=reconnect_delay,
        redis_url=redis_url,
        couchbase_url=couchbase_url,
        couchbase_bucket=couchbase_bucket,
        couchbase_username=couchbase_username,
        couchbase_password=couchbase_password,
        log_level=log_level,
    )
