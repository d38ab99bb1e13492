"""Player client configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_POLL_INTERVAL_SECONDS = 2.0


class ClientSettings(BaseSettings):
    model_config = {"env_prefix": "NAVAL_"}

    store_url: str = Field(default="http://localhost:8720", min_length=1)
    poll_interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    # None waits on the store indefinitely; a stuck request only delays the next tick
    request_timeout_seconds: float | None = Field(default=None, gt=0)
    max_write_retries: int = Field(default=3, ge=0)  # re-fetch and retry after a lost conditional write
    log_dir: str | None = None
