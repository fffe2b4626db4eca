import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_GATEWAY_URL = "https://dweb.link/ipfs/"
DEFAULT_PORT = 3334


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class AppConfig:
    ipfs_api_url: str
    gateway_url: str
    db_path: Path
    port: int = DEFAULT_PORT
    service_url: str = ""
    ipfs_timeout: float | None = None
    log_level: str = "info"

    @property
    def public_url(self) -> str:
        return (self.service_url or f"http://localhost:{self.port}").rstrip("/")


def normalize_gateway_url(url: str) -> str:
    return url if url.endswith("/") else url + "/"


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    env = os.environ if env is None else env

    ipfs_api_url = env.get("IPFS_API_URL", "")
    if not ipfs_api_url:
        raise ConfigError("IPFS_API_URL environment variable is required")

    try:
        port = int(env.get("PORT") or DEFAULT_PORT)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {env.get('PORT')!r}")

    timeout_raw = env.get("IPFS_TIMEOUT_SECONDS")
    try:
        ipfs_timeout = float(timeout_raw) if timeout_raw else None
    except ValueError:
        raise ConfigError(f"IPFS_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}")

    return AppConfig(
        ipfs_api_url=ipfs_api_url,
        gateway_url=normalize_gateway_url(env.get("IPFS_GATEWAY_URL") or DEFAULT_GATEWAY_URL),
        db_path=Path(env.get("DATABASE_PATH") or "./blossom.db"),
        port=port,
        service_url=env.get("SERVICE_URL", ""),
        ipfs_timeout=ipfs_timeout,
        log_level=env.get("LOG_LEVEL") or "info",
    )
