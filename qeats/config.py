from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


DEFAULT_CACHE_TTL_SECONDS = 3 * 3600


@dataclass(frozen=True)
class DiscoveryConfig:
    data_dir: Path = Path(
        os.getenv("QEATS_DATA_DIR", str(Path(__file__).resolve().parent / "data"))
    )
    cache_backend: str = os.getenv("QEATS_CACHE_BACKEND", "memory")
    redis_url: str = os.getenv("QEATS_REDIS_URL", "redis://localhost:6379/0")
    cache_ttl_seconds: int = int(os.getenv("QEATS_CACHE_TTL_SECONDS", str(DEFAULT_CACHE_TTL_SECONDS)))
    cache_key_by_radius: bool = _as_bool(os.getenv("QEATS_CACHE_KEY_BY_RADIUS"), False)
    search_concurrent: bool = _as_bool(os.getenv("QEATS_SEARCH_CONCURRENT"), True)
    search_max_workers: int = int(os.getenv("QEATS_SEARCH_MAX_WORKERS", "4"))
    peak_radius_km: float = 3.0
    normal_radius_km: float = 5.0


DEFAULT_DISCOVERY_CONFIG = DiscoveryConfig()
