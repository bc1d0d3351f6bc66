"""pNode Monitor configuration system using Pydantic Settings."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Known pNodes with an open pRPC port
DEFAULT_NODE_ROSTER: tuple[str, ...] = (
    "173.212.203.145",
    "173.212.220.65",
    "161.97.97.41",
    "192.190.136.36",
    "192.190.136.37",
    "192.190.136.38",
    "192.190.136.28",
    "192.190.136.29",
    "207.244.255.1",
)

DATA_SOURCES = {"database", "prpc"}


class PNodeMonitorConfig(BaseSettings):
    """Main configuration class. Loads from .env file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "pNode Monitor"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: str = "http://localhost:3000"

    # Database
    database_url: str = "sqlite+aiosqlite:///./pnode_monitor.db"
    db_wal_mode: bool = True
    db_busy_timeout: int = 5000

    # Logging
    log_dir: str = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    # pRPC roster and protocol
    node_roster: Annotated[tuple[str, ...], NoDecode] = DEFAULT_NODE_ROSTER
    prpc_port: int = 6000
    prpc_path: str = "/rpc"
    prpc_timeout_seconds: float = 5.0

    # Aggregation
    storage_headroom: float = 1.3
    shard_size_bytes: int = 10 * 1024 * 1024
    shard_availability: float = 0.98
    average_latency_ms: float = 35.0  # placeholder until a latency probe exists

    # Sync + retention
    retention_hours: float = 24
    sync_interval_seconds: int = 300  # 0 disables the background loop
    sync_on_startup: bool = False
    sync_api_key: Optional[str] = None

    # Read side
    data_source: str = "database"  # database / prpc
    live_cache_ttl_seconds: float = 30.0

    @field_validator("node_roster", mode="before")
    @classmethod
    def parse_node_roster(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                v = json.loads(v)
            else:
                v = v.split(",")
        roster = tuple(str(addr).strip() for addr in v if str(addr).strip())
        if len(set(roster)) != len(roster):
            raise ValueError("node_roster must not contain duplicate addresses")
        return roster

    @field_validator("data_source")
    @classmethod
    def validate_data_source(cls, v: str) -> str:
        v = v.lower()
        if v not in DATA_SOURCES:
            raise ValueError(f"data_source must be one of {DATA_SOURCES}")
        return v

    @field_validator("prpc_timeout_seconds", "retention_hours", "shard_size_bytes")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("value must be greater than zero")
        return v

    @field_validator("storage_headroom")
    @classmethod
    def validate_headroom(cls, v: float) -> float:
        # capacity estimate must never fall below usage
        if v < 1:
            raise ValueError("storage_headroom must be >= 1")
        return v

    @field_validator("shard_availability")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("shard_availability must be between 0 and 1")
        return v

    @field_validator("sync_interval_seconds")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v < 0:
            raise ValueError("sync_interval_seconds must be >= 0")
        return v

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent.parent


def get_config() -> PNodeMonitorConfig:
    """Factory function to create config instance."""
    return PNodeMonitorConfig()
