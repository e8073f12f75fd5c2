"""Configuration for rawstore operations."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class StoreConfig:
    """Configuration for one object store, passed into every operation."""

    db_path: str = "raw-data.db"
    store_name: str = "csv-store"
    schema_version: int = 1
    max_upload_bytes: int = 200 * 1024 * 1024
    default_limit: int = 100
    collision_retries: int = 5
    suffix_length: int = 3
    busy_timeout_s: float = 5.0

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Build a config from RAWSTORE_* environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            db_path=os.getenv("RAWSTORE_DB") or defaults.db_path,
            store_name=os.getenv("RAWSTORE_STORE") or defaults.store_name,
            schema_version=int(os.getenv("RAWSTORE_SCHEMA_VERSION") or defaults.schema_version),
            busy_timeout_s=float(os.getenv("RAWSTORE_BUSY_TIMEOUT") or defaults.busy_timeout_s),
        )

    def with_overrides(self, **changes: object) -> StoreConfig:
        """Copy with the given fields replaced; ``None`` values are ignored."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
