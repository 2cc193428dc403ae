"""Configuration management for orgvault."""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


@dataclass(frozen=True)
class StorageConfig:
    """Collection storage configuration."""
    backend: str = "memory"  # memory, redis

    # Redis specific settings
    redis_url: Optional[str] = None
    redis_password: Optional[str] = None
    redis_max_connections: int = 50
    redis_connection_timeout: float = 5.0
    redis_socket_timeout: float = 5.0
    redis_key_prefix: str = "orgvault"

    # Reconnect loop
    retry_interval: float = 5.0

    @classmethod
    def from_env(cls) -> 'StorageConfig':
        """Create config from environment variables."""
        return cls(
            backend=os.getenv("STORAGE_BACKEND", "memory"),
            redis_url=os.getenv("REDIS_URL", None),
            redis_password=os.getenv("REDIS_PASSWORD", None),
            redis_max_connections=int(os.getenv("REDIS_MAX_CONNECTIONS", "50")),
            redis_connection_timeout=float(os.getenv("REDIS_CONNECTION_TIMEOUT", "5.0")),
            redis_socket_timeout=float(os.getenv("REDIS_SOCKET_TIMEOUT", "5.0")),
            redis_key_prefix=os.getenv("REDIS_KEY_PREFIX", "orgvault"),
            retry_interval=float(os.getenv("STORAGE_RETRY_INTERVAL", "5.0")),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_backends = {"memory", "redis"}
        if self.backend not in valid_backends:
            raise ValueError(f"Unknown storage backend: {self.backend}. Available: {valid_backends}")
        if self.retry_interval <= 0:
            raise ValueError(f"retry_interval must be positive, got {self.retry_interval}")
        if self.redis_max_connections <= 0:
            raise ValueError(f"redis_max_connections must be positive, got {self.redis_max_connections}")


@dataclass(frozen=True)
class BackupConfig:
    """Snapshot store configuration."""
    snapshot_backend: str = "file"  # file, memory
    backup_dir: str = "./data/backups"
    capture_timeout: Optional[float] = None  # seconds; None disables
    include_metrics: bool = True

    @classmethod
    def from_env(cls) -> 'BackupConfig':
        """Create config from environment variables."""
        return cls(
            snapshot_backend=os.getenv("SNAPSHOT_BACKEND", "file"),
            backup_dir=os.getenv("BACKUP_DIR", "./data/backups"),
            capture_timeout=_env_optional_float("BACKUP_CAPTURE_TIMEOUT"),
            include_metrics=_env_flag("BACKUP_INCLUDE_METRICS", "true"),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_backends = {"file", "memory"}
        if self.snapshot_backend not in valid_backends:
            raise ValueError(f"Unknown snapshot backend: {self.snapshot_backend}. Available: {valid_backends}")
        if self.capture_timeout is not None and self.capture_timeout <= 0:
            raise ValueError(f"capture_timeout must be positive, got {self.capture_timeout}")


@dataclass(frozen=True)
class SchedulerConfig:
    """Periodic backup configuration. Opt-in."""
    enabled: bool = False
    interval: float = 900.0  # 15 minutes
    initial_delay: float = 2.0
    history_size: int = 200

    @classmethod
    def from_env(cls) -> 'SchedulerConfig':
        """Create config from environment variables."""
        return cls(
            enabled=_env_flag("BACKUP_SCHEDULER_ENABLED"),
            interval=float(os.getenv("BACKUP_SCHEDULER_INTERVAL", "900")),
            initial_delay=float(os.getenv("BACKUP_SCHEDULER_INITIAL_DELAY", "2.0")),
            history_size=int(os.getenv("BACKUP_JOB_HISTORY_SIZE", "200")),
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must be non-negative, got {self.initial_delay}")
        if self.history_size <= 0:
            raise ValueError(f"history_size must be positive, got {self.history_size}")


@dataclass(frozen=True)
class VaultConfig:
    """Main configuration combining all sub-configs."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    @classmethod
    def from_env(cls) -> 'VaultConfig':
        """Create complete config from environment variables."""
        return cls(
            storage=StorageConfig.from_env(),
            backup=BackupConfig.from_env(),
            scheduler=SchedulerConfig.from_env(),
        )
