"""Configuration loading: TOML file + environment variable overlay."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]


DEFAULT_CONFIG_DIR = Path.home() / ".config" / "agentsupervisor"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"


DEFAULT_CONFIG_TOML = """\
[mongodb]
uri = "mongodb://localhost:27017"
database = "agentsupervisor"

[store]
# "mongo" shares state across processes, "memory" is process-local
backend = "mongo"
collection = "coordination"

[supervisor]
loop_window = 10
loop_threshold = 3
gathering_threshold = 3
session_ttl = 3600
cancel_flag_ttl = 300
message_queue_ttl = 3600

[memory]
max_entries_per_context = 50
max_entries_to_include = 8
expiry_days = 90

[activity]
enabled = false
base_url = ""
token_env = "AGENTSUPERVISOR_ACTIVITY_TOKEN"
timeout = 10.0
"""


@dataclass
class MongoConfig:
    uri: str = "mongodb://localhost:27017"
    database: str = "agentsupervisor"


@dataclass
class StoreConfig:
    backend: str = "mongo"  # mongo, memory
    collection: str = "coordination"


@dataclass
class SupervisorConfig:
    loop_window: int = 10
    loop_threshold: int = 3
    gathering_threshold: int = 3
    session_ttl: int = 3600
    cancel_flag_ttl: int = 300
    message_queue_ttl: int = 3600


@dataclass
class MemoryConfig:
    max_entries_per_context: int = 50
    max_entries_to_include: int = 8
    expiry_days: int = 90


@dataclass
class ActivityConfig:
    enabled: bool = False
    base_url: str = ""
    token_env: str = "AGENTSUPERVISOR_ACTIVITY_TOKEN"
    token: str = ""
    timeout: float = 10.0


@dataclass
class AppConfig:
    mongodb: MongoConfig = field(default_factory=MongoConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    activity: ActivityConfig = field(default_factory=ActivityConfig)
    config_path: Path = DEFAULT_CONFIG_PATH


def _env_overlay(config: AppConfig) -> None:
    """Override config values with environment variables where applicable."""
    # MongoDB
    if uri := os.environ.get("MONGODB_URI"):
        config.mongodb.uri = uri
    if db := os.environ.get("AGENTSUPERVISOR_DB"):
        config.mongodb.database = db

    if backend := os.environ.get("AGENTSUPERVISOR_STORE"):
        config.store.backend = backend

    if url := os.environ.get("AGENTSUPERVISOR_ACTIVITY_URL"):
        config.activity.base_url = url
        config.activity.enabled = True

    # Resolve activity token from env var
    if config.activity.token_env:
        config.activity.token = os.environ.get(config.activity.token_env, "")


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file with env var overlay."""
    path = config_path or DEFAULT_CONFIG_PATH

    if path.exists():
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    else:
        raw = tomllib.loads(DEFAULT_CONFIG_TOML)

    mongo_raw = raw.get("mongodb", {})
    store_raw = raw.get("store", {})
    supervisor_raw = raw.get("supervisor", {})
    memory_raw = raw.get("memory", {})
    activity_raw = raw.get("activity", {})

    config = AppConfig(
        mongodb=MongoConfig(
            uri=mongo_raw.get("uri", "mongodb://localhost:27017"),
            database=mongo_raw.get("database", "agentsupervisor"),
        ),
        store=StoreConfig(
            backend=store_raw.get("backend", "mongo"),
            collection=store_raw.get("collection", "coordination"),
        ),
        supervisor=SupervisorConfig(
            loop_window=supervisor_raw.get("loop_window", 10),
            loop_threshold=supervisor_raw.get("loop_threshold", 3),
            gathering_threshold=supervisor_raw.get("gathering_threshold", 3),
            session_ttl=supervisor_raw.get("session_ttl", 3600),
            cancel_flag_ttl=supervisor_raw.get("cancel_flag_ttl", 300),
            message_queue_ttl=supervisor_raw.get("message_queue_ttl", 3600),
        ),
        memory=MemoryConfig(
            max_entries_per_context=memory_raw.get("max_entries_per_context", 50),
            max_entries_to_include=memory_raw.get("max_entries_to_include", 8),
            expiry_days=memory_raw.get("expiry_days", 90),
        ),
        activity=ActivityConfig(
            enabled=activity_raw.get("enabled", False),
            base_url=activity_raw.get("base_url", ""),
            token_env=activity_raw.get("token_env", "AGENTSUPERVISOR_ACTIVITY_TOKEN"),
            timeout=activity_raw.get("timeout", 10.0),
        ),
        config_path=path,
    )

    _env_overlay(config)
    return config


def init_config(config_path: Path | None = None) -> Path:
    """Create default config file."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TOML)
    return path
