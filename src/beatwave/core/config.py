"""
Configuration management for BeatWave
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class StoreConfig:
    """Configuration for the remote document store."""

    backend: str = "github"  # 'github' or 'memory'
    owner: str = "ROBA12551"
    repo: str = "soundwave-tracks"
    branch: str = "main"
    token: str = ""
    api_url: str = "https://api.github.com"
    request_timeout: float = 15.0
    max_write_attempts: int = 3

    def validate(self) -> None:
        """Validate store configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        valid_backends = {"github", "memory"}
        if self.backend not in valid_backends:
            raise ValueError(
                f"Invalid store backend: {self.backend!r}. "
                f"Valid backends are: {valid_backends}"
            )
        if self.max_write_attempts < 1:
            raise ValueError("max_write_attempts must be at least 1")


@dataclass
class ClientConfig:
    """Configuration for the client-side sync layer."""

    api_base: str = "http://localhost:8000/api"
    fetch_timeout_seconds: float = 10.0
    cache_ttl_seconds: int = 300  # 5 minutes
    device_id: Optional[str] = None  # Generated and persisted on first run


@dataclass
class CatalogConfig:
    """Sizes of the home page projections."""

    recent_limit: int = 10
    recommended_limit: int = 8
    uploaded_limit: int = 8
    trending_limit: int = 20
    search_limit: int = 20


@dataclass
class StatsConfig:
    """Configuration for play statistics."""

    play_log_retention_days: int = 30
    history_limit: int = 100
    profile_stats_max_age_seconds: int = 3600


@dataclass
class PlayerConfig:
    """Configuration for audio playback."""

    mpv_socket_path: Optional[str] = None
    volume: int = 80


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/beatwave/beatwave.log)
    )
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_output: bool = False


@dataclass
class Config:
    """Main configuration object."""

    store: StoreConfig = field(default_factory=StoreConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "beatwave"
    return Path.home() / ".config" / "beatwave"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Current working directory
    2. XDG_CONFIG_HOME/beatwave (or ~/.config/beatwave)
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config
    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "beatwave"
    return Path.home() / ".local" / "share" / "beatwave"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# BeatWave Configuration

[store]
# Document store backend: "github" (Contents API) or "memory" (demo/testing)
backend = "github"
owner = "ROBA12551"
repo = "soundwave-tracks"
branch = "main"

# Token is read from GITHUB_TOKEN (environment or .env in the config directory)
# token = "ghp_..."

# Attempts per optimistic read-modify-write before giving up
max_write_attempts = 3

[client]
# Base URL of the BeatWave HTTP API
api_base = "http://localhost:8000/api"

# Catalog fetch timeout in seconds (falls back to stale cache, then demo tracks)
fetch_timeout_seconds = 10

# How long a cached catalog stays fresh
cache_ttl_seconds = 300

[catalog]
recent_limit = 10
recommended_limit = 8
uploaded_limit = 8
trending_limit = 20
search_limit = 20

[stats]
# Server-side play log entries older than this are pruned
play_log_retention_days = 30

# Local play history length
history_limit = 100

# Profile statistics snapshot is recomputed once older than this
profile_stats_max_age_seconds = 3600

[player]
volume = 80

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of rotated log files to keep
backup_count = 5

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def _apply_env_overrides(config: Config) -> None:
    """Environment variables win over TOML values for secrets and endpoints."""
    config.store.token = os.environ.get("GITHUB_TOKEN", config.store.token)
    config.store.owner = os.environ.get("GITHUB_OWNER", config.store.owner)
    config.store.repo = os.environ.get("GITHUB_REPO", config.store.repo)
    config.store.branch = os.environ.get("GITHUB_BRANCH", config.store.branch)
    config.store.backend = os.environ.get("BEATWAVE_STORE", config.store.backend)
    config.client.api_base = os.environ.get(
        "BEATWAVE_API_BASE", config.client.api_base
    )


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, falling back to defaults per key."""
    config = Config()

    if "store" in toml_data:
        store_data = toml_data["store"]
        config.store = StoreConfig(
            backend=store_data.get("backend", config.store.backend),
            owner=store_data.get("owner", config.store.owner),
            repo=store_data.get("repo", config.store.repo),
            branch=store_data.get("branch", config.store.branch),
            token=store_data.get("token", config.store.token),
            api_url=store_data.get("api_url", config.store.api_url),
            request_timeout=store_data.get(
                "request_timeout", config.store.request_timeout
            ),
            max_write_attempts=store_data.get(
                "max_write_attempts", config.store.max_write_attempts
            ),
        )
        try:
            config.store.validate()
        except ValueError as e:
            print(f"Warning: Invalid store configuration: {e}")
            print("Using default store configuration.")
            config.store = StoreConfig()

    if "client" in toml_data:
        client_data = toml_data["client"]
        config.client = ClientConfig(
            api_base=client_data.get("api_base", config.client.api_base),
            fetch_timeout_seconds=client_data.get(
                "fetch_timeout_seconds", config.client.fetch_timeout_seconds
            ),
            cache_ttl_seconds=client_data.get(
                "cache_ttl_seconds", config.client.cache_ttl_seconds
            ),
            device_id=client_data.get("device_id"),
        )

    if "catalog" in toml_data:
        catalog_data = toml_data["catalog"]
        config.catalog = CatalogConfig(
            recent_limit=catalog_data.get("recent_limit", config.catalog.recent_limit),
            recommended_limit=catalog_data.get(
                "recommended_limit", config.catalog.recommended_limit
            ),
            uploaded_limit=catalog_data.get(
                "uploaded_limit", config.catalog.uploaded_limit
            ),
            trending_limit=catalog_data.get(
                "trending_limit", config.catalog.trending_limit
            ),
            search_limit=catalog_data.get("search_limit", config.catalog.search_limit),
        )

    if "stats" in toml_data:
        stats_data = toml_data["stats"]
        config.stats = StatsConfig(
            play_log_retention_days=stats_data.get(
                "play_log_retention_days", config.stats.play_log_retention_days
            ),
            history_limit=stats_data.get("history_limit", config.stats.history_limit),
            profile_stats_max_age_seconds=stats_data.get(
                "profile_stats_max_age_seconds",
                config.stats.profile_stats_max_age_seconds,
            ),
        )

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_socket_path=player_data.get("mpv_socket_path"),
            volume=player_data.get("volume", config.player.volume),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get("backup_count", config.logging.backup_count),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO, GITHUB_BRANCH
    - BEATWAVE_STORE, BEATWAVE_API_BASE
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        config = Config()
        _apply_env_overrides(config)
        return config

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
        config = parse_config(toml_data)
    except (tomllib.TOMLDecodeError, OSError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        config = Config()

    _apply_env_overrides(config)
    return config


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
