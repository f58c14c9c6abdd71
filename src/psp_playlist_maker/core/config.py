"""
Configuration management for PSP Playlist Maker
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger


@dataclass
class MusicConfig:
    """Configuration for music library settings."""

    music_dir: str = "/MUSIC"
    supported_formats: List[str] = field(
        default_factory=lambda: [".mp3", ".flac", ".wav", ".m4a"]
    )
    scan_workers: Optional[int] = None  # None = ThreadPoolExecutor default


@dataclass
class DatabaseConfig:
    """Configuration for the track index database."""

    path: Optional[str] = None  # default: <data dir>/music_index.db
    escape_paths: bool = True  # store spaces as %20


@dataclass
class DeviceConfig:
    """Configuration for the target playback device."""

    marker_dir: str = "MUSIC"
    playlist_dir: Optional[str] = None  # default: <data dir>/playlists

    def validate(self) -> None:
        """Validate device configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        marker = self.marker_dir.strip()
        if not marker or "/" in marker or "\\" in marker:
            raise ValueError(
                f"Invalid marker_dir: {self.marker_dir!r}. "
                "Must be a single non-empty directory name"
            )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/psp-playlist-maker/psp-playlist-maker.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of backup files to keep
    console_output: bool = False  # Also output to console (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    music: MusicConfig = field(default_factory=MusicConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "psp-playlist-maker"
    return Path.home() / ".config" / "psp-playlist-maker"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            if config_path.exists():
                return config_path
            return None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/psp-playlist-maker (or ~/.config/psp-playlist-maker)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "psp-playlist-maker"
    return Path.home() / ".local" / "share" / "psp-playlist-maker"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# PSP Playlist Maker Configuration

[music]
# Root of the music tree to index (e.g. the PSP's MUSIC folder when mounted)
music_dir = "/MUSIC"

# Audio file extensions to index (matched case-insensitively)
supported_formats = [".mp3", ".flac", ".wav", ".m4a"]

# Number of parallel metadata workers (omit for automatic)
# scan_workers = 8

[database]
# Track index location (default: ~/.local/share/psp-playlist-maker/music_index.db)
# path = "/path/to/music_index.db"

# Store spaces in paths as %20
escape_paths = true

[device]
# Folder name that anchors device paths inside playlists
marker_dir = "MUSIC"

# Where exported playlists are written (default: ~/.local/share/psp-playlist-maker/playlists)
# playlist_dir = "/mnt/psp/PLAYLIST"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/psp-playlist-maker/psp-playlist-maker.log)
# log_file = "/path/to/custom/psp-playlist-maker.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - PSP_MUSIC_DIR
    - PSP_DATABASE_PATH
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is None:
        config_path = get_config_path()

    config = Config()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        logger.info(f"Created default configuration at: {config_path}")
        return _apply_env_overrides(config)

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Error loading config from {config_path}: {e}")
        logger.warning("Using default configuration.")
        return _apply_env_overrides(config)

    if "music" in toml_data:
        music_data = toml_data["music"]
        config.music = MusicConfig(
            music_dir=str(
                Path(music_data.get("music_dir", config.music.music_dir)).expanduser()
            ),
            supported_formats=[
                fmt.lower()
                for fmt in music_data.get(
                    "supported_formats", config.music.supported_formats
                )
            ],
            scan_workers=music_data.get("scan_workers", config.music.scan_workers),
        )

    if "database" in toml_data:
        database_data = toml_data["database"]
        db_path = database_data.get("path")
        if db_path:
            db_path = str(Path(db_path).expanduser())
        config.database = DatabaseConfig(
            path=db_path,
            escape_paths=database_data.get(
                "escape_paths", config.database.escape_paths
            ),
        )

    if "device" in toml_data:
        device_data = toml_data["device"]
        playlist_dir = device_data.get("playlist_dir")
        if playlist_dir:
            playlist_dir = str(Path(playlist_dir).expanduser())
        config.device = DeviceConfig(
            marker_dir=device_data.get("marker_dir", config.device.marker_dir),
            playlist_dir=playlist_dir,
        )
        try:
            config.device.validate()
        except ValueError as e:
            logger.warning(f"Invalid device configuration: {e}")
            logger.warning("Using default device configuration.")
            config.device = DeviceConfig()

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
            backup_count=logging_data.get(
                "backup_count", config.logging.backup_count
            ),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return _apply_env_overrides(config)


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides on top of file values."""
    music_dir = os.environ.get("PSP_MUSIC_DIR")
    if music_dir:
        config.music.music_dir = str(Path(music_dir).expanduser())

    db_path = os.environ.get("PSP_DATABASE_PATH")
    if db_path:
        config.database.path = str(Path(db_path).expanduser())

    return config

