"""
Configuration management for Muse
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class MusicConfig:
    """Configuration for music library settings."""

    library_paths: List[str] = field(
        default_factory=lambda: [str(Path.home() / "Music")]
    )
    supported_formats: List[str] = field(
        default_factory=lambda: [".mp3", ".flac", ".ogg", ".m4a", ".wav", ".opus"]
    )


@dataclass
class PlayerConfig:
    """Configuration for the mpv transport."""

    mpv_socket_path: Optional[str] = None
    volume: int = 50
    autostart: bool = True  # Launch an idle mpv when none answers on the socket


@dataclass
class QueueConfig:
    """Lengths and thresholds used by the queue strategies."""

    min_length: int = 9
    max_length: int = 27
    stream_length: int = 30
    sample_size: int = 10
    stream_min_connections: int = 3
    current_path_length: int = 4
    thread_path_length: int = 8
    pad_attempts: int = 50
    play_length: int = 50  # Songs queued by `muse play algorithm`

    def validate(self) -> None:
        """Validate queue configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.min_length < 1:
            raise ValueError(f"min_length must be >= 1, got {self.min_length}")
        if self.max_length < self.min_length:
            raise ValueError(
                f"max_length ({self.max_length}) must be >= min_length ({self.min_length})"
            )
        for name in ("stream_length", "sample_size", "play_length"):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        for name in (
            "stream_min_connections",
            "current_path_length",
            "thread_path_length",
            "pad_attempts",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")


@dataclass
class TrackerConfig:
    """Configuration for the behavior tracker."""

    poll_interval: float = 1.0  # Seconds between status observations
    listen_threshold: float = 0.8  # Played ratio above which a song counts as listened
    default_song_length: Optional[float] = 180.0  # Used when duration is unknown
    backoff_initial: float = 1.0
    backoff_max: float = 60.0
    degraded_after: int = 5  # Consecutive gateway failures before degraded mode
    replay_window: float = 3.0  # Same path back under this many seconds is a new play

    def validate(self) -> None:
        """Validate tracker configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not 0.0 < self.listen_threshold < 1.0:
            raise ValueError(
                f"listen_threshold must be between 0 and 1, got {self.listen_threshold}"
            )
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.backoff_initial <= 0 or self.backoff_max < self.backoff_initial:
            raise ValueError("backoff_initial must be positive and <= backoff_max")
        if self.degraded_after < 1:
            raise ValueError(f"degraded_after must be >= 1, got {self.degraded_after}")
        if self.replay_window <= 0:
            raise ValueError(f"replay_window must be positive, got {self.replay_window}")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Default: ~/.local/share/muse/muse.log
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_output: bool = False


@dataclass
class Config:
    """Main configuration object."""

    music: MusicConfig = field(default_factory=MusicConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "muse"
    return Path.home() / ".config" / "muse"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the current working directory first, then
    falls back to XDG_CONFIG_HOME/muse (or ~/.config/muse).
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "muse"
    return Path.home() / ".local" / "share" / "muse"


def get_default_socket_path() -> Path:
    """Get the default mpv IPC socket path."""
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
    if runtime_dir:
        return Path(runtime_dir) / "muse" / "mpv.sock"
    return get_data_dir() / "mpv.sock"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Muse Configuration

[music]
# Paths scanned by `muse update` when no path is given
library_paths = ["~/Music"]

# Supported audio file formats
supported_formats = [".mp3", ".flac", ".ogg", ".m4a", ".wav", ".opus"]


[player]
# Path for the mpv IPC socket (defaults to $XDG_RUNTIME_DIR/muse/mpv.sock)
# mpv_socket_path = "/tmp/muse-mpv.sock"

# Default volume (0-100)
volume = 50

# Start an idle mpv automatically when none is listening on the socket
autostart = true

[queue]
# Current/Thread queues are padded to min_length and cut at max_length
min_length = 9
max_length = 27

# Stream queues always have exactly this many songs
stream_length = 30

# Songs drawn per random pick
sample_size = 10

# Stream falls back to a random pick below this many connections
stream_min_connections = 3

current_path_length = 4
thread_path_length = 8

# Random picks tried while padding before giving up
pad_attempts = 50

# Top-scored songs queued by `muse play algorithm`
play_length = 50

[tracker]
# Seconds between playback observations
poll_interval = 1.0

# A song played past this fraction of its length counts as listened
listen_threshold = 0.8

# Length (seconds) assumed when the player reports no duration
default_song_length = 180.0

# Exponential backoff while the player is unreachable
backoff_initial = 1.0
backoff_max = 60.0

# Consecutive failures before the tracker reports degraded mode
degraded_after = 5

# A song restarting within this many seconds after playing further counts as a replay
replay_window = 3.0

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/muse/muse.log)
# log_file = "/path/to/custom/muse.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - MUSE_MPV_SOCKET
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
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return _apply_env_overrides(Config())

    return _apply_env_overrides(parse_config(toml_data))


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, falling back to defaults per field."""
    config = Config()

    if "music" in toml_data:
        music_data = toml_data["music"]
        config.music = MusicConfig(
            library_paths=[
                str(Path(p).expanduser())
                for p in music_data.get("library_paths", config.music.library_paths)
            ],
            supported_formats=[
                ext.lower()
                for ext in music_data.get(
                    "supported_formats", config.music.supported_formats
                )
            ],
        )

    if "player" in toml_data:
        player_data = toml_data["player"]
        socket_path = player_data.get("mpv_socket_path")
        config.player = PlayerConfig(
            mpv_socket_path=str(Path(socket_path).expanduser()) if socket_path else None,
            volume=player_data.get("volume", config.player.volume),
            autostart=player_data.get("autostart", config.player.autostart),
        )

    if "queue" in toml_data:
        queue_data = toml_data["queue"]
        defaults = QueueConfig()
        config.queue = QueueConfig(
            min_length=queue_data.get("min_length", defaults.min_length),
            max_length=queue_data.get("max_length", defaults.max_length),
            stream_length=queue_data.get("stream_length", defaults.stream_length),
            sample_size=queue_data.get("sample_size", defaults.sample_size),
            stream_min_connections=queue_data.get(
                "stream_min_connections", defaults.stream_min_connections
            ),
            current_path_length=queue_data.get(
                "current_path_length", defaults.current_path_length
            ),
            thread_path_length=queue_data.get(
                "thread_path_length", defaults.thread_path_length
            ),
            pad_attempts=queue_data.get("pad_attempts", defaults.pad_attempts),
            play_length=queue_data.get("play_length", defaults.play_length),
        )
        try:
            config.queue.validate()
        except ValueError as e:
            print(f"Warning: Invalid queue configuration: {e}")
            print("Using default queue configuration.")
            config.queue = QueueConfig()

    if "tracker" in toml_data:
        tracker_data = toml_data["tracker"]
        defaults = TrackerConfig()
        config.tracker = TrackerConfig(
            poll_interval=float(
                tracker_data.get("poll_interval", defaults.poll_interval)
            ),
            listen_threshold=float(
                tracker_data.get("listen_threshold", defaults.listen_threshold)
            ),
            default_song_length=tracker_data.get(
                "default_song_length", defaults.default_song_length
            ),
            backoff_initial=float(
                tracker_data.get("backoff_initial", defaults.backoff_initial)
            ),
            backoff_max=float(tracker_data.get("backoff_max", defaults.backoff_max)),
            degraded_after=tracker_data.get("degraded_after", defaults.degraded_after),
            replay_window=float(
                tracker_data.get("replay_window", defaults.replay_window)
            ),
        )
        try:
            config.tracker.validate()
        except ValueError as e:
            print(f"Warning: Invalid tracker configuration: {e}")
            print("Using default tracker configuration.")
            config.tracker = TrackerConfig()

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

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Override config values with environment variables if present."""
    socket_path = os.environ.get("MUSE_MPV_SOCKET")
    if socket_path:
        config.player.mpv_socket_path = socket_path
    return config


def get_socket_path(config: Config) -> Path:
    """Resolve the mpv socket path from config or the default location."""
    if config.player.mpv_socket_path:
        return Path(config.player.mpv_socket_path)
    return get_default_socket_path()


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
