"""
Configuration management for ai_gallery.

Loads configuration from a YAML file and applies environment variable
overrides. Every setting has a default, so a missing file is not an error.

Example config.yaml:

    library:
      root: /data/gallery
    database:
      uri: sqlite:////data/gallery/gallery.db
    thumbnails:
      width: 600
      height: 400
      quality: 92
    logging:
      level: DEBUG
"""

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ai_gallery.models.metadata import ThumbnailPosition

logger = logging.getLogger(__name__)

# Third-party loggers capped at WARNING by setup_logging()
DEFAULT_QUIET_LOGGERS = ("PIL", "sqlalchemy")

CONFIG_SEARCH_PATHS = [
    Path("config.yaml"),
    Path.home() / ".config" / "ai-gallery" / "config.yaml",
]


@dataclass
class LibraryConfig:
    """Where uploaded media files are stored.

    Attributes:
        root: Library root directory
        images_dir: Subdirectory for images
        videos_dir: Subdirectory for videos
    """
    root: str = "gallery_data"
    images_dir: str = "images"
    videos_dir: str = "videos"

    @property
    def root_path(self) -> Path:
        return Path(self.root).expanduser()


@dataclass
class DatabaseConfig:
    """Database connection settings.

    Attributes:
        uri: SQLAlchemy URI. None means a SQLite file inside the library root.
        echo: Echo SQL statements (debugging)
    """
    uri: Optional[str] = None
    echo: bool = False


@dataclass
class ThumbnailConfig:
    """Thumbnail generation settings."""
    width: int = 600
    height: int = 400
    quality: int = 92
    fill_color: str = "#f8f9fa"
    default_x: int = 50
    default_y: int = 25

    @property
    def default_position(self) -> ThumbnailPosition:
        return ThumbnailPosition(self.default_x, self.default_y)


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    quiet_loggers: List[str] = field(default_factory=lambda: list(DEFAULT_QUIET_LOGGERS))


@dataclass
class Config:
    """Main configuration class."""
    library: LibraryConfig = field(default_factory=LibraryConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    thumbnails: ThumbnailConfig = field(default_factory=ThumbnailConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            library=LibraryConfig(**(data.get("library") or {})),
            database=DatabaseConfig(**(data.get("database") or {})),
            thumbnails=ThumbnailConfig(**(data.get("thumbnails") or {})),
            logging=LoggingConfig(**(data.get("logging") or {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None) -> "Config":
        """Load configuration from file.

        Args:
            config_path: Path to config file. If None, searches CONFIG_SEARCH_PATHS.

        Returns:
            Config instance with environment overrides applied

        Raises:
            FileNotFoundError: If an explicit config_path does not exist
        """
        if config_path:
            config_file: Optional[Path] = Path(config_path)
            if not config_file.exists():
                raise FileNotFoundError(f"Config file not found: {config_file}")
        else:
            config_file = next((path for path in CONFIG_SEARCH_PATHS if path.exists()), None)

        if config_file:
            logger.info("Loading config from %s", config_file)
            with open(config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            config = cls.from_dict(data)
        else:
            config = cls()

        config._apply_env_overrides()
        return config

    def _apply_env_overrides(self):
        """Apply environment variable overrides."""
        if env_uri := os.getenv("AI_GALLERY_DB_URI"):
            self.database.uri = env_uri

        if env_root := os.getenv("AI_GALLERY_ROOT"):
            self.library.root = env_root

        if env_level := os.getenv("AI_GALLERY_LOG_LEVEL"):
            self.logging.level = env_level

    @property
    def database_uri(self) -> str:
        """Configured URI, or a SQLite file inside the library root."""
        if self.database.uri:
            return self.database.uri
        return f"sqlite:///{self.library.root_path / 'gallery.db'}"


# Global configuration instance
_global_config: Optional[Config] = None


def get_config() -> Config:
    """Get global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = Config.load()
    return _global_config


def set_config(config: Optional[Config]):
    """Set (or with None, reset) the global configuration instance."""
    global _global_config
    _global_config = config
