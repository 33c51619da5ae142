"""Configuration module for the library mirror.

Builds an immutable configuration from an optional TOML file and
command-line overrides.
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from errors import ConfigError

logger = logging.getLogger(__name__)

SUPPORTED_CODECS = ("aac", "opus")
DEFAULT_BITRATE = 192
OPUS_BITRATE = 160
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class PathsConfig:
    """Path configuration."""
    src_dir: Path
    dest_dir: Path
    qaac_bin: str = "qaac64"
    opusenc_bin: str = "opusenc"

    def __post_init__(self):
        if not self.src_dir or not self.dest_dir:
            raise ConfigError("Both source and destination directories should be specified.")
        object.__setattr__(self, "src_dir", Path(self.src_dir).expanduser().resolve())
        object.__setattr__(self, "dest_dir", Path(self.dest_dir).expanduser().resolve())


@dataclass(frozen=True)
class EncodingConfig:
    """Encoding configuration.

    Opus always runs at a fixed bitrate; any requested value is replaced.
    """
    codec: str = "aac"
    bitrate: Optional[int] = None

    def __post_init__(self):
        codec = str(self.codec).lower()
        if codec not in SUPPORTED_CODECS:
            raise ConfigError(
                f"Unsupported codec: {self.codec} (expected one of {', '.join(SUPPORTED_CODECS)})"
            )
        object.__setattr__(self, "codec", codec)
        if codec == "opus":
            if self.bitrate is not None and self.bitrate != OPUS_BITRATE:
                logger.warning(f"Opus bitrate is fixed at {OPUS_BITRATE}, ignoring {self.bitrate}")
            object.__setattr__(self, "bitrate", OPUS_BITRATE)
        elif self.bitrate is None:
            object.__setattr__(self, "bitrate", DEFAULT_BITRATE)
        elif self.bitrate < 1:
            raise ConfigError("bitrate must be >= 1")

    @property
    def output_ext(self) -> str:
        return ".m4a" if self.codec == "aac" else ".opus"


@dataclass(frozen=True)
class CoverConfig:
    """Cover thumbnail configuration."""
    enabled: bool = True
    size: int = 320
    jpeg_quality: int = 90

    def __post_init__(self):
        if self.size < 1:
            raise ConfigError("cover size must be >= 1")
        if not 1 <= self.jpeg_quality <= 95:
            raise ConfigError("jpeg_quality must be between 1 and 95")


@dataclass(frozen=True)
class ProcessingConfig:
    """Processing configuration."""
    workers: int = 5
    queue_size: Optional[int] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.workers < 1:
            raise ConfigError("workers must be >= 1")
        if self.queue_size is None:
            object.__setattr__(self, "queue_size", self.workers)
        elif self.queue_size < 1:
            raise ConfigError("queue_size must be >= 1")
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ConfigError("log_level must be DEBUG, INFO, WARNING, or ERROR")
        object.__setattr__(self, "log_level", str(self.log_level).upper())


@dataclass(frozen=True)
class Config:
    """Main configuration object."""
    paths: PathsConfig
    encoding: EncodingConfig = field(default_factory=EncodingConfig)
    cover: CoverConfig = field(default_factory=CoverConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """Read a TOML configuration file into a plain dictionary.

    Raises:
        ConfigError: If the file is missing or is not valid TOML
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid configuration file {config_path}: {e}") from e


def build_config(data: Optional[Dict[str, Any]] = None, **overrides: Any) -> Config:
    """Build a validated Config.

    Args:
        data: Parsed TOML data with [paths], [encoding], [cover] and
            [processing] tables
        **overrides: Flat keyword overrides (src_dir, dest_dir, qaac_bin,
            opusenc_bin, codec, bitrate, workers, queue_size, log_level).
            None values are ignored.

    Returns:
        Validated, immutable Config object

    Raises:
        ConfigError: If configuration is invalid
    """
    data = data or {}
    sections = {
        'paths': dict(data.get('paths', {})),
        'encoding': dict(data.get('encoding', {})),
        'cover': dict(data.get('cover', {})),
        'processing': dict(data.get('processing', {})),
    }
    owners = {
        'src_dir': 'paths', 'dest_dir': 'paths', 'qaac_bin': 'paths', 'opusenc_bin': 'paths',
        'codec': 'encoding', 'bitrate': 'encoding',
        'workers': 'processing', 'queue_size': 'processing', 'log_level': 'processing',
    }
    for key, value in overrides.items():
        if key not in owners:
            raise ConfigError(f"Unknown configuration option: {key}")
        if value is not None:
            sections[owners[key]][key] = value

    paths = sections['paths']
    if not paths.get('src_dir') or not paths.get('dest_dir'):
        raise ConfigError("Both source and destination directories should be specified.")

    try:
        return Config(
            paths=PathsConfig(**paths),
            encoding=EncodingConfig(**sections['encoding']),
            cover=CoverConfig(**sections['cover']),
            processing=ProcessingConfig(**sections['processing']),
        )
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
