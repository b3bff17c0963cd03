"""Simple YAML configuration loader for dualrec."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'audio': {
        'sample_rate': 16000,
        'channels': 1,
        'bit_depth': 16,
        'chunk_size': 1024,
    },
    'recording': {
        'segment_duration_seconds': 60,
        'settle_delay_seconds': 2.0,
        'file_extension': 'wav',
    },
    'storage': {
        'data_directory': 'data/recordings',
    },
    'logging': {
        'level': 'INFO',
        'file_path': 'data/logs/dualrec.log',
        'console_output': True,
    },
}

# Environment variables that override config keys
ENV_OVERRIDES = {
    'AUDIO_SAMPLE_RATE': 'audio.sample_rate',
    'AUDIO_CHANNELS': 'audio.channels',
    'RECORDING_SEGMENT_DURATION': 'recording.segment_duration_seconds',
}


class RecordingConfig(BaseModel):
    """Static recording parameters handed to the session."""
    sample_rate: int = Field(16000, gt=0)
    channels: int = Field(1, gt=0)
    bit_depth: int = 16
    segment_duration_seconds: int = Field(60, gt=0)
    settle_delay_seconds: float = Field(2.0, ge=0)
    file_extension: str = 'wav'

    @field_validator('bit_depth')
    @classmethod
    def _check_bit_depth(cls, value: int) -> int:
        if value not in (8, 16, 24, 32):
            raise ValueError(f"bit_depth must be one of 8, 16, 24, 32 (got {value})")
        return value

    @field_validator('file_extension')
    @classmethod
    def _strip_dot(cls, value: str) -> str:
        value = value.lstrip('.')
        if not value:
            raise ValueError("file_extension must not be empty")
        return value


class DualRecConfig:
    """dualrec configuration loader."""

    def __init__(self, config_path: Optional[str] = None, use_env: bool = True):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used and relative paths resolve against the
                        current directory.
            use_env: Apply AUDIO_* / RECORDING_* environment overrides
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is not None and not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        self.config = self._load_config()
        if use_env:
            self._apply_env_overrides()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file on top of the defaults."""
        config = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self._resolve_paths(config, Path.cwd())
            return config

        logger.info(f"Loading configuration from: {self.config_file}")
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        _deep_merge(config, loaded)
        self._resolve_paths(config, self.config_file.parent)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any], base_dir: Path) -> None:
        """Resolve relative paths in configuration relative to base_dir."""
        # Resolve data directory
        if 'storage' in config and 'data_directory' in config['storage']:
            data_dir = config['storage']['data_directory']
            if not os.path.isabs(data_dir):
                config['storage']['data_directory'] = str(base_dir / data_dir)

        # Resolve log file path
        if 'logging' in config and config['logging'].get('file_path'):
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(base_dir / log_path)

    def _apply_env_overrides(self) -> None:
        for env_name, key_path in ENV_OVERRIDES.items():
            raw = os.environ.get(env_name)
            if raw is None or not raw.strip():
                continue
            try:
                value = int(raw.strip())
            except ValueError:
                logger.warning(f"Ignoring non-integer {env_name}={raw!r}")
                continue
            self.set(key_path, value)
            logger.info(f"Environment override {env_name} -> {key_path}={value}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'audio.sample_rate').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'audio.channels')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_data_directory(self) -> str:
        """Get recordings working directory path."""
        data_dir = self.get('storage.data_directory', 'data/recordings')
        return str(Path(data_dir).absolute())

    def get_recording_config(self) -> RecordingConfig:
        """Build the validated recording parameters.

        Raises:
            pydantic.ValidationError: if any parameter is out of range
        """
        return RecordingConfig(
            sample_rate=self.get('audio.sample_rate', 16000),
            channels=self.get('audio.channels', 1),
            bit_depth=self.get('audio.bit_depth', 16),
            segment_duration_seconds=self.get('recording.segment_duration_seconds', 60),
            settle_delay_seconds=self.get('recording.settle_delay_seconds', 2.0),
            file_extension=self.get('recording.file_extension', 'wav'),
        )


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
