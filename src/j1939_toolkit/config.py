"""Harness configuration."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import J1939Error

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".j1939-toolkit" / "config.json"


class ConfigError(J1939Error):
    """The configuration file is unreadable or invalid."""


class HarnessConfig(BaseModel):
    """Settings for the bus and the step timing."""

    tool_address: int = Field(default=0xF9, ge=0, le=253, description="Source address of this tool")
    interface: str = Field(default="socketcan", description="python-can interface name")
    channel: Optional[str] = Field(default=None, description="python-can channel (can0, PCAN_USBBUS1, /dev/ttyACM0)")
    bitrate: int = Field(default=250000, gt=0, description="Bus bit rate")

    global_window: float = Field(default=1.25, gt=0, description="Seconds to collect global responses")
    ds_timeout: float = Field(default=0.22, gt=0, description="Seconds per destination specific attempt")
    ds_retries: int = Field(default=2, ge=0, description="Retries after a destination specific timeout")

    engine_running_rpm: float = Field(default=300.0, ge=0, description="Engine speed treated as running")
    poll_interval: float = Field(default=0.5, gt=0, description="Seconds between engine state polls")

    report_dir: Optional[Path] = Field(default=None, description="Directory for report files")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "HarnessConfig":
        """
        Load settings from a JSON file.

        A missing default file gives the defaults; a missing explicit file is
        an error.

        Raises:
            ConfigError: If the file cannot be read or fails validation
        """
        explicit = path is not None
        path = Path(path) if explicit else DEFAULT_CONFIG_PATH

        if not path.exists():
            if explicit:
                raise ConfigError(f"Config file not found: {path}")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = cls(**data)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not read {path}: {e}") from e
        except ValidationError as e:
            raise ConfigError(f"Invalid config {path}: {e}") from e

        logger.info(f"Loaded config from {path}")
        return config

    def with_overrides(self, **overrides: Any) -> "HarnessConfig":
        """
        Copy with the given values replaced; None values are ignored.

        Raises:
            ConfigError: If an override fails validation
        """
        values: Dict[str, Any] = self.model_dump()
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return HarnessConfig(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid option: {e}") from e

    def save(self, path: Optional[Path] = None) -> Path:
        path = Path(path) if path else DEFAULT_CONFIG_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)
        return path
