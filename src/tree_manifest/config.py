"""
config.py - Plugin options and environment settings

``PluginOptions`` models the option bag handed to the plugin by the host's
static configuration. Keys other than ``dir``, ``path``, ``enhance`` and
``watch`` are kept as extras and forwarded verbatim to the scanner.

``Settings`` holds process-level knobs read from ``TREE_MANIFEST_*``
environment variables (or a local ``.env`` file).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tree_manifest.errors import ConfigurationError

NamingStrategy = Literal["underline", "mirror"]


class WatchConfiguration(BaseModel):
    """Where and how watched files are mirrored."""

    model_config = ConfigDict(frozen=True)

    dir: str
    filename: NamingStrategy = "mirror"
    sep: str = Field(default="__", min_length=1)

    @property
    def target_directory(self) -> str:
        return self.dir

    @property
    def naming_strategy(self) -> NamingStrategy:
        return self.filename


class PluginOptions(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    dir: Union[str, List[str]]
    path: str
    enhance: Optional[Callable[..., Any]] = None
    watch: Optional[WatchConfiguration] = None

    @field_validator("dir")
    @classmethod
    def _dir_not_empty(cls, value: Union[str, List[str]]) -> Union[str, List[str]]:
        if isinstance(value, list) and not value:
            raise ValueError("at least one directory is required")
        if isinstance(value, str) and not value:
            raise ValueError("directory must not be empty")
        return value

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "PluginOptions":
        """Validate a raw option mapping, raising :class:`ConfigurationError`."""
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid plugin options: {e}") from e

    def scan_options(self) -> dict[str, Any]:
        """Return a fresh copy of the options forwarded to the scanner."""
        return dict(self.model_extra or {})

    def top_level(self) -> dict[str, Any]:
        """Return a fresh copy of the plugin's own options."""
        return {
            "dir": self.dir,
            "path": self.path,
            "enhance": self.enhance,
            "watch": self.watch,
        }


class Settings(BaseSettings):
    """Process settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TREE_MANIFEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    # Upper bound on concurrent mirror copies per cycle
    mirror_workers: int = Field(default=4, ge=1)


settings = Settings()
