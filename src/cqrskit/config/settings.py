"""Unified settings — init kwargs, env vars and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags or explicit overrides
  2. Env vars     — ``CQRSKIT_*`` prefix, ``__`` between nested keys
  3. TOML file    — ``cqrskit.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Definitions read their defaults through :func:`get_settings` at class
creation time, so settings must be in place before definitions are imported.
"""

from __future__ import annotations

import functools
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from cqrskit.config.discovery import find_config
from cqrskit.config.models import DefinitionsConfig, LoggingConfig
from cqrskit.domain.errors import CqrsError


class ConfigError(CqrsError):
    """A config file exists but cannot be parsed."""


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``cqrskit.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class CqrsSettings(BaseSettings):
    """Settings for definitions and logging, frozen after construction.

    Attributes:
        config_path: The TOML file the settings were read from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "CQRSKIT_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    definitions: DefinitionsConfig = Field(default_factory=DefinitionsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(cls, *, config_path: str | Path | None = None, **overrides: Any) -> CqrsSettings:
        """Discover ``cqrskit.toml`` (or use *config_path*) and build settings.

        *overrides* take precedence over every other source.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config()

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        verbose: bool = False,
        log_json: bool = False,
    ) -> CqrsSettings:
        """Construct settings from CLI flags; unset flags leave config values alone."""
        overrides: dict[str, Any] = {}
        logging_flags = {k: v for k, v in {"verbose": verbose, "log_json": log_json}.items() if v}
        if logging_flags:
            base = cls.load(config_path=config_path)
            overrides["logging"] = base.logging.model_copy(update=logging_flags)
        return cls.load(config_path=config_path, **overrides)


@functools.lru_cache(maxsize=1)
def get_settings() -> CqrsSettings:
    """Process-wide settings, built once on first use."""
    return CqrsSettings.load()


def reset_settings() -> None:
    """Drop cached settings so the next :func:`get_settings` rebuilds them."""
    get_settings.cache_clear()
