"""ClonerSettings — one frozen object built from every configuration source.

Priority chain (highest to lowest):
  1. Init kwargs  — overrides passed by the embedding application
  2. Env vars     — ``PLANCLONE_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``planclone.toml`` located by :mod:`planclone.config.discovery`
  4. Code defaults — baked into the section models

Pydantic Settings fixes the source signature, so the TOML path chosen by
:meth:`ClonerSettings.load` reaches :class:`TomlSettingsSource` through a
thread-local slot that is cleared as soon as construction finishes.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from planclone.config.discovery import ConfigFileError, find_config, read_toml
from planclone.config.models import ClonerConfig, LoggingConfig, TelemetryConfig

__all__ = ["ClonerSettings", "ConfigFileError", "TomlSettingsSource"]

_pending = threading.local()


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Section tables of one TOML file; an absent file contributes nothing."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._tables: dict[str, Any] = (
            read_toml(toml_path) if toml_path is not None and toml_path.is_file() else {}
        )

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._tables.get(field_name), field_name, field_name in self._tables

    def __call__(self) -> dict[str, Any]:
        return self._tables


class ClonerSettings(BaseSettings):
    """Settings for solution cloning, logging and telemetry.

    A :class:`SolutionCloner` reads it once at construction.

    Attributes:
        config_path: The TOML file the settings were read from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "PLANCLONE_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    cloner: ClonerConfig = Field(default_factory=ClonerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_source = TomlSettingsSource(settings_cls, getattr(_pending, "toml_path", None))
        return init_settings, env_settings, toml_source

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> ClonerSettings:
        """Build settings, discovering ``planclone.toml`` from *start* unless a path is given.

        An explicit *config_path* that does not exist leaves env vars and
        defaults in charge; discovery is not attempted.

        Raises:
            ConfigFileError: The TOML file exists but is not valid TOML.
        """
        if config_path:
            explicit = Path(config_path)
            toml_path = explicit if explicit.is_file() else None
        else:
            toml_path = find_config(start)

        _pending.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            del _pending.toml_path
