"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, planclone.toml only contains
overrides. An empty (or missing) file yields a fully working configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- planclone.toml sections ---


class ClonerConfig(BaseModel):
    """[cloner] section."""

    model_config = {"frozen": True}

    strict_attributes: bool = True


class LoggingConfig(BaseModel):
    """[logging] section."""

    model_config = {"frozen": True}

    verbose: bool = False
    log_json: bool = False


class TelemetryConfig(BaseModel):
    """[telemetry] section."""

    model_config = {"frozen": True}

    enabled: bool = False
