"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``cqrskit.toml`` only contains
overrides.
"""

from __future__ import annotations

from pydantic import BaseModel


class DefinitionsConfig(BaseModel):
    """[definitions] section."""

    model_config = {"frozen": True}

    require_all_fields: bool = True
    default_event_values: bool = True


class LoggingConfig(BaseModel):
    """[logging] section."""

    model_config = {"frozen": True}

    verbose: bool = False
    log_json: bool = False
