# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/config/loader.py

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from .models import BootstrapConfig

log = logging.getLogger("criboot")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def load_config(path: Optional[str | Path] = None, overrides: Optional[dict] = None) -> BootstrapConfig:
    """
    Load a BootstrapConfig.

    The YAML file is optional; ``${ENV_VAR}`` placeholders inside it are
    resolved at load time. *overrides* (typically CLI flags) are deep-merged
    on top, skipping empty values, before pydantic validation.

    Required fields are not checked here: the orchestrator calls
    ``validate_required()`` so a partially filled file can still be loaded
    and completed from the command line.
    """
    data: dict = {}
    if path is not None:
        path = Path(path)
        log.debug("Loading bootstrap config from %s", path)
        data = _load_yaml(path)

    if overrides:
        _deep_merge(data, overrides)

    return BootstrapConfig.model_validate(data)
