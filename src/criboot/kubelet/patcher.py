# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/kubelet/patcher.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..errors import MissingFieldError, PersistenceError
from ..utils.serialize import LiveConfig, dumps_live_config, json_equal

log = logging.getLogger("criboot")

PROXY_RUNTIME_ENDPOINT = "/run/criproxy.sock"
DOCKER_ENDPOINT_KEY = "dockerEndpoint"
BACKUP_FILE_MODE = 0o600

DESIRED_OVERRIDES: Mapping[str, Any] = MappingProxyType({
    "containerRuntime": "remote",
    "enableCRI": True,
    "remoteRuntimeEndpoint": PROXY_RUNTIME_ENDPOINT,
    "remoteImageEndpoint": PROXY_RUNTIME_ENDPOINT,
})


@dataclass
class PatchResult:
    config: LiveConfig          # mutated in place, overrides applied
    engine_endpoint: str


class ConfigPatcher:
    """
    Decides whether the kubelet must be pointed at criproxy and, if so,
    backs up the original config before rewriting it in memory.
    """

    def __init__(self, overrides: Mapping[str, Any] = DESIRED_OVERRIDES):
        self.overrides = overrides

    def is_already_patched(self, live: LiveConfig) -> bool:
        for key, value in self.overrides.items():
            if key not in live or not json_equal(live[key], value):
                return False
        return True

    def apply_overrides(self, live: LiveConfig) -> None:
        for key, value in self.overrides.items():
            live[key] = value

    def extract_engine_endpoint(self, live: LiveConfig) -> str:
        endpoint = live.get(DOCKER_ENDPOINT_KEY)
        if not isinstance(endpoint, str):
            raise MissingFieldError("failed to retrieve docker endpoint from kubelet config")
        return endpoint

    def write_backup(self, live: LiveConfig, path: str) -> None:
        try:
            text = dumps_live_config(live)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"failed to marshal json: {exc}") from exc

        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, BACKUP_FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            # O_CREAT mode is ignored for pre-existing files
            os.chmod(path, BACKUP_FILE_MODE)
        except OSError as exc:
            raise PersistenceError(f"error writing {path!r}: {exc}") from exc
        log.info("Saved original kubelet config to %s", path)

    def patch(self, live: LiveConfig, saved_config_path: str) -> Optional[PatchResult]:
        """
        Returns None when the kubelet already uses criproxy (nothing written).

        Otherwise the unmodified config is persisted first, then overridden
        and the docker endpoint extracted. A failed backup leaves *live*
        untouched.
        """
        if self.is_already_patched(live):
            log.info("Kubelet config already points at criproxy")
            return None

        self.write_backup(live, saved_config_path)
        self.apply_overrides(live)
        return PatchResult(config=live, engine_endpoint=self.extract_engine_endpoint(live))
