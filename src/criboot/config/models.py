# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/config/models.py

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..errors import InvalidConfigError

DEFAULT_READINESS_TIMEOUT_SECONDS = 5.0
DEFAULT_READINESS_INTERVAL_SECONDS = 0.25

REQUIRED_FIELDS = (
    "configz_base_url",
    "stats_base_url",
    "proxy_path",
    "proxy_socket_path",
)


class BootstrapConfig(BaseModel):
    """Input of a single bootstrap run. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    configz_base_url: str = ""              # kubelet base URL serving /configz
    stats_base_url: str = ""                # kubelet base URL serving /stats/summary
    saved_config_path: str = ""             # where the pre-patch kubelet config is written
    proxy_path: str = ""                    # host path of the criproxy binary
    proxy_args: List[str] = Field(default_factory=list)
    proxy_socket_path: str = ""             # socket the proxy must eventually expose

    # kubelet endpoints are loopback / trusted network only
    insecure_skip_verify: bool = True
    http_timeout_seconds: float = 30.0

    readiness_timeout_seconds: float = DEFAULT_READINESS_TIMEOUT_SECONDS
    readiness_interval_seconds: float = DEFAULT_READINESS_INTERVAL_SECONDS

    kubeconfig: Optional[str] = None        # None -> in-cluster credentials
    verify_proxy_when_patched: bool = False

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    def validate_required(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise InvalidConfigError(
                f"invalid BootstrapConfig: empty {', '.join(missing)}"
            )
