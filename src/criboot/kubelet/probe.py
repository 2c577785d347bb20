# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/kubelet/probe.py

from __future__ import annotations

import logging
import warnings
from typing import Any, Optional

import requests
from urllib3.exceptions import InsecureRequestWarning

from ..errors import DecodeError, MissingFieldError, TransportError
from ..utils.serialize import LiveConfig, loads_live_config

log = logging.getLogger("criboot")

CONFIGZ_SUFFIX = "/configz"
STATS_SUMMARY_SUFFIX = "/stats/summary"


class ConfigProbe:
    """
    Read-only access to the kubelet introspection endpoints:
      - /configz        -> live kubelet configuration (componentconfig)
      - /stats/summary  -> node name

    TLS verification is off by default because both endpoints are served
    on loopback / the node's private network with self-signed certificates.
    Pass verify_tls=True to turn it back on. A session created here is
    closed by close() or on leaving a with-block; an injected one is left
    to its owner.
    """

    def __init__(
        self,
        *,
        verify_tls: bool = False,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.verify_tls = verify_tls
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "ConfigProbe":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -----------------------
    # HTTP helpers
    # -----------------------
    def _url(self, base_url: str, suffix: str) -> str:
        return base_url.rstrip("/") + suffix

    def _get_json(self, base_url: str, suffix: str) -> dict[str, Any]:
        url = self._url(base_url, suffix)
        log.debug("GET %s (verify_tls=%s)", url, self.verify_tls)
        try:
            with warnings.catch_warnings():
                if not self.verify_tls:
                    # verification is off on purpose
                    warnings.simplefilter("ignore", InsecureRequestWarning)
                r = self.session.get(url, verify=self.verify_tls, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"trying to get {url!r}: {exc}") from exc

        if r.status_code != 200:
            raise TransportError(f"trying to get {url!r}: HTTP {r.status_code} {r.text}")

        try:
            data = loads_live_config(r.content)
        except ValueError as exc:
            raise DecodeError(f"failed to unmarshal json from {url!r}: {exc}") from exc

        if not isinstance(data, dict):
            raise DecodeError(
                f"failed to unmarshal json from {url!r}: expected an object, got {type(data).__name__}"
            )
        return data

    # -----------------------
    # Public API
    # -----------------------
    def fetch_live_config(self, configz_base_url: str) -> LiveConfig:
        payload = self._get_json(configz_base_url, CONFIGZ_SUFFIX)
        kubelet_cfg = payload.get("componentconfig")
        if not isinstance(kubelet_cfg, dict):
            raise MissingFieldError(f"couldn't get componentconfig from {CONFIGZ_SUFFIX}")
        return kubelet_cfg

    def fetch_node_identity(self, stats_base_url: str) -> str:
        stats = self._get_json(stats_base_url, STATS_SUMMARY_SUFFIX)
        node = stats.get("node")
        if not isinstance(node, dict):
            raise MissingFieldError(f"couldn't get node properties from {STATS_SUMMARY_SUFFIX}")
        node_name = node.get("nodeName")
        if not isinstance(node_name, str) or not node_name:
            raise MissingFieldError(f"couldn't get node name via {STATS_SUMMARY_SUFFIX}")
        return node_name
