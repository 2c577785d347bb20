# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/bootstrap/orchestrator.py

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..cluster.recorder import ClusterRecorder
from ..config.models import BootstrapConfig
from ..errors import BootstrapError
from ..k8s.client import core_v1_api
from ..kubelet.patcher import ConfigPatcher
from ..kubelet.probe import ConfigProbe
from ..observers.dispatcher import EventBus
from ..observers.events import (
    new_ctx,
    BootstrapStarted,
    BootstrapSkipped,
    BootstrapSummary,
    StageFailed,
    StageStarted,
    StageSucceeded,
)
from ..proxy.installer import ProxyInstaller
from ..proxy.readiness import socket_ready, wait_for_socket
from ..utils.serialize import LiveConfig

log = logging.getLogger("criboot")


@dataclass
class BootstrapState:
    live: Optional[LiveConfig] = None
    engine_endpoint: Optional[str] = None
    node_name: Optional[str] = None
    container_id: Optional[str] = None
    patched: bool = False           # kubelet config patched by this run
    config_patched: bool = False    # original saved and overrides applied
    repair: bool = False            # config already patched, proxy reinstalled
    detail: Optional[str] = None


# A stage returns False when there is nothing left to do.
Stage = Tuple[str, Callable[[BootstrapState], bool]]


class CriProxyBootstrap:
    """
    Points the kubelet at criproxy and makes sure the proxy container runs.

    Pipeline (each stage attempted once, first failure aborts):
      probe     -> read /configz
      patch     -> stop if already patched, else backup + override
      identity  -> read node name from /stats/summary
      record    -> create ConfigMap kube-system/kubelet-<node>
      install   -> recreate the criproxy container
      readiness -> wait for the proxy socket
    """

    def __init__(
        self,
        cfg: BootstrapConfig,
        *,
        probe: Optional[ConfigProbe] = None,
        patcher: Optional[ConfigPatcher] = None,
        recorder: Optional[ClusterRecorder] = None,
        installer: Optional[ProxyInstaller] = None,
        wait_for_proxy: Callable[..., None] = wait_for_socket,
        proxy_is_ready: Callable[[str], bool] = socket_ready,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ):
        self.cfg = cfg
        self.probe = probe or ConfigProbe(
            verify_tls=not cfg.insecure_skip_verify,
            timeout=cfg.http_timeout_seconds,
        )
        self._owns_probe = probe is None
        self.patcher = patcher or ConfigPatcher()
        self.recorder = recorder
        self.installer = installer or ProxyInstaller()
        self.wait_for_proxy = wait_for_proxy
        self.proxy_is_ready = proxy_is_ready
        self.bus = bus or EventBus()
        self.run_id = run_id or str(uuid.uuid4())
        self.node: Optional[str] = None

    def _ctx(self) -> dict:
        # fresh timestamp per event
        return new_ctx(node=self.node, run_id=self.run_id)

    # ------------------ stages ------------------

    def _cluster_client(self, state: BootstrapState) -> bool:
        if self.recorder is None:
            self.recorder = ClusterRecorder(core_v1_api(self.cfg.kubeconfig))
        return True

    def _probe(self, state: BootstrapState) -> bool:
        state.live = self.probe.fetch_live_config(self.cfg.configz_base_url)
        return True

    def _patch(self, state: BootstrapState) -> bool:
        result = self.patcher.patch(state.live, self.cfg.saved_config_path)
        if result is not None:
            state.patched = True
            state.config_patched = True
            state.engine_endpoint = result.engine_endpoint
            state.detail = f"docker endpoint {result.engine_endpoint}"
            return True

        if self.cfg.verify_proxy_when_patched and not self.proxy_is_ready(self.cfg.proxy_socket_path):
            log.warning(
                "Kubelet already patched but %s is not reachable, reinstalling criproxy",
                self.cfg.proxy_socket_path,
            )
            state.repair = True
            state.engine_endpoint = self.patcher.extract_engine_endpoint(state.live)
            state.detail = "already patched, proxy not reachable"
            return True

        self.bus.emit(BootstrapSkipped(reason="kubelet already configured for criproxy", **self._ctx()))
        state.detail = "already patched"
        return False

    def _identity(self, state: BootstrapState) -> bool:
        if state.repair:
            return True
        state.node_name = self.probe.fetch_node_identity(self.cfg.stats_base_url)
        self.node = state.node_name
        state.detail = state.node_name
        return True

    def _record(self, state: BootstrapState) -> bool:
        if state.repair:
            return True
        self.recorder.publish(state.node_name, state.live)
        return True

    def _install(self, state: BootstrapState) -> bool:
        state.container_id = self.installer.install(
            state.engine_endpoint,
            self.cfg.proxy_path,
            list(self.cfg.proxy_args),
        )
        state.detail = state.container_id
        return True

    def _readiness(self, state: BootstrapState) -> bool:
        self.wait_for_proxy(
            self.cfg.proxy_socket_path,
            timeout=self.cfg.readiness_timeout_seconds,
            interval=self.cfg.readiness_interval_seconds,
        )
        return True

    def stages(self) -> List[Stage]:
        return [
            ("cluster-client", self._cluster_client),
            ("probe", self._probe),
            ("patch", self._patch),
            ("identity", self._identity),
            ("record", self._record),
            ("install", self._install),
            ("readiness", self._readiness),
        ]

    # ------------------ pipeline ------------------

    def _run_stage(self, name: str, fn: Callable[[BootstrapState], bool], state: BootstrapState) -> bool:
        self.bus.emit(StageStarted(stage=name, **self._ctx()))
        log.info("[%s] starting", name)
        state.detail = None
        t0 = time.time()
        try:
            proceed = fn(state)
        except Exception as exc:
            if isinstance(exc, BootstrapError):
                exc.stage = exc.stage or name
                exc.config_patched = state.config_patched
            log.error("[%s] failed: %s", name, exc)
            self.bus.emit(
                StageFailed(stage=name, error=str(exc), config_patched=state.config_patched, **self._ctx())
            )
            raise
        duration_ms = int((time.time() - t0) * 1000)
        self.bus.emit(StageSucceeded(stage=name, duration_ms=duration_ms, detail=state.detail, **self._ctx()))
        log.info("[%s] done in %dms%s", name, duration_ms, f" ({state.detail})" if state.detail else "")
        return proceed

    def run(self) -> bool:
        """
        Returns True when this run patched the kubelet config and the proxy
        answered on its socket, False when the kubelet was already patched.
        Raises BootstrapError otherwise.
        """
        try:
            return self._run()
        finally:
            if self._owns_probe:
                self.probe.close()

    def _run(self) -> bool:
        self.cfg.validate_required()
        self.bus.emit(
            BootstrapStarted(
                configz_base_url=self.cfg.configz_base_url,
                proxy_socket_path=self.cfg.proxy_socket_path,
                **self._ctx(),
            )
        )

        state = BootstrapState()
        try:
            for name, fn in self.stages():
                if not self._run_stage(name, fn, state):
                    break
        except Exception as exc:
            self.bus.emit(BootstrapSummary(status="FAILED", patched=state.patched, error=str(exc), **self._ctx()))
            raise

        status = "PATCHED" if state.patched else "UNCHANGED"
        self.bus.emit(BootstrapSummary(status=status, patched=state.patched, **self._ctx()))
        return state.patched


def ensure_cri_proxy(cfg: BootstrapConfig, **components) -> bool:
    """
    Make sure the kubelet on this node talks to the container runtime via
    criproxy. See CriProxyBootstrap for the stages and *components* that
    can be injected.

    False  -> kubelet already configured, nothing done
    True   -> config saved and patched, recorded in the cluster, proxy started and ready
    raises -> BootstrapError; ``stage`` and ``config_patched`` tell how far it got
    """
    return CriProxyBootstrap(cfg, **components).run()
