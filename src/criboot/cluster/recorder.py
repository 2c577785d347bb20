# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/cluster/recorder.py

from __future__ import annotations

import logging

from kubernetes import client
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from ..errors import PublishError
from ..utils.serialize import LiveConfig, dumps_live_config

log = logging.getLogger("criboot")

RECORD_NAMESPACE = "kube-system"
RECORD_DATA_KEY = "kubelet.config"


def record_name(node_name: str) -> str:
    return f"kubelet-{node_name}"


def build_config_map(node_name: str, kubelet_cfg: LiveConfig) -> client.V1ConfigMap:
    return client.V1ConfigMap(
        metadata=client.V1ObjectMeta(
            name=record_name(node_name),
            namespace=RECORD_NAMESPACE,
        ),
        data={RECORD_DATA_KEY: dumps_live_config(kubelet_cfg)},
    )


class ClusterRecorder:
    """
    Publishes the patched kubelet config as ConfigMap kube-system/kubelet-<node>.

    The record is create-only: an existing ConfigMap (AlreadyExists) is an
    error like any other, it is never updated in place.
    """

    def __init__(self, core_api: client.CoreV1Api, namespace: str = RECORD_NAMESPACE):
        self.core_api = core_api
        self.namespace = namespace

    def publish(self, node_name: str, kubelet_cfg: LiveConfig) -> client.V1ConfigMap:
        body = build_config_map(node_name, kubelet_cfg)
        body.metadata.namespace = self.namespace
        name = body.metadata.name
        try:
            created = self.core_api.create_namespaced_config_map(self.namespace, body)
        except ApiException as exc:
            raise PublishError(
                f"failed to put ConfigMap {self.namespace}/{name}: {exc.status} {exc.reason}"
            ) from exc
        except HTTPError as exc:
            raise PublishError(f"failed to put ConfigMap {self.namespace}/{name}: {exc}") from exc

        log.info("Created ConfigMap %s/%s", self.namespace, name)
        return created
