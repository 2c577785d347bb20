# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/k8s/client.py
from __future__ import annotations

import logging
from typing import Optional

from kubernetes import client, config

from ..errors import ClusterConfigError

log = logging.getLogger("criboot")


def core_v1_api(kubeconfig: Optional[str] = None, kube_context: Optional[str] = None) -> client.CoreV1Api:
    """
    Build a CoreV1Api.

    Args:
        kubeconfig: explicit kubeconfig file; when None, in-cluster service
                    account credentials are used
        kube_context: optional context inside *kubeconfig*
    """
    try:
        if kubeconfig:
            config.load_kube_config(config_file=kubeconfig, context=kube_context)
            log.debug("Loaded kubeconfig %s", kubeconfig)
        else:
            config.load_incluster_config()
            log.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException as exc:
        raise ClusterConfigError(f"failed to get REST client config: {exc}") from exc

    return client.CoreV1Api()
