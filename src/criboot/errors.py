# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/errors.py
from __future__ import annotations

from typing import Optional


class BootstrapError(RuntimeError):
    """
    Base class for every failure of the CRI proxy bootstrap.

    stage:          pipeline stage that raised (set by the orchestrator)
    config_patched: True once the original kubelet config was saved and the
                    criproxy overrides applied
    """

    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage
        self.config_patched = False


class InvalidConfigError(BootstrapError):
    """Raised when BootstrapConfig is missing a required field."""


class ClusterConfigError(BootstrapError):
    """Raised when no in-cluster or kubeconfig credentials can be loaded."""


# -----------------------
# Kubelet introspection
# -----------------------
class TransportError(BootstrapError):
    """HTTP request to a kubelet endpoint could not be completed."""


class DecodeError(BootstrapError):
    """Payload was not a JSON object or could not be decoded."""


class MissingFieldError(BootstrapError):
    """A required field was absent, empty or of the wrong type."""


class PersistenceError(BootstrapError):
    """Backup of the original kubelet config could not be written."""


# -----------------------
# Cluster
# -----------------------
class PublishError(BootstrapError):
    """Creating the kubelet ConfigMap failed."""


# -----------------------
# Container engine
# -----------------------
class EngineUnreachableError(BootstrapError):
    pass


class ContainerRemoveError(BootstrapError):
    pass


class ImagePullError(BootstrapError):
    pass


class ContainerCreateError(BootstrapError):
    pass


class ContainerStartError(BootstrapError):
    pass


class ReadinessTimeoutError(BootstrapError, TimeoutError):
    """The proxy socket did not become reachable in time."""
