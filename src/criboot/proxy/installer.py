# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/proxy/installer.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import docker
import requests
from docker.errors import DockerException, StreamParseError

from ..errors import (
    ContainerCreateError,
    ContainerRemoveError,
    ContainerStartError,
    EngineUnreachableError,
    ImagePullError,
)

log = logging.getLogger("criboot")

HELPER_IMAGE = "busybox:1.26.2"
PROXY_LABEL = "criproxy"
PROXY_IN_CONTAINER_PATH = "/criproxy"
INTERNAL_DOCKER_ENDPOINT = "/var/run/docker.sock"
UNIX_SCHEME = "unix://"

_ENGINE_ERRORS = (DockerException, requests.RequestException)


@dataclass
class ProxyContainerSpec:
    image: str
    name: str
    command: List[str]
    environment: List[str]
    binds: List[str]
    labels: Dict[str, str] = field(default_factory=lambda: {PROXY_LABEL: "true"})
    network_mode: str = "host"
    restart_policy: Dict[str, str] = field(default_factory=lambda: {"Name": "always"})

    def create_kwargs(self) -> Dict[str, Any]:
        return {
            "image": self.image,
            "name": self.name,
            "command": self.command,
            "environment": self.environment,
            "volumes": self.binds,
            "labels": self.labels,
            # the proxy must reach a docker endpoint on localhost, too
            "network_mode": self.network_mode,
            "restart_policy": self.restart_policy,
        }


def container_name() -> str:
    return f"criproxy-{time.time_ns()}"


def build_container_spec(
    engine_endpoint: str,
    proxy_path: str,
    args: List[str],
    *,
    name: Optional[str] = None,
    image: str = HELPER_IMAGE,
) -> ProxyContainerSpec:
    """
    Compute the supervisory container for criproxy.

    A unix:// docker endpoint lives outside the container's mount namespace,
    so the host socket is bind-mounted at a fixed path and DOCKER_HOST is
    rewritten to point at it.
    """
    binds = [
        "/run:/run",
        f"{proxy_path}:{PROXY_IN_CONTAINER_PATH}",
    ]
    endpoint_to_pass = engine_endpoint
    if engine_endpoint.startswith(UNIX_SCHEME):
        socket_path = engine_endpoint[len(UNIX_SCHEME):]
        binds.append(f"{socket_path}:{INTERNAL_DOCKER_ENDPOINT}")
        endpoint_to_pass = UNIX_SCHEME + INTERNAL_DOCKER_ENDPOINT

    return ProxyContainerSpec(
        image=image,
        name=name or container_name(),
        command=[PROXY_IN_CONTAINER_PATH, *args],
        environment=[f"DOCKER_HOST={endpoint_to_pass}"],
        binds=binds,
    )


class ProxyInstaller:
    """
    Destroy-and-recreate installer for the criproxy container:
      1. connect to docker
      2. force-remove every container labelled criproxy
      3. pull the helper image
      4. create + start a fresh container
    Every step is attempted once.
    """

    def __init__(
        self,
        *,
        client_factory: Callable[..., Any] = docker.DockerClient,
        image: str = HELPER_IMAGE,
        log_progress: bool = True,
    ):
        self.client_factory = client_factory
        self.image = image
        self.log_progress = log_progress

    # ------------------ steps ------------------

    def _connect(self, engine_endpoint: str):
        try:
            client = self.client_factory(base_url=engine_endpoint)
            client.ping()
        except _ENGINE_ERRORS as exc:
            raise EngineUnreachableError(
                f"failed to create Docker client for {engine_endpoint!r}: {exc}"
            ) from exc
        return client

    def remove_stale(self, client) -> int:
        try:
            containers = client.containers.list(all=True, filters={"label": PROXY_LABEL})
        except _ENGINE_ERRORS as exc:
            raise ContainerRemoveError(f"failed to list old containers: {exc}") from exc

        for container in containers:
            log.info("Removing old criproxy container %s", container.id)
            try:
                container.remove(force=True)
            except _ENGINE_ERRORS as exc:
                raise ContainerRemoveError(
                    f"failed to remove old container {container.id}: {exc}"
                ) from exc
        return len(containers)

    def pull_image(self, client) -> None:
        try:
            for msg in client.api.pull(self.image, stream=True, decode=True):
                if msg.get("error"):
                    raise ImagePullError(f"failed to pull {self.image}: {msg['error']}")
                status = msg.get("status")
                if self.log_progress and status:
                    log.debug("[pull %s] %s %s", self.image, status, msg.get("progress", ""))
        except (ValueError, StreamParseError) as exc:
            raise ImagePullError(f"error decoding docker message: {exc}") from exc
        except _ENGINE_ERRORS as exc:
            raise ImagePullError(f"failed to pull {self.image}: {exc}") from exc

    def _start(self, container) -> None:
        try:
            container.start()
        except _ENGINE_ERRORS as exc:
            try:
                container.remove(force=True)
            except _ENGINE_ERRORS as rm_exc:
                log.warning("Failed to remove unstarted container %s: %s", container.id, rm_exc)
            raise ContainerStartError(
                f"failed to start CRI proxy container {container.id}: {exc}"
            ) from exc

    # ------------------ public API ------------------

    def install(self, engine_endpoint: str, proxy_path: str, args: List[str]) -> str:
        """Returns the id of the started container."""
        client = self._connect(engine_endpoint)

        removed = self.remove_stale(client)
        log.debug("Removed %d stale criproxy container(s)", removed)

        self.pull_image(client)

        spec = build_container_spec(engine_endpoint, proxy_path, args, image=self.image)
        try:
            container = client.containers.create(**spec.create_kwargs())
        except _ENGINE_ERRORS as exc:
            raise ContainerCreateError(f"failed to create CRI proxy container {spec.name}: {exc}") from exc

        self._start(container)
        log.info("Started criproxy container %s (%s)", spec.name, container.id)
        return container.id
