# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/proxy/readiness.py
from __future__ import annotations

import logging
import socket

from ..config.models import DEFAULT_READINESS_INTERVAL_SECONDS, DEFAULT_READINESS_TIMEOUT_SECONDS
from ..errors import ReadinessTimeoutError
from ..utils.retry import wait_until

log = logging.getLogger("criboot")


def socket_ready(path: str) -> bool:
    """True if a unix socket at *path* accepts connections."""
    s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        s.settimeout(1.0)
        s.connect(path)
        return True
    except OSError:
        return False
    finally:
        s.close()


def wait_for_socket(
    path: str,
    timeout: float = DEFAULT_READINESS_TIMEOUT_SECONDS,
    interval: float = DEFAULT_READINESS_INTERVAL_SECONDS,
) -> None:
    log.info("Waiting up to %.1fs for %s", timeout, path)
    ok = wait_until(
        lambda: socket_ready(path),
        timeout=timeout,
        interval=interval,
        on_retry=lambda attempt: log.debug("%s not ready (attempt %d)", path, attempt),
    )
    if not ok:
        raise ReadinessTimeoutError(f"timed out waiting for {path} after {timeout}s")
    log.info("%s is ready", path)
