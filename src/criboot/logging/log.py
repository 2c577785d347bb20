# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/criboot/logging/log.py

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(run_id).8s | %(node)s | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# client libraries that log every request at DEBUG
NOISY_LOGGERS = ("urllib3", "docker", "kubernetes")

_contexts: Dict[str, "RunContextFilter"] = {}


class RunContextFilter(logging.Filter):
    """Stamps run_id and node on every record passing a handler."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id
        self.node = "-"

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        record.node = self.node
        return True


def set_log_node(node: Optional[str], name: str = "criboot") -> None:
    """Once the node name is known, tag the remaining log lines with it."""
    ctx = _contexts.get(name)
    if ctx is not None and node:
        ctx.node = node


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "criboot",
    verbose: bool = False,
    run_id: str | None = None,
) -> tuple[logging.Logger, str, Path]:
    """
    Set up logging for one bootstrap run.

    The file under *base_dir* (``~/.criboot/logs`` by default) gets the full
    DEBUG trace, each line tagged with the run id and node name. The console
    gets INFO, or DEBUG with *verbose*. HTTP and container client chatter is
    kept at WARNING unless *verbose* is set.

    Returns (logger, run_id, log_path).
    """
    run_id = run_id or str(uuid.uuid4())

    if base_dir is None:
        base_dir = Path.home() / ".criboot" / "logs"
    base_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{ts}-{run_id}.log"

    ctx = RunContextFilter(run_id)
    _contexts[name] = ctx

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = False

    fh = logging.FileHandler(log_path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    fh.addFilter(ctx)

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    ch.addFilter(ctx)

    logger.addHandler(fh)
    logger.addHandler(ch)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.DEBUG if verbose else logging.WARNING)

    logger.debug("criboot run %s logging to %s", run_id, log_path)
    return logger, run_id, log_path
