from __future__ import annotations

import logging

from ..logging.log import set_log_node
from .events import BaseEvent, BootstrapSummary, StageFailed, StageStarted

# context fields already carried by the log line itself
_CONTEXT_FIELDS = ("ts", "run_id", "node")


def event_level(event: BaseEvent) -> int:
    if isinstance(event, StageFailed):
        return logging.ERROR
    if isinstance(event, BootstrapSummary) and event.status == "FAILED":
        return logging.WARNING
    if isinstance(event, StageStarted):
        return logging.DEBUG
    return logging.INFO


class LoggerObserver:
    """Mirrors lifecycle events into the run log and tags it with the node name."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        set_log_node(event.node, self.logger.name)
        fields = " ".join(
            f"{k}={v}" for k, v in event.dict().items()
            if k not in _CONTEXT_FIELDS and v is not None
        )
        self.logger.log(event_level(event), "[EVENT] %s %s", type(event).__name__, fields)
