# src/criboot/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str              # ISO timestamp
    run_id: str          # correlates all events of a single bootstrap run
    node: Optional[str]  # None until the node name is known

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(node: Optional[str], run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "node": node,
    }


# ---------------------------------------------------------------------
# Bootstrap lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BootstrapStarted(BaseEvent):
    configz_base_url: str
    proxy_socket_path: str

@dataclass(frozen=True)
class StageStarted(BaseEvent):
    stage: str

@dataclass(frozen=True)
class StageSucceeded(BaseEvent):
    stage: str
    duration_ms: int
    detail: Optional[str] = None

@dataclass(frozen=True)
class StageFailed(BaseEvent):
    stage: str
    error: str
    config_patched: bool

@dataclass(frozen=True)
class BootstrapSkipped(BaseEvent):
    reason: str

@dataclass(frozen=True)
class BootstrapSummary(BaseEvent):
    status: str          # "PATCHED" | "UNCHANGED" | "FAILED"
    patched: bool
    error: Optional[str] = None
