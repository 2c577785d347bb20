from __future__ import annotations

import json
from pathlib import Path
from typing import IO, Optional

from .events import BaseEvent


class JsonFileObserver:
    """
    Appends one JSON object per event (``{"event": <type>, ...fields}``).

    The file is opened on the first event and stays open, line buffered,
    until close().
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._fh: Optional[IO[str]] = None

    def notify(self, event: BaseEvent) -> None:
        if self._fh is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = self.path.open("a", encoding="utf-8", buffering=1)
        record = {"event": type(event).__name__, **event.dict()}
        self._fh.write(json.dumps(record, default=str) + "\n")

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "JsonFileObserver":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
