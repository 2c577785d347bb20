# src/criboot/observers/dispatcher.py
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from .events import BaseEvent

log = logging.getLogger("criboot")


@runtime_checkable
class Observer(Protocol):
    def notify(self, event: BaseEvent) -> None: ...


class EventBus:
    def __init__(self, observers: Optional[Iterable[Observer]] = None):
        self._observers: List[Observer] = []
        for ob in observers or ():
            self.subscribe(ob)

    def subscribe(self, observer: Observer) -> None:
        if not isinstance(observer, Observer):
            raise TypeError(f"{type(observer).__name__} has no notify(event)")
        self._observers.append(observer)

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception as exc:
                # observers must not break the bootstrap
                log.debug("observer %s failed: %s", type(ob).__name__, exc)
