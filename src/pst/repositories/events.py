from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable

log = logging.getLogger(__name__)

Listener = Callable[[str], None]


class ChangeFeed:
    """Repositories publish the collection they wrote to; views subscribe and re-read."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, table: str, listener: Listener) -> Callable[[], None]:
        self._listeners[table].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[table]:
                self._listeners[table].remove(listener)

        return unsubscribe

    def publish(self, table: str) -> None:
        for listener in list(self._listeners.get(table, ())):
            try:
                listener(table)
            except Exception:
                log.exception("change_listener_failed table=%s", table)
