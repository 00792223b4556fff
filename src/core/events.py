from typing import Callable, List

from loguru import logger


class Signal:
    """
    Synchronous observer list.

    Subscribers are called in connection order. A failing subscriber is
    logged and does not stop the others.
    """

    def __init__(self, name: str = "Signal"):
        self.name = name
        self._subscribers: List[Callable] = []

    def connect(self, callback: Callable):
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def disconnect(self, callback: Callable):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def emit(self, *args, **kwargs) -> int:
        """Call every subscriber; returns how many completed without error."""
        delivered = 0
        for callback in list(self._subscribers):
            try:
                callback(*args, **kwargs)
                delivered += 1
            except Exception as e:
                logger.error(f"Signal '{self.name}' subscriber {callback!r} failed: {e}")
        return delivered

    def __len__(self) -> int:
        return len(self._subscribers)
