"""
Lich Su Viet - Client Storage Module

Key-value storage for values the browser keeps between visits (the popup
dismissal timestamp). Page logic only sees the ClientStorage interface so the
backing store can be swapped without touching it.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Callable


class ClientStorage(ABC):
    """Abstract get/set/remove store"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str):
        pass

    @abstractmethod
    def remove(self, key: str):
        pass


class MemoryStorage(ClientStorage):
    """Plain dict store, lives as long as the object"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value

    def remove(self, key: str):
        self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


class MirroredClientStorage(MemoryStorage):
    """
    Server-side copy of the browser's localStorage.

    Seeded from the snapshot the browser sends on connect. Every write is
    applied locally and then reported through on_change(key, value) so the
    browser can persist it; value is None for removals.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None,
                 on_change: Optional[Callable[[str, Optional[str]], None]] = None):
        super().__init__(initial)
        self.on_change = on_change

    def set(self, key: str, value: str):
        super().set(key, value)
        if self.on_change:
            self.on_change(key, value)

    def remove(self, key: str):
        super().remove(key)
        if self.on_change:
            self.on_change(key, None)
