from abc import ABC, abstractmethod
from typing import Callable, Optional

from pydantic import BaseModel


class SignalChange(BaseModel):
    """A write to (or removal from) a shared signal store, as seen by another observer."""
    key: str
    new_value: Optional[str] = None
    origin: Optional[str] = None


SignalListener = Callable[[SignalChange], None]


class AbstractSignalStore(ABC):
    """
    A single-slot-per-key store shared by every client session of the same origin.

    Listeners are notified of changes made by *other* sessions only; a session never
    observes its own writes. Removing an absent key is a no-op.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str, origin: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str, origin: str) -> None:
        pass

    @abstractmethod
    def subscribe(self, observer_id: str, listener: SignalListener) -> Callable[[], None]:
        """Registers a listener for changes not made by observer_id. Returns an unsubscribe callable."""
        pass

    async def start(self) -> None:
        """Starts any background work the store needs (e.g. polling)."""
        return None

    async def aclose(self) -> None:
        return None
