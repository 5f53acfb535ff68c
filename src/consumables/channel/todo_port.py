"""Todo sink port: abstract interface for pushing stock alerts to an external todo system."""

from abc import ABC, abstractmethod


class TodoSinkPort(ABC):
    """Abstract interface for external todo/notification adapters."""

    @abstractmethod
    def push(self, alert: dict) -> str | None:
        """Create an external todo for an opened alert.

        Returns:
            opaque external handle, or None when the sink keeps no reference
        """
        ...

    @abstractmethod
    def withdraw(self, handle: str) -> None:
        """Close the external todo identified by ``handle``."""
        ...
