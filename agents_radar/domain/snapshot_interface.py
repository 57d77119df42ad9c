"""Snapshot storage interface (port) for data persistence.

This is the port in hexagonal architecture that the infrastructure layer implements.
"""
from abc import ABC, abstractmethod
from agents_radar.domain.models import Snapshot


class ISnapshotStorage(ABC):
    """Abstract interface for snapshot storage."""

    @abstractmethod
    def exists(self) -> bool:
        """Whether a previous snapshot is already stored."""
        pass

    @abstractmethod
    def save(self, snapshot: Snapshot) -> None:
        """Replace the stored snapshot with a new one.

        Must never leave a partially written snapshot behind.

        Args:
            snapshot: Snapshot to persist
        """
        pass

    @abstractmethod
    def load(self) -> Snapshot:
        """Read the stored snapshot."""
        pass
