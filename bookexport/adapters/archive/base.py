"""Archive packager interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractArchive(ABC):
    """Write-once archive: add named entries in order, then take the bytes."""

    @abstractmethod
    def add_entry(self, path: str, content: bytes) -> None:
        """Append an entry to the archive.

        Args:
            path: Entry path inside the archive (POSIX separators).
            content: Raw entry bytes.
        """
        raise NotImplementedError

    @abstractmethod
    def finalize(self) -> bytes:
        """Close the archive and return its bytes."""
        raise NotImplementedError

    @abstractmethod
    def abort(self) -> None:
        """Release the archive without producing bytes; safe to call twice."""
        raise NotImplementedError
