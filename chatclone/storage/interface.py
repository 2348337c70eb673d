"""
Storage Interface - Abstract base class for document storage backends.
Chat persistence is written against this contract so the backing store can
be swapped (local disk today, object storage later).
"""

from abc import ABC, abstractmethod
from typing import Optional, List


class StorageError(Exception):
    """Raised when the backing store cannot complete an operation."""


class StorageInterface(ABC):
    """
    Contract for path-addressed document storage.
    Implementations raise ``StorageError`` on I/O failure; a missing
    document is not an error.
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> None:
        """
        Write content to the specified path, replacing any existing document.

        Args:
            path: Relative path (e.g., "chats/chat_123.json")
            content: Bytes or text to store
        """

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Read the document at ``path``.

        Returns:
            Optional[bytes]: Content, or None if the document doesn't exist
        """

    @abstractmethod
    async def append(self, path: str, content: str) -> None:
        """Append text to a document, creating it if needed."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a document exists at ``path``."""

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete the document at ``path``.

        Returns:
            bool: True if something was deleted, False if it didn't exist
        """

    @abstractmethod
    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        """
        List documents directly under a directory.

        Args:
            path: Directory path to list
            pattern: Optional glob pattern (e.g., "*.json")

        Returns:
            List[str]: Sorted relative paths
        """
