"""Credential storage backends."""

from .base import StorageInterface
from .file import FileStorage
from .memory import MemoryStorage

__all__ = ["FileStorage", "MemoryStorage", "StorageInterface"]
