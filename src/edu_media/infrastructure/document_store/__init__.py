"""Document store adapters."""

from .memory import InMemoryDocumentStore
from .postgres import AsyncpgDocumentStore

__all__ = ["InMemoryDocumentStore", "AsyncpgDocumentStore"]
