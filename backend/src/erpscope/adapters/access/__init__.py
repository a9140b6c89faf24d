"""Access repository adapters."""

from erpscope.adapters.access.memory import InMemoryAccessRepository
from erpscope.adapters.access.postgres import PostgresAccessRepository

__all__ = ["InMemoryAccessRepository", "PostgresAccessRepository"]
