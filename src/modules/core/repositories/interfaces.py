"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that every
collaborator contract of the finalization engine extends.  Engine code
depends on these abstractions, never on Django ORM directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` is the read model handed to the engine
    (e.g. ``CatalogEntry``, ``OrderRecord``).  Implementations return
    immutable DTOs, never ORM instances.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve a read model by primary key, ``None`` if absent."""
