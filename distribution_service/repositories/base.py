"""
Base Repository - common async interface for every repository.
"""
from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Optional, List

T = TypeVar('T')


class BaseRepository(ABC, Generic[T]):
    """
    Base interface for repositories.

    Implementations may be backed by Supabase, memory, or a test double;
    callers only rely on these coroutines.
    """

    @abstractmethod
    async def find_by_id(self, id: str) -> Optional[T]:
        """
        Fetch an entity by ID.

        Args:
            id: Entity identifier

        Returns:
            Entity or None when absent
        """
        pass

    @abstractmethod
    async def find_all(self) -> List[T]:
        """Every stored entity."""
        pass

    @abstractmethod
    async def save(self, entity: T) -> T:
        """
        Insert (no id yet) or replace (existing id) an entity.

        Args:
            entity: Entity to persist

        Returns:
            The persisted entity, with its id assigned
        """
        pass

    @abstractmethod
    async def delete(self, id: str) -> bool:
        """
        Remove an entity.

        Returns:
            True when removed, False when absent
        """
        pass

    async def exists(self, id: str) -> bool:
        """Check whether an entity exists."""
        return await self.find_by_id(id) is not None
