from abc import ABC, abstractmethod

from agnes.types import Task


class TaskStore(ABC):
    """Agent Task Store interface.

    Defines the methods for persisting and retrieving `Task` objects.
    """

    @abstractmethod
    async def save(self, task: Task) -> None:
        """Saves or updates a task in the store."""

    @abstractmethod
    async def get(self, task_id: str) -> Task | None:
        """Retrieves a task from the store by ID."""

    @abstractmethod
    async def create_if_absent(self, task: Task) -> Task:
        """Stores `task` unless its ID is already taken.

        Returns the stored task: the existing one, or `task` itself.
        """
