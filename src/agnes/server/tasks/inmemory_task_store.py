import asyncio
import logging

from agnes.server.tasks.task_store import TaskStore
from agnes.types import Task


logger = logging.getLogger(__name__)


class InMemoryTaskStore(TaskStore):
    """In-memory implementation of TaskStore.

    Tasks live for the lifetime of the process; nothing is evicted.
    """

    def __init__(self) -> None:
        logger.debug('Initializing InMemoryTaskStore')
        self.tasks: dict[str, Task] = {}
        self.lock = asyncio.Lock()

    async def save(self, task: Task) -> None:
        async with self.lock:
            self.tasks[task.id] = task
            logger.debug('Task %s saved successfully.', task.id)

    async def get(self, task_id: str) -> Task | None:
        async with self.lock:
            logger.debug('Attempting to get task with id: %s', task_id)
            task = self.tasks.get(task_id)
            if task:
                logger.debug('Task %s retrieved successfully.', task_id)
            else:
                logger.debug('Task %s not found in store.', task_id)
            return task

    async def create_if_absent(self, task: Task) -> Task:
        async with self.lock:
            existing = self.tasks.get(task.id)
            if existing is not None:
                return existing
            self.tasks[task.id] = task
            logger.info('Task %s created for agent %s.', task.id, task.agentId)
            return task

    def __len__(self) -> int:
        return len(self.tasks)
