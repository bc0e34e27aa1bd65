"""Components for managing tasks within the Agnes server."""

from agnes.server.tasks.inmemory_task_store import InMemoryTaskStore
from agnes.server.tasks.task_manager import (
    ALLOWED_TRANSITIONS,
    CANCELABLE_STATES,
    TERMINAL_STATES,
    InvalidTransitionError,
    TaskManager,
)
from agnes.server.tasks.task_store import TaskStore


__all__ = [
    'ALLOWED_TRANSITIONS',
    'CANCELABLE_STATES',
    'TERMINAL_STATES',
    'InMemoryTaskStore',
    'InvalidTransitionError',
    'TaskManager',
    'TaskStore',
]
