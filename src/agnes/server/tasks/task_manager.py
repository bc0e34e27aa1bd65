import logging

from datetime import datetime, timezone

from agnes.server.tasks.task_store import TaskStore
from agnes.types import (
    Artifact,
    Message,
    Task,
    TaskNotCancelableError,
    TaskNotFoundError,
    TaskState,
    TaskStatus,
)
from agnes.utils.errors import ServerError


logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: dict[TaskState, frozenset[TaskState]] = {
    TaskState.submitted: frozenset({TaskState.working, TaskState.canceled}),
    TaskState.working: frozenset(
        {TaskState.completed, TaskState.failed, TaskState.canceled}
    ),
    TaskState.input_required: frozenset(
        {TaskState.working, TaskState.canceled}
    ),
    TaskState.completed: frozenset(),
    TaskState.failed: frozenset(),
    TaskState.canceled: frozenset(),
}
CANCELABLE_STATES = frozenset({TaskState.submitted, TaskState.working})
TERMINAL_STATES = frozenset(
    {TaskState.completed, TaskState.failed, TaskState.canceled}
)


class InvalidTransitionError(Exception):
    """Raised on a task state change the lifecycle does not allow."""

    def __init__(self, task_id: str, current: TaskState, target: TaskState):
        self.task_id = task_id
        self.current = current
        self.target = target
        super().__init__(
            f'Task {task_id} cannot move from {current.value} to {target.value}'
        )


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskManager:
    """Drives one task through its lifecycle.

    The manager mutates the stored `Task` in place and saves it after every
    change. Callers are expected to serialize access per task ID.
    """

    def __init__(
        self,
        task_id: str,
        task_store: TaskStore,
        agent_id: str | None = None,
        session_id: str | None = None,
    ):
        self.task_id = task_id
        self.agent_id = agent_id
        self.session_id = session_id
        self.task_store = task_store
        self._current_task: Task | None = None

    async def get_task(self) -> Task | None:
        if self._current_task:
            return self._current_task
        self._current_task = await self.task_store.get(self.task_id)
        return self._current_task

    async def require_task(self) -> Task:
        task = await self.get_task()
        if task is None:
            raise ServerError(error=TaskNotFoundError())
        return task

    async def ensure_task(self) -> Task:
        """Returns the task, creating it in `submitted` if it is new."""
        if not self.agent_id:
            raise ValueError('agent_id is required to create a task')
        task = await self.task_store.create_if_absent(
            Task(
                id=self.task_id,
                agentId=self.agent_id,
                sessionId=self.session_id,
                status=TaskStatus(
                    state=TaskState.submitted, timestamp=utc_timestamp()
                ),
                history=[],
            )
        )
        if self.session_id and not task.sessionId:
            task.sessionId = self.session_id
        self._current_task = task
        return task

    async def begin_exchange(self, message: Message) -> Task:
        """Moves the task to `working` and records the inbound message.

        A new exchange may start from any state, terminal ones included.
        """
        task = await self.require_task()
        if task.status.state in TERMINAL_STATES:
            logger.info(
                'Task %s restarted from %s by a new message.',
                task.id,
                task.status.state.value,
            )
        self._set_state(task, TaskState.working, restart=True)
        task.history.append(message)
        await self.task_store.save(task)
        return task

    async def complete(self, reply: Message, artifact: Artifact) -> Task:
        """Records a successful reply and its artifact."""
        task = await self.require_task()
        self._set_state(task, TaskState.completed)
        task.history.append(reply)
        task.artifacts = [artifact]
        await self.task_store.save(task)
        return task

    async def fail(self) -> Task:
        task = await self.require_task()
        self._set_state(task, TaskState.failed)
        await self.task_store.save(task)
        return task

    async def cancel(self) -> Task:
        """Cancels the task.

        Raises:
            ServerError: `TaskNotFoundError` for an unknown task,
                `TaskNotCancelableError` unless the task is `submitted` or
                `working`.
        """
        task = await self.require_task()
        if task.status.state not in CANCELABLE_STATES:
            logger.warning(
                'Task %s is %s and cannot be canceled.',
                task.id,
                task.status.state.value,
            )
            raise ServerError(
                error=TaskNotCancelableError(
                    data={'taskId': task.id, 'state': task.status.state.value}
                )
            )
        self._set_state(task, TaskState.canceled)
        await self.task_store.save(task)
        return task

    def _set_state(
        self, task: Task, target: TaskState, restart: bool = False
    ) -> None:
        current = task.status.state
        if not restart and target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(task.id, current, target)
        logger.debug(
            'Task %s: %s -> %s', task.id, current.value, target.value
        )
        task.status = TaskStatus(state=target, timestamp=utc_timestamp())
