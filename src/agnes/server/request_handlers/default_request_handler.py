import asyncio
import logging

from agnes.agents.context import AgentContext
from agnes.agents.descriptor import AgentDescriptor, ErrorReply
from agnes.server.request_handlers.request_handler import RequestHandler
from agnes.server.tasks import TaskManager, TaskStore
from agnes.types import (
    InternalError,
    Message,
    Task,
    TaskIdParams,
    TaskNotFoundError,
    TaskQueryParams,
    TaskSendParams,
    TaskState,
)
from agnes.utils import artifact_from_reply
from agnes.utils.errors import ServerError
from agnes.utils.telemetry import SpanKind, trace_class


logger = logging.getLogger(__name__)


@trace_class(kind=SpanKind.SERVER)
class DefaultRequestHandler(RequestHandler):
    """Default request handler for the task methods.

    Sends to the same task ID are serialized with a per-task lock, so the
    inbound message of an exchange always lands in history before its
    reply. A lock is dropped once no send holds or waits for it. Cancel
    does not take that lock and can interrupt a running exchange.
    """

    _task_locks: dict[str, asyncio.Lock]
    _lock_users: dict[str, int]

    def __init__(self, task_store: TaskStore) -> None:
        self.task_store = task_store
        self._task_locks = {}
        self._lock_users = {}

    async def on_send_task(
        self, params: TaskSendParams, agent: AgentDescriptor
    ) -> Task:
        task_id = params.id
        lock = self._task_locks.setdefault(task_id, asyncio.Lock())
        self._lock_users[task_id] = self._lock_users.get(task_id, 0) + 1
        try:
            async with lock:
                return await self._exchange(params, agent)
        finally:
            self._lock_users[task_id] -= 1
            if not self._lock_users[task_id]:
                del self._lock_users[task_id]
                del self._task_locks[task_id]

    async def _exchange(
        self, params: TaskSendParams, agent: AgentDescriptor
    ) -> Task:
        task_manager = TaskManager(
            task_id=params.id,
            task_store=self.task_store,
            agent_id=agent.id,
            session_id=params.sessionId,
        )
        task = await task_manager.ensure_task()
        await task_manager.begin_exchange(params.message)
        context = AgentContext(
            task_id=task.id, agent_id=agent.id, session_id=task.sessionId
        )
        logger.debug('Invoking agent %s for task %s', agent.id, task.id)

        try:
            response = await agent.handler(
                params.message.model_copy(deep=True), context
            )
        except Exception as e:
            logger.exception(
                'Agent %s raised while handling task %s', agent.id, task.id
            )
            await self._fail(task_manager)
            raise ServerError(
                error=InternalError(
                    message=f'Internal error: {e}', data=str(e)
                )
            ) from e

        if isinstance(response, ErrorReply):
            logger.warning(
                'Agent %s reported an error for task %s: %s',
                agent.id,
                task.id,
                response.error,
            )
            await self._fail(task_manager)
            raise ServerError(
                error=InternalError(
                    message=response.error, data=response.error
                )
            )

        if not isinstance(response, Message):
            logger.error(
                'Agent %s returned %s for task %s',
                agent.id,
                type(response).__name__,
                task.id,
            )
            await self._fail(task_manager)
            raise ServerError(
                error=InternalError(
                    message='Agent returned an invalid response'
                )
            )

        task = await task_manager.require_task()
        if task.status.state == TaskState.canceled:
            logger.info(
                'Task %s was canceled while agent %s was running; '
                'discarding the reply.',
                task.id,
                agent.id,
            )
            return task
        return await task_manager.complete(
            response, artifact_from_reply(response)
        )

    async def on_get_task(self, params: TaskQueryParams) -> Task:
        task: Task | None = await self.task_store.get(params.id)
        if not task:
            raise ServerError(error=TaskNotFoundError())
        if params.historyLength is None:
            return task
        history = (
            task.history[-params.historyLength :] if params.historyLength else []
        )
        return task.model_copy(update={'history': history})

    async def on_cancel_task(self, params: TaskIdParams) -> Task:
        task_manager = TaskManager(task_id=params.id, task_store=self.task_store)
        return await task_manager.cancel()

    async def _fail(self, task_manager: TaskManager) -> None:
        task = await task_manager.require_task()
        if task.status.state == TaskState.working:
            await task_manager.fail()
