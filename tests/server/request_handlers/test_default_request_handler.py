import asyncio

from unittest.mock import AsyncMock

import pytest

from agnes.agents import AgentContext, AgentDescriptor, ErrorReply
from agnes.server.request_handlers import DefaultRequestHandler
from agnes.server.tasks import InMemoryTaskStore
from agnes.types import (
    InternalError,
    Role,
    TaskIdParams,
    TaskNotCancelableError,
    TaskNotFoundError,
    TaskQueryParams,
    TaskSendParams,
    TaskState,
)
from agnes.utils import get_message_text, new_agent_text_message, new_text_message
from agnes.utils.errors import ServerError


def make_agent(handler, agent_id='agent://echo') -> AgentDescriptor:
    return AgentDescriptor(id=agent_id, name='Echo', handler=handler)


def send_params(task_id='t1', text='hi', session_id=None) -> TaskSendParams:
    return TaskSendParams(
        id=task_id,
        message=new_text_message(text, role=Role.user),
        sessionId=session_id,
    )


async def echo(message, context):
    return new_agent_text_message(f'echo: {get_message_text(message)}')


@pytest.fixture
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def request_handler(store) -> DefaultRequestHandler:
    return DefaultRequestHandler(task_store=store)


@pytest.mark.asyncio
async def test_send_completes_new_task(request_handler, store):
    task = await request_handler.on_send_task(send_params(), make_agent(echo))

    assert task.id == 't1'
    assert task.agentId == 'agent://echo'
    assert task.status.state == TaskState.completed
    assert [m.role for m in task.history] == [Role.user, Role.agent]
    assert get_message_text(task.history[1]) == 'echo: hi'
    assert len(task.artifacts) == 1
    assert task.artifacts[0].parts[0].root.type == 'text'
    assert task.artifacts[0].parts[0].root.text == 'echo: hi'
    assert await store.get('t1') is task


@pytest.mark.asyncio
async def test_send_passes_context_and_message_copy(request_handler):
    handler = AsyncMock(return_value=new_agent_text_message('ok'))
    params = send_params(session_id='s1')

    await request_handler.on_send_task(params, make_agent(handler))

    message, context = handler.await_args.args
    assert isinstance(context, AgentContext)
    assert context.task_id == 't1'
    assert context.agent_id == 'agent://echo'
    assert context.session_id == 's1'
    assert message == params.message
    assert message is not params.message


@pytest.mark.asyncio
async def test_resend_continues_task(request_handler):
    agent = make_agent(echo)
    await request_handler.on_send_task(send_params(text='one'), agent)

    task = await request_handler.on_send_task(send_params(text='two'), agent)

    assert task.status.state == TaskState.completed
    assert [get_message_text(m) for m in task.history] == [
        'one',
        'echo: one',
        'two',
        'echo: two',
    ]
    assert task.artifacts[0].parts[0].root.text == 'echo: two'


@pytest.mark.asyncio
async def test_error_reply_fails_task(request_handler, store):
    agent = make_agent(AsyncMock(return_value=ErrorReply(error='no key')))

    with pytest.raises(ServerError) as exc_info:
        await request_handler.on_send_task(send_params(), agent)

    error = exc_info.value.error
    assert isinstance(error, InternalError)
    assert error.message == 'no key'
    assert error.data == 'no key'
    task = await store.get('t1')
    assert task.status.state == TaskState.failed
    assert len(task.history) == 1


@pytest.mark.asyncio
async def test_handler_exception_fails_task(request_handler, store):
    agent = make_agent(AsyncMock(side_effect=RuntimeError('boom')))

    with pytest.raises(ServerError) as exc_info:
        await request_handler.on_send_task(send_params(), agent)

    assert exc_info.value.error.message == 'Internal error: boom'
    assert exc_info.value.error.data == 'boom'
    assert (await store.get('t1')).status.state == TaskState.failed


@pytest.mark.asyncio
async def test_invalid_handler_return_fails_task(request_handler, store):
    agent = make_agent(AsyncMock(return_value={'text': 'not a message'}))

    with pytest.raises(ServerError) as exc_info:
        await request_handler.on_send_task(send_params(), agent)

    assert exc_info.value.error.message == 'Agent returned an invalid response'
    assert (await store.get('t1')).status.state == TaskState.failed


@pytest.mark.asyncio
async def test_failed_task_can_be_resent(request_handler):
    failing = make_agent(AsyncMock(return_value=ErrorReply(error='nope')))
    with pytest.raises(ServerError):
        await request_handler.on_send_task(send_params(), failing)

    task = await request_handler.on_send_task(send_params(), make_agent(echo))

    assert task.status.state == TaskState.completed
    assert len(task.history) == 3


@pytest.mark.asyncio
async def test_concurrent_sends_to_one_task_are_serialized(request_handler):
    async def slow_echo(message, context):
        await asyncio.sleep(0.01)
        return await echo(message, context)

    agent = make_agent(slow_echo)
    await asyncio.gather(
        request_handler.on_send_task(send_params(text='one'), agent),
        request_handler.on_send_task(send_params(text='two'), agent),
    )

    task = await request_handler.on_get_task(TaskQueryParams(id='t1'))
    texts = [get_message_text(m) for m in task.history]
    assert texts in (
        ['one', 'echo: one', 'two', 'echo: two'],
        ['two', 'echo: two', 'one', 'echo: one'],
    )


@pytest.mark.asyncio
async def test_task_locks_are_dropped_after_sends(request_handler):
    async def slow_echo(message, context):
        await asyncio.sleep(0.01)
        return await echo(message, context)

    agent = make_agent(slow_echo)
    await asyncio.gather(
        request_handler.on_send_task(send_params(text='one'), agent),
        request_handler.on_send_task(send_params(text='two'), agent),
        request_handler.on_send_task(send_params(task_id='t2'), agent),
    )
    with pytest.raises(ServerError):
        await request_handler.on_send_task(
            send_params(task_id='t3'),
            make_agent(AsyncMock(side_effect=RuntimeError('boom'))),
        )

    assert request_handler._task_locks == {}
    assert request_handler._lock_users == {}


@pytest.mark.asyncio
async def test_cancel_while_handler_runs_discards_reply(request_handler):
    started = asyncio.Event()
    release = asyncio.Event()

    async def blocking(message, context):
        started.set()
        await release.wait()
        return new_agent_text_message('late')

    send = asyncio.create_task(
        request_handler.on_send_task(send_params(), make_agent(blocking))
    )
    await started.wait()

    canceled = await request_handler.on_cancel_task(TaskIdParams(id='t1'))
    assert canceled.status.state == TaskState.canceled

    release.set()
    task = await send

    assert task.status.state == TaskState.canceled
    assert len(task.history) == 1
    assert task.artifacts is None


@pytest.mark.asyncio
async def test_get_task_trims_history(request_handler, store):
    agent = make_agent(echo)
    await request_handler.on_send_task(send_params(text='one'), agent)
    await request_handler.on_send_task(send_params(text='two'), agent)

    full = await request_handler.on_get_task(TaskQueryParams(id='t1'))
    last = await request_handler.on_get_task(
        TaskQueryParams(id='t1', historyLength=1)
    )
    empty = await request_handler.on_get_task(
        TaskQueryParams(id='t1', historyLength=0)
    )

    assert len(full.history) == 4
    assert [get_message_text(m) for m in last.history] == ['echo: two']
    assert empty.history == []
    assert len((await store.get('t1')).history) == 4


@pytest.mark.asyncio
async def test_get_unknown_task(request_handler):
    with pytest.raises(ServerError) as exc_info:
        await request_handler.on_get_task(TaskQueryParams(id='missing'))
    assert isinstance(exc_info.value.error, TaskNotFoundError)


@pytest.mark.asyncio
async def test_cancel_completed_task(request_handler):
    await request_handler.on_send_task(send_params(), make_agent(echo))

    with pytest.raises(ServerError) as exc_info:
        await request_handler.on_cancel_task(TaskIdParams(id='t1'))
    assert isinstance(exc_info.value.error, TaskNotCancelableError)


@pytest.mark.asyncio
async def test_cancel_unknown_task(request_handler, store):
    with pytest.raises(ServerError) as exc_info:
        await request_handler.on_cancel_task(TaskIdParams(id='missing'))
    assert isinstance(exc_info.value.error, TaskNotFoundError)
    assert len(store) == 0
