from typing import Any
from unittest import mock

import pytest

from starlette.testclient import TestClient

from agnes.agents import AgentDescriptor, AgentRegistry, ErrorReply
from agnes.server.apps import AgnesStarletteApplication
from agnes.server.request_handlers import DefaultRequestHandler
from agnes.server.tasks import InMemoryTaskStore
from agnes.types import AgentSkill, Message, Task, TaskStatus
from agnes.utils import get_message_text, new_agent_text_message


# === TEST SETUP ===

MINIMAL_MESSAGE_USER: dict[str, Any] = {
    'role': 'user',
    'parts': [{'type': 'text', 'text': 'hi'}],
}


async def echo(message, context):
    return new_agent_text_message(f'echo: {get_message_text(message)}')


async def shout(message, context):
    return new_agent_text_message(get_message_text(message).upper())


def rpc(method: str, params: Any = None, request_id: Any = 1) -> dict[str, Any]:
    return {'jsonrpc': '2.0', 'id': request_id, 'method': method, 'params': params}


def send(task_id: str = 't1', **extra: Any) -> dict[str, Any]:
    return rpc('tasks/send', {'id': task_id, 'message': MINIMAL_MESSAGE_USER, **extra})


@pytest.fixture
def agents() -> list[AgentDescriptor]:
    return [
        AgentDescriptor(
            id='agent://a',
            name='Agent A',
            handler=echo,
            skills=[AgentSkill(id='echo', name='Echo')],
        ),
        AgentDescriptor(id='agent://b', name='Agent B', handler=shout),
    ]


@pytest.fixture
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


def build_app(agents, store=None, **kwargs) -> AgnesStarletteApplication:
    return AgnesStarletteApplication(
        registry=AgentRegistry(agents),
        http_handler=DefaultRequestHandler(
            store if store is not None else InMemoryTaskStore()
        ),
        **kwargs,
    )


@pytest.fixture
def client(agents, store) -> TestClient:
    return TestClient(
        build_app(agents, store, base_url='http://agents.test:3000').build()
    )


# === DISCOVERY ===


def test_index_lists_agents(client: TestClient):
    response = client.get('/')
    assert response.status_code == 200
    assert response.json()['agents'] == [
        {'id': 'agent://a', 'name': 'Agent A', 'url': 'http://agents.test:3000/a'},
        {'id': 'agent://b', 'name': 'Agent B', 'url': 'http://agents.test:3000/b'},
    ]


def test_default_card_is_first_agent(client: TestClient):
    response = client.get('/.well-known/agent.json')
    assert response.status_code == 200
    data = response.json()
    assert data['name'] == 'Agent A'
    assert data['url'] == 'http://agents.test:3000/a'
    assert data['capabilities'] == {
        'streaming': False,
        'pushNotifications': False,
        'stateTransitionHistory': False,
    }
    assert data['skills'][0]['id'] == 'echo'


def test_agent_scoped_card(client: TestClient):
    response = client.get('/b/.well-known/agent.json')
    assert response.status_code == 200
    data = response.json()
    assert data['name'] == 'Agent B'
    assert data['skills'] == []
    assert data['defaultInputModes'] == ['text']


def test_card_selected_by_header(client: TestClient):
    response = client.get(
        '/.well-known/agent.json', headers={'X-Agent-Id': 'agent://b'}
    )
    assert response.json()['name'] == 'Agent B'


def test_unknown_agent_card_is_404(client: TestClient):
    response = client.get('/zzz/.well-known/agent.json')
    assert response.status_code == 404
    assert response.json() == {'error': 'Agent not found: zzz'}


def test_card_without_agents_is_404():
    client = TestClient(build_app([]).build())
    response = client.get('/.well-known/agent.json')
    assert response.status_code == 404
    assert response.json() == {'error': 'No agents found'}


def test_relative_card_urls():
    agent = AgentDescriptor(id='agent://a', name='A', handler=echo)
    client = TestClient(build_app([agent]).build())
    assert client.get('/.well-known/agent.json').json()['url'] == '/a'


# === TASK METHODS ===


def test_send_completes_task(client: TestClient):
    response = client.post('/rpc', json=send())

    assert response.status_code == 200
    data = response.json()
    assert data['jsonrpc'] == '2.0'
    assert data['id'] == 1
    result = data['result']
    assert result['id'] == 't1'
    assert result['agentId'] == 'agent://a'
    assert result['status']['state'] == 'completed'
    assert result['artifacts'][0]['parts'][0]['type'] == 'text'
    assert result['artifacts'][0]['parts'][0]['text'] == 'echo: hi'


def test_get_after_send(client: TestClient):
    client.post('/rpc', json=send())

    response = client.post('/rpc', json=rpc('tasks/get', {'id': 't1'}, 'g1'))

    data = response.json()
    assert data['id'] == 'g1'
    assert data['result']['status']['state'] == 'completed'
    assert len(data['result']['history']) == 2
    assert data['result']['history'][0]['role'] == 'user'
    assert data['result']['history'][1]['role'] == 'agent'


def test_get_with_history_length(client: TestClient):
    client.post('/rpc', json=send())
    response = client.post(
        '/rpc', json=rpc('tasks/get', {'id': 't1', 'historyLength': 1})
    )
    assert len(response.json()['result']['history']) == 1


def test_repeated_send_reuses_task(client: TestClient):
    first = client.post('/rpc', json=send()).json()['result']
    second = client.post('/rpc', json=send()).json()['result']

    assert first['id'] == second['id'] == 't1'
    assert len(second['history']) == 4


def test_get_unknown_task(client: TestClient, store: InMemoryTaskStore):
    response = client.post('/rpc', json=rpc('tasks/get', {'id': 'nope'}))

    assert response.status_code == 200
    assert response.json()['error']['code'] == -32001
    assert len(store) == 0


def test_cancel_never_sent_task(client: TestClient):
    response = client.post('/rpc', json=rpc('tasks/cancel', {'id': 'never'}))
    assert response.status_code == 200
    assert response.json()['error']['code'] == -32001


def test_cancel_submitted_task(client: TestClient, store: InMemoryTaskStore):
    store.tasks['t1'] = Task(
        id='t1', agentId='agent://a', status=TaskStatus(state='submitted')
    )

    response = client.post('/rpc', json=rpc('tasks/cancel', {'id': 't1'}))

    assert response.json()['result']['status']['state'] == 'canceled'


@pytest.mark.parametrize('state', ['completed', 'failed', 'canceled'])
def test_cancel_terminal_task(store: InMemoryTaskStore, state: str):
    agents = [
        AgentDescriptor(id='agent://a', name='Agent A', handler=echo),
        AgentDescriptor(
            id='agent://broken',
            name='Broken',
            handler=mock.AsyncMock(return_value=ErrorReply(error='no key')),
        ),
    ]
    client = TestClient(build_app(agents, store).build())
    if state == 'completed':
        client.post('/a', json=send())
    elif state == 'failed':
        client.post('/broken', json=send())
    else:
        store.tasks['t1'] = Task(
            id='t1', agentId='agent://a', status=TaskStatus(state='submitted')
        )
        first = client.post('/rpc', json=rpc('tasks/cancel', {'id': 't1'}))
        assert first.json()['result']['status']['state'] == 'canceled'

    response = client.post('/rpc', json=rpc('tasks/cancel', {'id': 't1'}))

    assert response.status_code == 200
    error = response.json()['error']
    assert error['code'] == -32002
    assert error['data'] == {'taskId': 't1', 'state': state}
    task = client.post('/rpc', json=rpc('tasks/get', {'id': 't1'})).json()
    assert task['result']['status']['state'] == state


def test_null_data_parts_are_returned_intact(client: TestClient):
    parts = [
        {'type': 'data', 'data': {'x': None, 'y': 1}},
        {'type': 'data', 'data': None},
    ]
    message = {'role': 'user', 'parts': parts}

    sent = client.post(
        '/rpc', json=rpc('tasks/send', {'id': 't1', 'message': message})
    ).json()
    fetched = client.post('/rpc', json=rpc('tasks/get', {'id': 't1'})).json()

    for result in (sent['result'], fetched['result']):
        inbound = result['history'][0]
        assert inbound['parts'][0]['data'] == {'x': None, 'y': 1}
        assert inbound['parts'][1]['data'] is None
        assert Message.model_validate(inbound).parts[1].root.data is None
    assert fetched['result']['sessionId'] is None


def test_handler_error_fails_task(store):
    failing = AgentDescriptor(
        id='agent://broken',
        name='Broken',
        handler=mock.AsyncMock(return_value=ErrorReply(error='no key')),
    )
    client = TestClient(build_app([failing], store).build())

    response = client.post('/rpc', json=send())

    assert response.status_code == 200
    error = response.json()['error']
    assert error['code'] == -32603
    assert error['data'] == 'no key'
    task = client.post('/rpc', json=rpc('tasks/get', {'id': 't1'})).json()
    assert task['result']['status']['state'] == 'failed'


# === ROUTING ===


def test_agent_addressed_paths(client: TestClient):
    by_path = client.post('/b', json=send('p1')).json()['result']
    by_nested_path = client.post('/b/tasks', json=send('p2')).json()['result']
    by_header = client.post(
        '/rpc', json=send('p3'), headers={'X-Agent-Id': 'agent://b'}
    ).json()['result']

    for result in (by_path, by_nested_path, by_header):
        assert result['agentId'] == 'agent://b'
        assert result['history'][1]['parts'][0]['text'] == 'HI'


def test_unknown_agent_path(client: TestClient):
    body = send()
    body['id'] = 5
    response = client.post('/zzz', json=body)

    assert response.status_code == 200
    data = response.json()
    assert data['id'] == 5
    assert data['error']['code'] == -32601
    assert data['error']['message'] == 'Agent not found: zzz'


def test_strict_routing_requires_agent(agents):
    client = TestClient(build_app(agents, strict_routing=True).build())

    response = client.post('/rpc', json=send())
    assert response.json()['error']['code'] == -32601

    response = client.post('/a', json=send())
    assert response.json()['result']['status']['state'] == 'completed'


def test_no_agents_registered():
    client = TestClient(build_app([]).build())
    response = client.post('/rpc', json=send())

    assert response.status_code == 200
    assert response.json()['error'] == {
        'code': -32601,
        'message': 'No agents available',
    }


# === PROTOCOL ERRORS ===


def test_malformed_json(client: TestClient):
    response = client.post(
        '/rpc',
        content=b'{"jsonrpc": "2.0", "method": ',
        headers={'Content-Type': 'application/json'},
    )

    assert response.status_code == 400
    data = response.json()
    assert data['error']['code'] == -32700
    assert data['id'] is None


@pytest.mark.parametrize(
    'body',
    [
        {'jsonrpc': '1.0', 'id': 'x', 'method': 'tasks/get'},
        {'jsonrpc': '2.0', 'id': 'x'},
        {'jsonrpc': '2.0', 'id': 'x', 'method': ''},
    ],
)
def test_invalid_envelope(client: TestClient, body):
    response = client.post('/rpc', json=body)

    assert response.status_code == 400
    data = response.json()
    assert data['error']['code'] == -32600
    assert data['id'] == 'x'


def test_non_object_body(client: TestClient):
    response = client.post('/rpc', json=[1, 2, 3])
    assert response.status_code == 400
    assert response.json()['error']['code'] == -32600


def test_invalid_params(client: TestClient):
    response = client.post('/rpc', json=rpc('tasks/send', {'id': 't1'}))
    assert response.status_code == 200
    assert response.json()['error']['code'] == -32602


def test_unknown_method(client: TestClient):
    response = client.post('/rpc', json=rpc('tasks/explode', {}))
    assert response.status_code == 200
    assert response.json()['error']['code'] == -32601


def test_reserved_streaming_method(client: TestClient):
    response = client.post('/rpc', json=rpc('tasks/sendSubscribe', {'id': 't1'}))
    assert response.json()['error']['code'] == -32004


def test_unexpected_exception_becomes_internal_error():
    request_handler = mock.AsyncMock()
    request_handler.on_get_task.side_effect = RuntimeError('store exploded')
    app = AgnesStarletteApplication(
        registry=AgentRegistry(
            [AgentDescriptor(id='agent://a', name='A', handler=echo)]
        ),
        http_handler=request_handler,
    )
    client = TestClient(app.build())

    response = client.post('/rpc', json=rpc('tasks/get', {'id': 't1'}, 9))

    assert response.status_code == 200
    data = response.json()
    assert data['id'] == 9
    assert data['error']['code'] == -32603
    assert data['error']['message'] == 'store exploded'
    assert app.registry.frozen


# === LIFECYCLE ===


def test_cors_preflight(client: TestClient):
    response = client.options(
        '/rpc',
        headers={
            'Origin': 'http://example.com',
            'Access-Control-Request-Method': 'POST',
            'Access-Control-Request-Headers': 'Content-Type',
        },
    )
    assert response.status_code == 200
    assert response.headers['access-control-allow-origin'] == '*'


def test_init_hooks_run_at_startup():
    calls = []

    async def init(logger):
        calls.append(logger)

    agents = [
        AgentDescriptor(id='agent://a', name='A', handler=echo, init=init),
        AgentDescriptor(id='agent://b', name='B', handler=echo),
    ]
    app = build_app(agents).build()

    assert calls == []
    with TestClient(app):
        assert len(calls) == 1


def test_scheme_prefixed_header_reaches_plain_identifier(store):
    agents = [
        AgentDescriptor(id='agent://a', name='Agent A', handler=echo),
        AgentDescriptor(id='time', name='Time', handler=shout),
    ]
    client = TestClient(build_app(agents, store).build())

    response = client.post(
        '/rpc', json=send(), headers={'X-Agent-Id': 'agent://time'}
    )

    assert response.json()['result']['agentId'] == 'time'
