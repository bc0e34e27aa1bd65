import asyncio
import logging
import os

import click
import httpx

from dotenv import load_dotenv

from agnes.agents.errors import AgentLoadError
from agnes.client import (
    AgnesClient,
    AgnesClientError,
    create_text_message_object,
)
from agnes.config import DEFAULT_PORT, ServerConfig
from agnes.server import AgnesServer
from agnes.types import JSONRPCErrorResponse, Role
from agnes.utils import get_message_text


@click.group()
def cli() -> None:
    """Agnes agent runtime."""
    load_dotenv()


@cli.command()
@click.option('--host', 'host', default=None, help='Interface to bind.')
@click.option('--port', 'port', type=int, default=None, help='Port to listen on.')
@click.option(
    '--agent',
    'agents',
    multiple=True,
    help='Agent to serve as package.module:attribute. Repeatable.',
)
@click.option(
    '--strict-routing',
    is_flag=True,
    default=None,
    help='Reject requests that do not name an agent when several are served.',
)
def serve(
    host: str | None,
    port: int | None,
    agents: tuple[str, ...],
    strict_routing: bool | None,
) -> None:
    """Serve the configured agents over HTTP."""
    config = ServerConfig.from_env()
    logging.basicConfig(level=config.log_level)

    if port is not None:
        config = config.with_port(port)
    updates: dict = {}
    if host:
        updates['host'] = host
    if agents:
        updates['agents'] = list(agents)
    if strict_routing:
        updates['strict_routing'] = True
    config = config.model_copy(update=updates)

    try:
        server = AgnesServer(config)
    except AgentLoadError as e:
        raise click.ClickException(str(e)) from e
    server.start()


@cli.command()
@click.argument('text')
@click.option(
    '--url',
    'url',
    default=None,
    help='Base URL of the Agnes server. Defaults to localhost on PORT.',
)
@click.option('--agent', 'agent_id', default=None, help='Agent to address.')
@click.option('--task-id', 'task_id', default=None, help='Task to continue.')
@click.option('--session-id', 'session_id', default=None)
def ask(
    text: str,
    url: str | None,
    agent_id: str | None,
    task_id: str | None,
    session_id: str | None,
) -> None:
    """Send TEXT to an agent and print its reply."""
    url = url or f"http://localhost:{os.environ.get('PORT') or DEFAULT_PORT}"
    try:
        asyncio.run(_ask(url, text, agent_id, task_id, session_id))
    except AgnesClientError as e:
        raise click.ClickException(str(e)) from e


async def _ask(
    base_url: str,
    text: str,
    agent_id: str | None,
    task_id: str | None,
    session_id: str | None,
) -> None:
    async with httpx.AsyncClient() as httpx_client:
        client = await AgnesClient.get_client_from_agent_card_url(
            httpx_client, base_url, agent_id=agent_id
        )
        click.echo(f'Talking to {client.url}')
        response = await client.send_task(
            create_text_message_object(content=text),
            task_id=task_id,
            session_id=session_id,
        )

    if isinstance(response, JSONRPCErrorResponse):
        raise click.ClickException(
            f'{response.error.message} ({response.error.code})'
        )
    task = response.result
    click.echo(f'Task {task.id} is {task.status.state.value}')
    if task.history and task.history[-1].role == Role.agent:
        click.echo(get_message_text(task.history[-1]))
    click.echo(f'History: {len(task.history)} messages')


if __name__ == '__main__':
    cli()
