import json

from typing import Any
from uuid import uuid4

import httpx

from pydantic import ValidationError

from agnes.agents.descriptor import strip_scheme
from agnes.client.errors import AgnesClientHTTPError, AgnesClientJSONError
from agnes.server.routing import AGENT_ID_HEADER
from agnes.types import (
    AgentCard,
    JSONRPCErrorResponse,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCSuccessResponse,
    Message,
    TaskIdParams,
    TaskQueryParams,
    TaskSendParams,
)
from agnes.utils.telemetry import SpanKind, trace_class


AGENT_CARD_PATH = '/.well-known/agent.json'


class AgnesCardResolver:
    """Agent Card resolver."""

    def __init__(
        self,
        httpx_client: httpx.AsyncClient,
        base_url: str,
        agent_card_path: str = AGENT_CARD_PATH,
    ):
        """Initializes the AgnesCardResolver.

        Args:
            httpx_client: An async HTTP client instance (e.g., httpx.AsyncClient).
            base_url: The base URL of the Agnes server.
            agent_card_path: The path to the agent card endpoint, relative to
                the base URL or to an agent's path.
        """
        self.base_url = base_url.rstrip('/')
        self.agent_card_path = agent_card_path.lstrip('/')
        self.httpx_client = httpx_client

    def card_url(self, agent_id: str | None = None) -> str:
        if agent_id:
            return (
                f'{self.base_url}/{strip_scheme(agent_id)}/{self.agent_card_path}'
            )
        return f'{self.base_url}/{self.agent_card_path}'

    async def get_agent_card(
        self,
        agent_id: str | None = None,
        http_kwargs: dict[str, Any] | None = None,
    ) -> AgentCard:
        """Fetches an agent card.

        Args:
            agent_id: Agent whose card to fetch, with or without its scheme.
                The server's default agent when None.
            http_kwargs: Optional dictionary of keyword arguments to pass to the
                underlying httpx.get request.

        Returns:
            The `AgentCard`. A relative `url` is made absolute against the
            base URL.

        Raises:
            AgnesClientHTTPError: If an HTTP error occurs during the request.
            AgnesClientJSONError: If the response body cannot be decoded as
                JSON or validated against the AgentCard schema.
        """
        try:
            response = await self.httpx_client.get(
                self.card_url(agent_id), **(http_kwargs or {})
            )
            response.raise_for_status()
            card = AgentCard.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            raise AgnesClientHTTPError(e.response.status_code, str(e)) from e
        except (json.JSONDecodeError, ValidationError) as e:
            raise AgnesClientJSONError(str(e)) from e
        except httpx.RequestError as e:
            raise AgnesClientHTTPError(
                503, f'Network communication error: {e}'
            ) from e

        if card.url.startswith('/'):
            card.url = self.base_url + card.url
        return card


@trace_class(kind=SpanKind.CLIENT)
class AgnesClient:
    """Client for the task methods of one Agnes agent."""

    def __init__(
        self,
        httpx_client: httpx.AsyncClient,
        agent_card: AgentCard | None = None,
        url: str | None = None,
        agent_id: str | None = None,
    ):
        """Initializes the AgnesClient.

        Requires either an `AgentCard` or a direct `url` to an RPC endpoint.

        Args:
            httpx_client: An async HTTP client instance (e.g., httpx.AsyncClient).
            agent_card: The agent card object. If provided, `url` is taken
                from `agent_card.url`.
            url: The direct URL to an RPC endpoint. Required if `agent_card`
                is None.
            agent_id: Sent as the `X-Agent-Id` header when set, for endpoints
                that do not name the agent in their path.

        Raises:
            ValueError: If neither `agent_card` nor `url` is provided.
        """
        if agent_card:
            self.url = agent_card.url
        elif url:
            self.url = url
        else:
            raise ValueError('Must provide either agent_card or url')

        self.httpx_client = httpx_client
        self.agent_id = agent_id

    @staticmethod
    async def get_client_from_agent_card_url(
        httpx_client: httpx.AsyncClient,
        base_url: str,
        agent_id: str | None = None,
        http_kwargs: dict[str, Any] | None = None,
    ) -> 'AgnesClient':
        """Fetches an agent's card and returns a client bound to its URL.

        Raises:
            AgnesClientHTTPError: If an HTTP error occurs fetching the card.
            AgnesClientJSONError: If the card response is invalid.
        """
        agent_card = await AgnesCardResolver(
            httpx_client, base_url=base_url
        ).get_agent_card(agent_id=agent_id, http_kwargs=http_kwargs)
        return AgnesClient(httpx_client=httpx_client, agent_card=agent_card)

    async def send_task(
        self,
        message: Message,
        task_id: str | None = None,
        session_id: str | None = None,
        *,
        http_kwargs: dict[str, Any] | None = None,
    ) -> JSONRPCResponse:
        """Sends a message to the agent within a task.

        Args:
            message: The message to send.
            task_id: Task to continue. A new task ID is generated when None.
            session_id: Optional session to group the task under.
            http_kwargs: Optional dictionary of keyword arguments to pass to the
                underlying httpx.post request.

        Returns:
            The task after the exchange, or an error response.

        Raises:
            AgnesClientHTTPError: If an HTTP error occurs during the request.
            AgnesClientJSONError: If the response cannot be decoded or validated.
        """
        params = TaskSendParams(
            id=task_id or str(uuid4()), message=message, sessionId=session_id
        )
        return await self._call('tasks/send', params, http_kwargs)

    async def get_task(
        self,
        task_id: str,
        history_length: int | None = None,
        *,
        http_kwargs: dict[str, Any] | None = None,
    ) -> JSONRPCResponse:
        """Retrieves a task, optionally keeping only its last history entries."""
        params = TaskQueryParams(id=task_id, historyLength=history_length)
        return await self._call('tasks/get', params, http_kwargs)

    async def cancel_task(
        self,
        task_id: str,
        *,
        http_kwargs: dict[str, Any] | None = None,
    ) -> JSONRPCResponse:
        """Requests cancellation of a task."""
        return await self._call('tasks/cancel', TaskIdParams(id=task_id), http_kwargs)

    async def _call(
        self,
        method: str,
        params: TaskSendParams | TaskIdParams,
        http_kwargs: dict[str, Any] | None,
    ) -> JSONRPCResponse:
        request = JSONRPCRequest(
            jsonrpc='2.0',
            id=str(uuid4()),
            method=method,
            params=params.model_dump(mode='json'),
        )
        payload = await self._send_request(
            request.model_dump(mode='json'), http_kwargs
        )
        try:
            if 'error' in payload:
                return JSONRPCErrorResponse.model_validate(payload)
            return JSONRPCSuccessResponse.model_validate(payload)
        except ValidationError as e:
            raise AgnesClientJSONError(str(e)) from e

    async def _send_request(
        self,
        rpc_request_payload: dict[str, Any],
        http_kwargs: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Posts a JSON-RPC request and returns the decoded response body.

        Raises:
            AgnesClientHTTPError: If an HTTP error occurs during the request.
            AgnesClientJSONError: If the response body cannot be decoded as JSON.
        """
        kwargs = dict(http_kwargs or {})
        if self.agent_id:
            kwargs['headers'] = {
                AGENT_ID_HEADER: self.agent_id,
                **kwargs.get('headers', {}),
            }
        try:
            response = await self.httpx_client.post(
                self.url, json=rpc_request_payload, **kwargs
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise AgnesClientHTTPError(e.response.status_code, str(e)) from e
        except json.JSONDecodeError as e:
            raise AgnesClientJSONError(str(e)) from e
        except httpx.RequestError as e:
            raise AgnesClientHTTPError(
                503, f'Network communication error: {e}'
            ) from e
