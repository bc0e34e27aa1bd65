import contextlib
import json
import logging

from collections.abc import AsyncIterator
from typing import Any

from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from agnes.agents.card import generate_agent_card
from agnes.agents.context import AgentLogger
from agnes.agents.errors import AgentRegistryError
from agnes.agents.registry import AgentRegistry
from agnes.server.request_handlers.jsonrpc_handler import JSONRPCHandler
from agnes.server.request_handlers.request_handler import RequestHandler
from agnes.server.request_handlers.response_helpers import (
    build_error_response,
    response_to_json,
)
from agnes.server.routing import AGENT_ID_HEADER, RequestRouter
from agnes.types import (
    AgnesError,
    InternalError,
    InvalidRequestError,
    JSONParseError,
    JSONRPCError,
    JSONRPCRequest,
    MethodNotFoundError,
)


logger = logging.getLogger(__name__)

AGENT_CARD_PATH = '/.well-known/agent.json'


class AgnesStarletteApplication:
    """A Starlette application serving every registered agent.

    Serves agent cards for discovery and a JSON-RPC endpoint, either the
    canonical one or addressed to a specific agent by path.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        http_handler: RequestHandler,
        base_url: str = '/',
        strict_routing: bool = False,
    ):
        """Initializes the AgnesStarletteApplication.

        Args:
            registry: The agents to serve. Frozen by this call.
            http_handler: The handler instance responsible for processing
              task requests.
            base_url: Externally visible base address used to build absolute
              URLs in agent cards.
            strict_routing: Refuse to fall back to the first agent when a
              request names none and several agents are registered.
        """
        registry.freeze()
        self.registry = registry
        self.base_url = base_url
        self.router = RequestRouter(registry, strict=strict_routing)
        self.handler = JSONRPCHandler(request_handler=http_handler)

    def _generate_error_response(
        self,
        request_id: str | int | None,
        error: AgnesError | JSONRPCError,
        status_code: int = 200,
    ) -> JSONResponse:
        """Creates a JSONResponse for a JSON-RPC error, logging it by severity."""
        error_resp = build_error_response(request_id, error)
        log_level = (
            logging.ERROR if isinstance(error, InternalError) else logging.WARNING
        )
        logger.log(
            log_level,
            f'Request Error (ID: {request_id}): '
            f"Code={error_resp.error.code}, Message='{error_resp.error.message}'"
            f'{", Data=" + str(error_resp.error.data) if error_resp.error.data else ""}',
        )
        return JSONResponse(response_to_json(error_resp), status_code=status_code)

    async def _handle_requests(self, request: Request) -> Response:
        """Handles JSON-RPC POST requests.

        Parse and envelope failures are answered with HTTP 400. Everything
        after the envelope is valid is answered with HTTP 200, errors
        included.
        """
        logger.debug('%s %s', request.method, request.url.path)
        try:
            body = await request.json()
        except ValueError as e:
            return self._generate_error_response(
                None, JSONParseError(data=str(e)), status_code=400
            )

        request_id = None
        if isinstance(body, dict) and isinstance(body.get('id'), str | int):
            request_id = body['id']

        try:
            rpc_request = JSONRPCRequest.model_validate(body)
        except ValidationError as e:
            return self._generate_error_response(
                request_id,
                InvalidRequestError(data=json.loads(e.json(include_url=False))),
                status_code=400,
            )

        request_id = rpc_request.id
        try:
            agent = self.router.resolve(
                request.path_params.get('agent_id'),
                request.headers.get(AGENT_ID_HEADER),
            )
        except AgentRegistryError as e:
            return self._generate_error_response(
                request_id, MethodNotFoundError(message=str(e))
            )

        logger.info(
            'Handling RPC method %s for agent %s', rpc_request.method, agent.id
        )
        try:
            response = await self.handler.handle(rpc_request, agent)
        except Exception as e:
            logger.exception('Unhandled exception: %s', e)
            return self._generate_error_response(
                request_id, InternalError(message=str(e))
            )
        return JSONResponse(response_to_json(response))

    async def _handle_get_agent_card(self, request: Request) -> JSONResponse:
        """Serves the card of the agent named by the path, or the first agent."""
        try:
            agent = self.router.resolve_card(
                request.path_params.get('agent_id'),
                request.headers.get(AGENT_ID_HEADER),
            )
        except AgentRegistryError as e:
            return JSONResponse({'error': str(e)}, status_code=404)
        card = generate_agent_card(agent, self.base_url)
        return JSONResponse(card.model_dump(mode='json'))

    async def _handle_index(self, request: Request) -> JSONResponse:
        return JSONResponse(
            {
                'message': 'Agnes server running.',
                'agents': [
                    {
                        'id': agent.id,
                        'name': agent.name,
                        'url': generate_agent_card(agent, self.base_url).url,
                    }
                    for agent in self.registry
                ],
            }
        )

    async def initialize_agents(self) -> None:
        """Awaits the `init` hook of every agent, in registration order."""
        for agent in self.registry:
            if agent.init is not None:
                logger.info('Initializing agent %s', agent.id)
                await agent.init(AgentLogger(None, agent.id))

    @contextlib.asynccontextmanager
    async def lifespan(self, app: Starlette) -> AsyncIterator[None]:
        await self.initialize_agents()
        names = ', '.join(agent.id for agent in self.registry) or 'none'
        logger.info('Serving agents: %s', names)
        yield

    def routes(
        self,
        agent_card_url: str = AGENT_CARD_PATH,
        rpc_url: str = '/rpc',
    ) -> list[Route]:
        """Returns the Starlette Routes for the Agnes endpoints.

        Args:
            agent_card_url: The URL path for the agent card endpoint, also
              mounted under each agent's path segment.
            rpc_url: The URL path for the canonical JSON-RPC endpoint.

        Returns:
            A list of Starlette Route objects.
        """
        return [
            Route('/', self._handle_index, methods=['GET'], name='index'),
            Route(
                rpc_url,
                self._handle_requests,
                methods=['POST'],
                name='rpc',
            ),
            Route(
                agent_card_url,
                self._handle_get_agent_card,
                methods=['GET'],
                name='agent_card',
            ),
            Route(
                '/{agent_id}' + agent_card_url,
                self._handle_get_agent_card,
                methods=['GET'],
                name='agent_scoped_card',
            ),
            Route(
                '/{agent_id}',
                self._handle_requests,
                methods=['POST'],
                name='agent_rpc',
            ),
            Route(
                '/{agent_id}/{rest:path}',
                self._handle_requests,
                methods=['POST'],
                name='agent_scoped_rpc',
            ),
        ]

    def build(
        self,
        agent_card_url: str = AGENT_CARD_PATH,
        rpc_url: str = '/rpc',
        **kwargs: Any,
    ) -> Starlette:
        """Builds and returns the Starlette application instance.

        Args:
            agent_card_url: The URL path for the agent card endpoint.
            rpc_url: The URL path for the canonical JSON-RPC endpoint.
            **kwargs: Additional keyword arguments to pass to the Starlette
              constructor.

        Returns:
            A configured Starlette application instance.
        """
        app_routes = self.routes(agent_card_url, rpc_url)
        if 'routes' in kwargs:
            kwargs['routes'] = [*kwargs['routes'], *app_routes]
        else:
            kwargs['routes'] = app_routes

        kwargs['middleware'] = [
            *kwargs.get('middleware', []),
            Middleware(
                CORSMiddleware,
                allow_origins=['*'],
                allow_methods=['GET', 'POST', 'OPTIONS'],
                allow_headers=['Content-Type', 'Authorization', AGENT_ID_HEADER],
            ),
        ]
        kwargs.setdefault('lifespan', self.lifespan)
        return Starlette(**kwargs)
