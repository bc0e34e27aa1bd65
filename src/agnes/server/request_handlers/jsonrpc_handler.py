import json
import logging

from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from agnes.agents.descriptor import AgentDescriptor
from agnes.server.request_handlers.request_handler import RequestHandler
from agnes.server.request_handlers.response_helpers import (
    build_error_response,
    build_success_response,
)
from agnes.types import (
    InvalidParamsError,
    JSONRPCRequest,
    JSONRPCResponse,
    MethodNotFoundError,
    PushNotificationNotSupportedError,
    TaskIdParams,
    TaskQueryParams,
    TaskSendParams,
    UnsupportedOperationError,
)
from agnes.utils.errors import ServerError
from agnes.utils.telemetry import SpanKind, trace_class


logger = logging.getLogger(__name__)

P = TypeVar('P', bound=BaseModel)

TASKS_SEND = 'tasks/send'
TASKS_GET = 'tasks/get'
TASKS_CANCEL = 'tasks/cancel'

STREAMING_METHODS = frozenset({'tasks/sendSubscribe', 'tasks/resubscribe'})
PUSH_NOTIFICATION_METHODS = frozenset(
    {'tasks/pushNotification/set', 'tasks/pushNotification/get'}
)


def parse_params(model: type[P], request: JSONRPCRequest) -> P:
    """Validates the request params against the method's schema.

    Raises:
        ServerError: `InvalidParamsError` carrying the validation details.
    """
    try:
        return model.model_validate(
            request.params if request.params is not None else {}
        )
    except ValidationError as e:
        raise ServerError(
            error=InvalidParamsError(
                message=f'Invalid parameters for {request.method}',
                data=json.loads(e.json(include_url=False)),
            )
        ) from e


@trace_class(kind=SpanKind.SERVER)
class JSONRPCHandler:
    """Maps JSON-RPC requests to the request handler and shapes the responses."""

    def __init__(self, request_handler: RequestHandler):
        """Initializes the JSONRPCHandler.

        Args:
            request_handler: The underlying `RequestHandler` instance to
                delegate requests to.
        """
        self.request_handler = request_handler
        self._methods: dict[
            str,
            Callable[[JSONRPCRequest, AgentDescriptor], Awaitable[JSONRPCResponse]],
        ] = {
            TASKS_SEND: self.on_send_task,
            TASKS_GET: self.on_get_task,
            TASKS_CANCEL: self.on_cancel_task,
        }

    async def handle(
        self, request: JSONRPCRequest, agent: AgentDescriptor
    ) -> JSONRPCResponse:
        """Dispatches a validated envelope by method name.

        Args:
            request: The validated JSON-RPC envelope.
            agent: The agent the request was routed to.

        Returns:
            A success or error response echoing the request id.
        """
        method = self._methods.get(request.method)
        if method is not None:
            return await method(request, agent)

        if request.method in STREAMING_METHODS:
            error = UnsupportedOperationError(
                message=f'{request.method} is not supported by this server'
            )
        elif request.method in PUSH_NOTIFICATION_METHODS:
            error = PushNotificationNotSupportedError()
        else:
            error = MethodNotFoundError(
                message=f'Method not found: {request.method}'
            )
        logger.warning('Rejected method %s', request.method)
        return build_error_response(request.id, error)

    async def on_send_task(
        self, request: JSONRPCRequest, agent: AgentDescriptor
    ) -> JSONRPCResponse:
        """Handles the 'tasks/send' JSON-RPC method."""
        try:
            params = parse_params(TaskSendParams, request)
            task = await self.request_handler.on_send_task(params, agent)
            return build_success_response(request.id, task)
        except ServerError as e:
            return build_error_response(request.id, e.error)

    async def on_get_task(
        self, request: JSONRPCRequest, agent: AgentDescriptor
    ) -> JSONRPCResponse:
        """Handles the 'tasks/get' JSON-RPC method."""
        try:
            params = parse_params(TaskQueryParams, request)
            task = await self.request_handler.on_get_task(params)
            return build_success_response(request.id, task)
        except ServerError as e:
            return build_error_response(request.id, e.error)

    async def on_cancel_task(
        self, request: JSONRPCRequest, agent: AgentDescriptor
    ) -> JSONRPCResponse:
        """Handles the 'tasks/cancel' JSON-RPC method."""
        try:
            params = parse_params(TaskIdParams, request)
            task = await self.request_handler.on_cancel_task(params)
            return build_success_response(request.id, task)
        except ServerError as e:
            return build_error_response(request.id, e.error)
