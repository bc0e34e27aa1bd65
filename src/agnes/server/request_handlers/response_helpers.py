from typing import Any

from agnes.types import (
    AgnesError,
    InternalError,
    JSONRPCError,
    JSONRPCErrorResponse,
    JSONRPCResponse,
    JSONRPCSuccessResponse,
    Task,
)


def build_error_response(
    request_id: str | int | None,
    error: AgnesError | JSONRPCError | None,
) -> JSONRPCErrorResponse:
    """Helper method to build a JSONRPCErrorResponse."""
    return JSONRPCErrorResponse(id=request_id, error=error or InternalError())


def build_success_response(
    request_id: str | int | None, task: Task
) -> JSONRPCSuccessResponse:
    """Wraps a snapshot of `task` in a success response."""
    return JSONRPCSuccessResponse(id=request_id, result=task.model_copy(deep=True))


def response_to_json(response: JSONRPCResponse) -> dict[str, Any]:
    """Serializes a response for the wire.

    The result is dumped in full, nulls included. Only an empty error
    `data` is omitted. `id` is always present, as null when the
    request id is unknown.
    """
    if isinstance(response, JSONRPCErrorResponse):
        error = response.error.model_dump(mode='json')
        if error.get('data') is None:
            error.pop('data', None)
        return {'jsonrpc': response.jsonrpc, 'id': response.id, 'error': error}
    return response.model_dump(mode='json')
