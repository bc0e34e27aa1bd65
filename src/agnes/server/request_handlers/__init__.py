"""Request handler components for the Agnes server."""

from agnes.server.request_handlers.default_request_handler import (
    DefaultRequestHandler,
)
from agnes.server.request_handlers.jsonrpc_handler import JSONRPCHandler
from agnes.server.request_handlers.request_handler import RequestHandler
from agnes.server.request_handlers.response_helpers import (
    build_error_response,
    build_success_response,
    response_to_json,
)


__all__ = [
    'DefaultRequestHandler',
    'JSONRPCHandler',
    'RequestHandler',
    'build_error_response',
    'build_success_response',
    'response_to_json',
]
