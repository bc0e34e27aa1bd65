"""Exceptions raised by request handlers."""

from agnes.types import AgnesError, JSONRPCError


class ServerError(Exception):
    """Wrapper exception for JSON-RPC errors originating from the server's logic.

    Request handlers raise this to signal a specific error that should be
    formatted as a JSON-RPC error response.
    """

    def __init__(self, error: AgnesError | JSONRPCError | None):
        """Initializes the ServerError.

        Args:
            error: The JSON-RPC error model instance. If None, an
                `InternalError` is used when formatting the response.
        """
        self.error = error
        super().__init__(error.message if error else 'Internal error')
