"""Custom exceptions for the Agnes client."""


class AgnesClientError(Exception):
    """Base exception for Agnes client errors."""


class AgnesClientHTTPError(AgnesClientError):
    """Client exception for HTTP errors received from the server."""

    def __init__(self, status_code: int, message: str):
        """Initializes the AgnesClientHTTPError.

        Args:
            status_code: The HTTP status code of the response.
            message: A descriptive error message.
        """
        self.status_code = status_code
        self.message = message
        super().__init__(f'HTTP Error {status_code}: {message}')


class AgnesClientJSONError(AgnesClientError):
    """Client exception for JSON errors during response parsing or validation."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f'JSON Error: {message}')
