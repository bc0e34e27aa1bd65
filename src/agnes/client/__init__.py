"""Client-side components for talking to an Agnes server."""

from agnes.client.client import AgnesCardResolver, AgnesClient
from agnes.client.errors import (
    AgnesClientError,
    AgnesClientHTTPError,
    AgnesClientJSONError,
)
from agnes.client.helpers import create_text_message_object


__all__ = [
    'AgnesCardResolver',
    'AgnesClient',
    'AgnesClientError',
    'AgnesClientHTTPError',
    'AgnesClientJSONError',
    'create_text_message_object',
]
