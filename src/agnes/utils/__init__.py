"""Utility functions for the Agnes runtime."""

from agnes.utils.artifact import artifact_from_reply, new_text_artifact
from agnes.utils.errors import ServerError
from agnes.utils.message import (
    get_message_text,
    get_text_parts,
    new_agent_text_message,
    new_text_message,
)


__all__ = [
    'ServerError',
    'artifact_from_reply',
    'get_message_text',
    'get_text_parts',
    'new_agent_text_message',
    'new_text_artifact',
    'new_text_message',
]
