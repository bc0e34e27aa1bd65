"""Utility functions for creating and reading Message objects."""

from agnes.types import Message, Part, Role, TextPart


def new_text_message(text: str, role: Role = Role.agent) -> Message:
    """Creates a new message containing a single TextPart.

    Args:
        text: The text content of the message.
        role: The sender of the message. Defaults to `Role.agent`.

    Returns:
        A new `Message` object.
    """
    return Message(role=role, parts=[Part(root=TextPart(text=text))])


def new_agent_text_message(text: str) -> Message:
    return new_text_message(text, Role.agent)


def get_text_parts(parts: list[Part]) -> list[str]:
    """Extracts text content from all TextPart objects in a list of Parts."""
    return [part.root.text for part in parts if isinstance(part.root, TextPart)]


def get_message_text(message: Message, delimiter: str = '\n') -> str:
    """Extracts and joins all text content from a Message's parts.

    Args:
        message: The `Message` object.
        delimiter: The string to use when joining text from multiple TextParts.

    Returns:
        A single string containing all text content, or an empty string if
        no text parts are found.
    """
    return delimiter.join(get_text_parts(message.parts))
