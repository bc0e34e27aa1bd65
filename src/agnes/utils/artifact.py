"""Utility functions for creating Artifact objects."""

from agnes.types import Artifact, Message, Part, TextPart
from agnes.utils.message import get_text_parts


def new_text_artifact(
    text: str, name: str | None = None, description: str | None = None
) -> Artifact:
    """Creates a new Artifact containing a single TextPart."""
    return Artifact(
        name=name,
        description=description,
        parts=[Part(root=TextPart(text=text))],
    )


def artifact_from_reply(reply: Message) -> Artifact:
    """Wraps the textual content of an agent reply in an artifact.

    Text parts are joined into a single text part. A reply without any text
    has its parts carried over unchanged.
    """
    texts = get_text_parts(reply.parts)
    if texts:
        return new_text_artifact('\n'.join(texts))
    return Artifact(parts=[part.model_copy(deep=True) for part in reply.parts])
