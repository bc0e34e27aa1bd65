"""Agent descriptors: identity, advertised metadata and message handler."""

import re

from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agnes.agents.context import AgentContext, AgentLogger
from agnes.types import (
    AgentAuthentication,
    AgentCapabilities,
    AgentProvider,
    AgentSkill,
    Message,
)


_SCHEME_PREFIX = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*://')


def strip_scheme(identifier: str) -> str:
    """Returns `identifier` without a leading `scheme://` prefix."""
    return _SCHEME_PREFIX.sub('', identifier, count=1)


class ErrorReply(BaseModel):
    """Error value an agent handler returns instead of a reply message."""

    error: str


SendResponse = Message | ErrorReply
SendHandler = Callable[[Message, AgentContext], Awaitable[SendResponse]]
InitHook = Callable[[AgentLogger], Awaitable[None]]


class AgentDescriptor(BaseModel):
    """Immutable description of one agent.

    `handler` receives the inbound message and an `AgentContext` and returns
    either a reply `Message` or an `ErrorReply`.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    """URI-like identifier, e.g. `agent://hello`."""
    name: str = Field(min_length=1)
    handler: SendHandler
    description: str | None = None
    version: str | None = None
    provider: AgentProvider | None = None
    documentationUrl: str | None = None
    capabilities: AgentCapabilities | None = None
    authentication: AgentAuthentication | None = None
    defaultInputModes: list[str] | None = None
    defaultOutputModes: list[str] | None = None
    skills: list[AgentSkill] | None = None
    init: InitHook | None = None
    """Optional startup hook, awaited once before the server takes traffic."""
    cardOverrides: dict[str, Any] | None = None
    """Fields merged over the generated agent card."""

    @property
    def path_segment(self) -> str:
        """Identifier as it appears in URL paths."""
        return strip_scheme(self.id)

    def matches(self, identifier: str) -> bool:
        """True if `identifier` names this agent, with or without a scheme."""
        return identifier == self.id or (
            strip_scheme(identifier) == self.path_segment
        )
