"""Agent descriptors, registry and discovery documents."""

from agnes.agents.card import agent_url, generate_agent_card
from agnes.agents.context import AgentContext, AgentLogger
from agnes.agents.descriptor import (
    AgentDescriptor,
    ErrorReply,
    SendHandler,
    SendResponse,
    strip_scheme,
)
from agnes.agents.errors import (
    AgentLoadError,
    AgentNotFoundError,
    AgentRegistryError,
    DuplicateAgentError,
    NoAgentsAvailableError,
    RegistryFrozenError,
)
from agnes.agents.loader import BUILTIN_AGENTS, load_agent, load_agents
from agnes.agents.registry import AgentRegistry


__all__ = [
    'BUILTIN_AGENTS',
    'AgentContext',
    'AgentDescriptor',
    'AgentLoadError',
    'AgentLogger',
    'AgentNotFoundError',
    'AgentRegistry',
    'AgentRegistryError',
    'DuplicateAgentError',
    'ErrorReply',
    'NoAgentsAvailableError',
    'RegistryFrozenError',
    'SendHandler',
    'SendResponse',
    'agent_url',
    'generate_agent_card',
    'load_agent',
    'load_agents',
    'strip_scheme',
]
