"""Exceptions for agent registration, loading and routing."""


class AgentRegistryError(Exception):
    """Base exception for agent registry errors."""


class DuplicateAgentError(AgentRegistryError):
    """Raised when an agent identifier is registered twice."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f'Agent already registered: {agent_id}')


class RegistryFrozenError(AgentRegistryError):
    """Raised when registering into a registry that is already serving."""


class AgentNotFoundError(AgentRegistryError):
    """Raised when an explicit agent identifier matches no registered agent."""

    def __init__(self, agent_id: str | None, message: str | None = None):
        self.agent_id = agent_id
        super().__init__(message or f'Agent not found: {agent_id}')


class NoAgentsAvailableError(AgentRegistryError):
    """Raised when a request needs an agent but none is registered."""

    def __init__(self, message: str = 'No agents available'):
        super().__init__(message)


class AgentLoadError(Exception):
    """Raised when an agent descriptor cannot be imported."""
