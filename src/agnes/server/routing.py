"""Resolution of the agent an inbound request targets."""

import logging

from agnes.agents.descriptor import AgentDescriptor
from agnes.agents.errors import AgentNotFoundError, NoAgentsAvailableError
from agnes.agents.registry import AgentRegistry


logger = logging.getLogger(__name__)

AGENT_ID_HEADER = 'X-Agent-Id'


class RequestRouter:
    """Picks the target agent of a request.

    An explicit identifier (URL path segment first, then the `X-Agent-Id`
    header) must match a registered agent. Without one, the first
    registered agent is used, unless `strict` is set and several agents are
    registered.
    """

    def __init__(self, registry: AgentRegistry, strict: bool = False):
        self.registry = registry
        self.strict = strict

    def resolve(
        self,
        path_agent_id: str | None = None,
        header_agent_id: str | None = None,
    ) -> AgentDescriptor:
        """Resolves the target agent.

        Raises:
            NoAgentsAvailableError: If the registry is empty.
            AgentNotFoundError: If an explicit identifier matches nothing, or
                strict routing cannot pick a single agent.
        """
        if not len(self.registry):
            raise NoAgentsAvailableError()

        for explicit in (path_agent_id, header_agent_id):
            if explicit:
                return self.registry.resolve(explicit)

        if len(self.registry) > 1:
            if self.strict:
                raise AgentNotFoundError(
                    None,
                    'No agent specified; use an agent path or the '
                    f'{AGENT_ID_HEADER} header',
                )
            logger.warning(
                'No agent specified among %d registered agents; '
                'falling back to the first one.',
                len(self.registry),
            )
        return self.registry.all()[0]

    def resolve_card(
        self,
        path_agent_id: str | None = None,
        header_agent_id: str | None = None,
    ) -> AgentDescriptor:
        """Resolves the agent whose card a discovery request asks for.

        The bare discovery path always serves the first registered agent.
        """
        if not len(self.registry):
            raise NoAgentsAvailableError('No agents found')
        for explicit in (path_agent_id, header_agent_id):
            if explicit:
                return self.registry.resolve(explicit)
        return self.registry.all()[0]
