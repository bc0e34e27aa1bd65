"""Builds discovery documents (agent cards) from agent descriptors."""

from agnes.agents.descriptor import AgentDescriptor
from agnes.types import AgentAuthentication, AgentCapabilities, AgentCard


def agent_url(descriptor: AgentDescriptor, base_url: str) -> str:
    """Absolute address of an agent: `{base}/{identifier-without-scheme}`.

    A base of `/` yields a relative URL.
    """
    base = base_url.rstrip('/')
    return f'{base}/{descriptor.path_segment}'


def generate_agent_card(descriptor: AgentDescriptor, base_url: str) -> AgentCard:
    """Builds the agent card for `descriptor`.

    Pure function of its inputs. Missing fields get protocol defaults, and
    only the authentication scheme names are copied over.

    Args:
        descriptor: The agent to describe.
        base_url: Externally visible base address of the server.

    Returns:
        The `AgentCard`, with `cardOverrides` applied on top.
    """
    capabilities = descriptor.capabilities or AgentCapabilities()
    card = AgentCard(
        name=descriptor.name,
        description=descriptor.description,
        url=agent_url(descriptor, base_url),
        version=descriptor.version or '1.0.0',
        provider=descriptor.provider,
        documentationUrl=descriptor.documentationUrl,
        capabilities=capabilities.model_copy(),
        authentication=(
            AgentAuthentication(
                schemes=list(descriptor.authentication.schemes)
            )
            if descriptor.authentication
            else None
        ),
        defaultInputModes=list(descriptor.defaultInputModes or ['text']),
        defaultOutputModes=list(descriptor.defaultOutputModes or ['text']),
        skills=[skill.model_copy() for skill in descriptor.skills or []],
    )
    if descriptor.cardOverrides:
        card = AgentCard.model_validate(
            {**card.model_dump(), **descriptor.cardOverrides}
        )
    return card
