import logging

from collections.abc import Iterable, Iterator

from agnes.agents.descriptor import AgentDescriptor
from agnes.agents.errors import (
    AgentNotFoundError,
    DuplicateAgentError,
    RegistryFrozenError,
)


logger = logging.getLogger(__name__)


class AgentRegistry:
    """Mapping of agent identifier to `AgentDescriptor`.

    Built once at startup and frozen before the server takes traffic.
    Iteration and `all()` follow registration order.
    """

    def __init__(self, descriptors: Iterable[AgentDescriptor] = ()) -> None:
        self._agents: dict[str, AgentDescriptor] = {}
        self._frozen = False
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: AgentDescriptor) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f'Cannot register {descriptor.id}: registry is frozen'
            )
        if descriptor.id in self._agents:
            logger.error('Duplicate agent identifier: %s', descriptor.id)
            raise DuplicateAgentError(descriptor.id)
        for existing in self._agents.values():
            if existing.path_segment == descriptor.path_segment:
                logger.error(
                    'Agent %s shares path segment %s with %s',
                    descriptor.id,
                    descriptor.path_segment,
                    existing.id,
                )
                raise DuplicateAgentError(descriptor.id)
        self._agents[descriptor.id] = descriptor
        logger.info('Registered agent %s (%s)', descriptor.id, descriptor.name)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, identifier: str) -> AgentDescriptor | None:
        """Looks up an agent by its exact identifier."""
        return self._agents.get(identifier)

    def find(self, identifier: str) -> AgentDescriptor | None:
        """Looks up an agent by identifier, with or without its scheme."""
        descriptor = self.get(identifier)
        if descriptor is not None:
            return descriptor
        for descriptor in self._agents.values():
            if descriptor.matches(identifier):
                return descriptor
        return None

    def resolve(self, identifier: str) -> AgentDescriptor:
        """Like `find`, but raises `AgentNotFoundError` on a miss."""
        descriptor = self.find(identifier)
        if descriptor is None:
            raise AgentNotFoundError(identifier)
        return descriptor

    def all(self) -> list[AgentDescriptor]:
        return list(self._agents.values())

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and self.find(identifier) is not None

    def __iter__(self) -> Iterator[AgentDescriptor]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._agents)
