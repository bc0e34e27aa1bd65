"""Imports agent descriptors named by `package.module:attribute` specs."""

import importlib
import logging

from collections.abc import Iterable

from agnes.agents.descriptor import AgentDescriptor
from agnes.agents.errors import AgentLoadError


logger = logging.getLogger(__name__)

BUILTIN_AGENTS = [
    'agnes.agents.builtin.hello:agent',
    'agnes.agents.builtin.clock:agent',
    'agnes.agents.builtin.friend:agent',
]


def load_agent(spec: str) -> AgentDescriptor:
    """Imports the descriptor named by `spec`.

    Args:
        spec: `package.module:attribute`. The attribute may also be a
            zero-argument callable returning the descriptor.

    Raises:
        AgentLoadError: If the spec is malformed, the import fails, or the
            attribute is not an `AgentDescriptor`.
    """
    module_name, sep, attribute = spec.strip().partition(':')
    if not sep or not module_name or not attribute:
        raise AgentLoadError(
            f"Invalid agent spec '{spec}', expected 'package.module:attribute'"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise AgentLoadError(f'Cannot import {module_name}: {e}') from e

    target = getattr(module, attribute, None)
    if target is None:
        raise AgentLoadError(f'{module_name} has no attribute {attribute}')
    if callable(target) and not isinstance(target, AgentDescriptor):
        target = target()
    if not isinstance(target, AgentDescriptor):
        raise AgentLoadError(
            f'{spec} is a {type(target).__name__}, not an AgentDescriptor'
        )
    logger.debug('Loaded agent %s from %s', target.id, spec)
    return target


def load_agents(specs: Iterable[str]) -> list[AgentDescriptor]:
    return [load_agent(spec) for spec in specs if spec.strip()]
