"""HTTP application components for the Agnes server."""

from agnes.server.apps.starlette_app import (
    AGENT_CARD_PATH,
    AgnesStarletteApplication,
)


__all__ = ['AGENT_CARD_PATH', 'AgnesStarletteApplication']
