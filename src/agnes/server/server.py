import logging

from typing import Any

from starlette.applications import Starlette

from agnes.agents.card import agent_url
from agnes.agents.loader import load_agents
from agnes.agents.registry import AgentRegistry
from agnes.config import ServerConfig
from agnes.server.apps.starlette_app import AgnesStarletteApplication
from agnes.server.request_handlers import DefaultRequestHandler
from agnes.server.tasks import InMemoryTaskStore, TaskStore


logger = logging.getLogger(__name__)


class AgnesServer:
    """Agnes server running the Starlette application with Uvicorn."""

    def __init__(
        self,
        config: ServerConfig,
        registry: AgentRegistry | None = None,
        task_store: TaskStore | None = None,
    ):
        """Initializes the AgnesServer.

        Args:
            config: Server settings.
            registry: Agents to serve. Loaded from `config.agents` when None.
            task_store: Defaults to an `InMemoryTaskStore`.
        """
        self.config = config
        if registry is None:
            registry = AgentRegistry(load_agents(config.agents))
        self.registry = registry
        self.task_store = task_store if task_store is not None else InMemoryTaskStore()

    def app(self, **kwargs: Any) -> Starlette:
        """Builds and returns the Starlette application instance."""
        logger.info('Building Agnes application instance')
        return AgnesStarletteApplication(
            registry=self.registry,
            http_handler=DefaultRequestHandler(task_store=self.task_store),
            base_url=self.config.public_base_url,
            strict_routing=self.config.strict_routing,
        ).build(**kwargs)

    def start(self, **kwargs: Any) -> None:
        """Starts the server using Uvicorn."""
        import uvicorn

        app = self.app()
        logger.info('Agnes is running at %s', self.config.public_base_url)
        for agent in self.registry:
            logger.info(
                '- %s (%s)',
                agent.name,
                agent_url(agent, self.config.public_base_url),
            )
        uvicorn.run(
            app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower(),
            **kwargs,
        )
