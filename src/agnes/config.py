"""Server settings read from the environment."""

import os

from collections.abc import Mapping

from pydantic import BaseModel, Field, field_validator

from agnes.agents.loader import BUILTIN_AGENTS


DEFAULT_PORT = 3000


class ServerConfig(BaseModel):
    host: str = '0.0.0.0'
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    base_url: str | None = None
    """Externally visible address. `/` yields relative URLs in agent cards."""
    agents: list[str] = Field(default_factory=lambda: list(BUILTIN_AGENTS))
    """`package.module:attribute` specs of the agents to serve."""
    strict_routing: bool = False
    log_level: str = 'INFO'

    @field_validator('agents', mode='before')
    @classmethod
    def _split_agents(cls, value: object) -> object:
        if isinstance(value, str):
            return [spec.strip() for spec in value.split(',') if spec.strip()]
        return value

    @field_validator('log_level')
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def public_base_url(self) -> str:
        if self.base_url:
            return self.base_url
        return f'http://localhost:{self.port}'

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> 'ServerConfig':
        """Reads `HOST`, `PORT`, `BASE_URL`, `AGNES_AGENTS`,
        `AGNES_STRICT_ROUTING` and `LOG_LEVEL`.
        """
        environ = os.environ if environ is None else environ
        names = {
            'host': 'HOST',
            'port': 'PORT',
            'base_url': 'BASE_URL',
            'agents': 'AGNES_AGENTS',
            'strict_routing': 'AGNES_STRICT_ROUTING',
            'log_level': 'LOG_LEVEL',
        }
        return cls.model_validate(
            {field: environ[name] for field, name in names.items() if environ.get(name)}
        )

    def with_port(self, port: int) -> 'ServerConfig':
        """Returns a copy listening on `port`.

        A localhost base URL follows the new port.
        """
        base_url = self.base_url
        if base_url and 'localhost' in base_url:
            base_url = None
        return self.model_copy(update={'port': port, 'base_url': base_url})
