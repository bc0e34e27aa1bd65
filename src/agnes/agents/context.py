"""Per-call context handed to agent handlers."""

import logging

from typing import Any


logger = logging.getLogger('agnes.agent')


class AgentLogger:
    """Narrow logging capability injected into each handler call.

    Records go through a `logging.LoggerAdapter`, tagged with the task and
    agent ids of the call.
    """

    def __init__(
        self,
        task_id: str | None,
        agent_id: str,
        base_logger: logging.Logger | None = None,
    ):
        self._adapter = logging.LoggerAdapter(
            base_logger or logger,
            {'taskId': task_id, 'agentId': agent_id},
        )

    def log(self, msg: str, *args: Any) -> None:
        self._adapter.info(self._tag(msg), *args)

    def warn(self, msg: str, *args: Any) -> None:
        self._adapter.warning(self._tag(msg), *args)

    def error(self, msg: str, *args: Any) -> None:
        self._adapter.error(self._tag(msg), *args)

    def _tag(self, msg: str) -> str:
        extra = self._adapter.extra or {}
        task = extra['taskId'] or '-'
        return f"[{extra['agentId']} {task}] {msg}"


class AgentContext:
    """Context of a single `tasks/send` exchange."""

    def __init__(
        self,
        task_id: str,
        agent_id: str,
        session_id: str | None = None,
        logger: AgentLogger | None = None,
    ):
        self._task_id = task_id
        self._agent_id = agent_id
        self._session_id = session_id
        self._logger = logger or AgentLogger(task_id, agent_id)

    @property
    def task_id(self) -> str:
        return self._task_id

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def logger(self) -> AgentLogger:
        return self._logger
