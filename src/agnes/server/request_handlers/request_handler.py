from abc import ABC, abstractmethod

from agnes.agents.descriptor import AgentDescriptor
from agnes.types import Task, TaskIdParams, TaskQueryParams, TaskSendParams


class RequestHandler(ABC):
    """Agnes request handler interface.

    This interface defines the methods that back the JSON-RPC task methods.
    Failures are raised as `ServerError`.
    """

    @abstractmethod
    async def on_send_task(
        self, params: TaskSendParams, agent: AgentDescriptor
    ) -> Task:
        """Handles the 'tasks/send' method.

        Creates the task on first use, runs the agent's message handler and
        records the exchange.

        Args:
            params: Task ID, inbound message and optional session ID.
            agent: The agent the request was routed to.

        Returns:
            The updated `Task`.
        """

    @abstractmethod
    async def on_get_task(self, params: TaskQueryParams) -> Task:
        """Handles the 'tasks/get' method.

        Args:
            params: Task ID and optional history length.

        Returns:
            The `Task`, untouched by the call.
        """

    @abstractmethod
    async def on_cancel_task(self, params: TaskIdParams) -> Task:
        """Handles the 'tasks/cancel' method.

        Args:
            params: Parameters specifying the task ID.

        Returns:
            The `Task` with its status updated to canceled.
        """
