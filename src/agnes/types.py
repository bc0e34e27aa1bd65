"""Wire models for the Agnes agent runtime.

Field names follow the protocol's camelCase spelling so that models can be
dumped straight to JSON without aliases.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, RootModel


class Role(str, Enum):
    """Sender of a message."""

    user = 'user'
    agent = 'agent'
    system = 'system'


class TextPart(BaseModel):
    type: Literal['text'] = 'text'
    text: str
    metadata: dict[str, Any] | None = None


class DataPart(BaseModel):
    type: Literal['data'] = 'data'
    data: Any
    metadata: dict[str, Any] | None = None


class FilePart(BaseModel):
    type: Literal['file'] = 'file'
    fileUrl: str | None = None
    """Location of the file content."""
    mimeType: str | None = None
    name: str | None = None
    metadata: dict[str, Any] | None = None


class Part(RootModel[TextPart | DataPart | FilePart]):
    root: TextPart | DataPart | FilePart = Field(discriminator='type')


class Message(BaseModel):
    """A single turn exchanged between a caller and an agent."""

    role: Role
    parts: list[Part]
    metadata: dict[str, Any] | None = None


class TaskState(str, Enum):
    """Lifecycle states of a task.

    `input_required` is part of the protocol vocabulary but is never
    produced by this runtime.
    """

    submitted = 'submitted'
    working = 'working'
    input_required = 'input-required'
    completed = 'completed'
    canceled = 'canceled'
    failed = 'failed'


class TaskStatus(BaseModel):
    state: TaskState
    timestamp: str | None = None
    """ISO-8601 UTC time of the transition into `state`."""


class Artifact(BaseModel):
    """Derived output of a successful exchange."""

    name: str | None = None
    description: str | None = None
    parts: list[Part]
    index: int = 0
    metadata: dict[str, Any] | None = None


class Task(BaseModel):
    id: str
    agentId: str
    sessionId: str | None = None
    status: TaskStatus
    history: list[Message] = Field(default_factory=list)
    artifacts: list[Artifact] | None = None
    metadata: dict[str, Any] | None = None


class AgentProvider(BaseModel):
    organization: str
    url: str | None = None


class AgentCapabilities(BaseModel):
    streaming: bool = False
    pushNotifications: bool = False
    stateTransitionHistory: bool = False


class AgentAuthentication(BaseModel):
    """Authentication schemes advertised by an agent.

    `credentials` is always emitted as null; secrets are never echoed.
    """

    schemes: list[str]
    credentials: None = None


class AgentSkill(BaseModel):
    id: str
    name: str
    description: str | None = None
    tags: list[str] | None = None
    examples: list[str] | None = None
    inputModes: list[str] | None = None
    outputModes: list[str] | None = None


class AgentCard(BaseModel):
    """Discovery document served at `/.well-known/agent.json`."""

    name: str
    description: str | None = None
    url: str
    version: str = '1.0.0'
    provider: AgentProvider | None = None
    documentationUrl: str | None = None
    capabilities: AgentCapabilities = Field(default_factory=AgentCapabilities)
    authentication: AgentAuthentication | None = None
    defaultInputModes: list[str] = Field(default_factory=lambda: ['text'])
    defaultOutputModes: list[str] = Field(default_factory=lambda: ['text'])
    skills: list[AgentSkill] = Field(default_factory=list)


# JSON-RPC errors


class JSONRPCError(BaseModel):
    """Generic JSON-RPC error object."""

    code: int
    message: str
    data: Any | None = None


class JSONParseError(BaseModel):
    code: Literal[-32700] = -32700
    message: str = 'Invalid JSON payload'
    data: Any | None = None


class InvalidRequestError(BaseModel):
    code: Literal[-32600] = -32600
    message: str = 'Request payload validation error'
    data: Any | None = None


class MethodNotFoundError(BaseModel):
    code: Literal[-32601] = -32601
    message: str = 'Method not found'
    data: Any | None = None


class InvalidParamsError(BaseModel):
    code: Literal[-32602] = -32602
    message: str = 'Invalid parameters'
    data: Any | None = None


class InternalError(BaseModel):
    code: Literal[-32603] = -32603
    message: str = 'Internal error'
    data: Any | None = None


class TaskNotFoundError(BaseModel):
    code: Literal[-32001] = -32001
    message: str = 'Task not found'
    data: Any | None = None


class TaskNotCancelableError(BaseModel):
    code: Literal[-32002] = -32002
    message: str = 'Task cannot be canceled'
    data: Any | None = None


class PushNotificationNotSupportedError(BaseModel):
    code: Literal[-32003] = -32003
    message: str = 'Push Notification is not supported'
    data: Any | None = None


class UnsupportedOperationError(BaseModel):
    code: Literal[-32004] = -32004
    message: str = 'This operation is not supported'
    data: Any | None = None


AgnesError = (
    JSONParseError
    | InvalidRequestError
    | MethodNotFoundError
    | InvalidParamsError
    | InternalError
    | TaskNotFoundError
    | TaskNotCancelableError
    | PushNotificationNotSupportedError
    | UnsupportedOperationError
)


# JSON-RPC envelopes


class JSONRPCRequest(BaseModel):
    """Inbound JSON-RPC 2.0 envelope.

    `params` is left untyped here; each method validates it against its
    own schema.
    """

    jsonrpc: Literal['2.0']
    id: str | int | None = None
    method: str = Field(min_length=1)
    params: Any | None = None


class JSONRPCErrorResponse(BaseModel):
    jsonrpc: Literal['2.0'] = '2.0'
    id: str | int | None = None
    error: AgnesError | JSONRPCError


class JSONRPCSuccessResponse(BaseModel):
    jsonrpc: Literal['2.0'] = '2.0'
    id: str | int | None = None
    result: Task


JSONRPCResponse = JSONRPCSuccessResponse | JSONRPCErrorResponse


# Method parameters


class TaskSendParams(BaseModel):
    id: str
    message: Message
    sessionId: str | None = None
    metadata: dict[str, Any] | None = None


class TaskIdParams(BaseModel):
    id: str
    metadata: dict[str, Any] | None = None


class TaskQueryParams(TaskIdParams):
    historyLength: int | None = Field(default=None, ge=0)
