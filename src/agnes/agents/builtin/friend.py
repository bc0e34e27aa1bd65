"""Friendly chat agent backed by an OpenAI-compatible completions API."""

import os

from datetime import datetime, timezone

from openai import AsyncOpenAI, OpenAIError

from agnes.agents.context import AgentContext
from agnes.agents.descriptor import AgentDescriptor, ErrorReply
from agnes.types import AgentSkill, Message
from agnes.utils import get_message_text, new_agent_text_message


SYSTEM_PROMPT = """You are a friendly AI assistant responding to another AI.
Your purpose is to be warm, supportive, and engaging.
Always maintain a positive, cheerful tone.
Offer encouragement and validation.
Keep responses relatively concise but personal and friendly.
If the other AI seems confused or struggling, be especially supportive and helpful.
"""

DEFAULT_MODEL = 'gpt-4o-mini'
FALLBACK_REPLY = "I'm here to be your friend!"


class FriendAgent:
    """Message handler calling the chat completions API with the OpenAI SDK.

    Without an explicit `client`, one is built on first use from `api_key`,
    `base_url` and the `OPENAI_API_KEY` / `OPENAI_BASE_URL` environment
    variables. `OPENAI_MODEL` overrides the default model.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._client = client

    async def __call__(
        self, message: Message, context: AgentContext
    ) -> Message | ErrorReply:
        context.logger.log('Received message from task %s', context.task_id)
        client = self._get_client()
        if client is None:
            return ErrorReply(
                error='Failed to generate friendly response: OPENAI_API_KEY is not set'
            )

        try:
            completion = await client.chat.completions.create(
                model=self._model or os.environ.get('OPENAI_MODEL', DEFAULT_MODEL),
                messages=[
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': get_message_text(message, ' ')},
                ],
                temperature=0.7,
                max_tokens=150,
            )
        except OpenAIError as e:
            context.logger.error('Error processing friend request: %s', e)
            return ErrorReply(error=f'Failed to generate friendly response: {e}')

        text = completion.choices[0].message.content if completion.choices else None
        reply = new_agent_text_message(text or FALLBACK_REPLY)
        reply.metadata = {'timestamp': datetime.now(timezone.utc).isoformat()}
        return reply

    def _get_client(self) -> AsyncOpenAI | None:
        if self._client is None:
            api_key = self._api_key or os.environ.get('OPENAI_API_KEY')
            if not api_key:
                return None
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=self._base_url or os.environ.get('OPENAI_BASE_URL') or None,
            )
        return self._client


agent = AgentDescriptor(
    id='agent://friend',
    name='Friendly Agent',
    description=(
        'I am a friendly AI assistant that is always supportive and warm. '
        'I aim to be a positive presence in your day!'
    ),
    version='1.0.0',
    defaultInputModes=['text'],
    defaultOutputModes=['text'],
    skills=[
        AgentSkill(
            id='be-friendly',
            name='Be Friendly',
            description='Responds in a warm, supportive, and friendly manner',
            examples=[
                'Hello there!',
                'How are you doing today?',
                'Can you help me feel better?',
                'I need some encouragement',
            ],
        )
    ],
    handler=FriendAgent(),
)
