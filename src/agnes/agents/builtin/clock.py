"""Agent reporting the current time in a handful of formats."""

from datetime import datetime, timezone
from email.utils import format_datetime

from agnes.agents.context import AgentContext
from agnes.agents.descriptor import AgentDescriptor
from agnes.types import AgentSkill, Message
from agnes.utils import get_message_text, new_agent_text_message


def describe_time(text: str, now: datetime) -> str:
    """Formats `now` according to the keywords found in `text`.

    `now` must be timezone-aware.
    """
    text = text.lower()
    utc = now.astimezone(timezone.utc)
    if 'unix' in text or 'timestamp' in text:
        return f'The current Unix timestamp is: {int(now.timestamp())}'
    if 'utc' in text or 'gmt' in text:
        return f'The current UTC time is: {format_datetime(utc, usegmt=True)}'
    if 'iso' in text or 'format' in text:
        iso = utc.isoformat(timespec='milliseconds').replace('+00:00', 'Z')
        return f'The current time in ISO format is: {iso}'
    if 'local' in text or 'my time' in text:
        return f'The current local time is: {now.astimezone():%c}'
    return f'The current time is: {now.astimezone():%a %b %d %Y %H:%M:%S %Z}'


async def tell_time(message: Message, context: AgentContext) -> Message:
    context.logger.log('Received message from task %s', context.task_id)
    now = datetime.now(timezone.utc)
    reply = new_agent_text_message(
        describe_time(get_message_text(message, ' '), now)
    )
    reply.metadata = {'timestamp': now.isoformat()}
    return reply


agent = AgentDescriptor(
    id='agent://time',
    name='Time Agent',
    description=(
        'I provide the current time in various formats. Try asking for the '
        'time in UTC, local time, ISO format, or Unix timestamp!'
    ),
    version='1.0.0',
    defaultInputModes=['text'],
    defaultOutputModes=['text'],
    skills=[
        AgentSkill(
            id='get-time',
            name='Get Current Time',
            description='Returns the current time in various formats',
            examples=[
                'What time is it?',
                'Tell me the current UTC time',
                'What is the current Unix timestamp?',
                'Show me the time in ISO format',
            ],
        )
    ],
    handler=tell_time,
)
