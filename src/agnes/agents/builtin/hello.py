from agnes.agents.context import AgentContext
from agnes.agents.descriptor import AgentDescriptor
from agnes.types import AgentProvider, AgentSkill, Message, TextPart
from agnes.utils import new_agent_text_message


async def greet(message: Message, context: AgentContext) -> Message:
    context.logger.log('Received message from task %s', context.task_id)
    words = []
    if message.parts and isinstance(message.parts[0].root, TextPart):
        words = message.parts[0].root.text.split()
    user_name = words[-1] if words else 'there'
    return new_agent_text_message(
        f"Hello {user_name}! I'm the greeting agent. How can I help you today?"
    )


agent = AgentDescriptor(
    id='agent://hello',
    name='Hello Agent',
    description='A simple agent that responds with a greeting',
    version='1.0.0',
    provider=AgentProvider(organization='Agentopolis'),
    defaultInputModes=['text'],
    defaultOutputModes=['text'],
    skills=[
        AgentSkill(
            id='greeting',
            name='Greeting',
            description='Responds with a friendly greeting',
            examples=['Hello', 'Hi there', 'How are you?'],
        )
    ],
    handler=greet,
)
