import asyncio
import os

from dotenv import load_dotenv

# Import the necessary components
from operator_agent.agent import OperatorAgent
from operator_agent.clients.anthropic import AnthropicClient
from operator_agent.platforms.base import PlatformRegistry
from operator_agent.platforms.memory import InMemoryPlatform
from operator_agent.storage.memory import InMemoryConversationStore
from operator_agent.streaming import EventType, StreamChannel
from operator_agent.types import EntityDomain

# Load environment variables (API keys)
load_dotenv()

USER_ID = "demo-user"


async def ask(agent: OperatorAgent, message: str, conversation_id: str | None = None) -> str | None:
    """Send one message and print the streamed turn. Returns the conversation id."""
    print(f"\nYou: {message}")
    channel = StreamChannel()
    turn = asyncio.create_task(agent.send_message(USER_ID, message, channel, conversation_id))

    async for event in channel.events():
        if event.type == EventType.TOOL_STATUS and event.data["summary"]:
            print(f"  [{event.data['tool']}] {event.data['summary']}")
        elif event.type == EventType.TEXT:
            print(event.data["chunk"], end="", flush=True)
        elif event.type == EventType.DONE:
            conversation_id = event.data["conversation_id"]
            print()
        elif event.type == EventType.ERROR:
            print(f"\nError: {event.data['message']}")

    await turn
    return conversation_id


async def main():
    # 1. Initialize the LLM Client
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        print("Please set ANTHROPIC_API_KEY in .env")
        return

    client = AnthropicClient(api_key=api_key)

    # 2. Describe the platforms the agent can act on
    # In production these would be real Meta / TikTok / Checkout Champ clients
    meta = InMemoryPlatform("meta", (EntityDomain.META_ADSET,))
    meta.add_entity(USER_ID, EntityDomain.META_ADSET, "42", "Spring Launch", metric=500, daily_budget=120)
    meta.add_entity(USER_ID, EntityDomain.META_ADSET, "57", "Spring Launch", metric=200, daily_budget=80)

    # 3. Initialize the Agent
    agent = OperatorAgent(client, PlatformRegistry([meta]), InMemoryConversationStore())
    await agent.start()

    try:
        # 4. Write actions are staged first and only run once confirmed
        conversation_id = await ask(agent, "Pause my Spring Launch adset")
        conversation_id = await ask(agent, "The one with id 42", conversation_id)
        await ask(agent, "yes", conversation_id)

        print(f"\nAdset 42 is now {meta.status_of(USER_ID, EntityDomain.META_ADSET, '42')}")
    finally:
        await agent.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
