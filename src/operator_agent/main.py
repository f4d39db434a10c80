"""Main entry point for the operator agent CLI.

Handles provider selection, platform seeding, and the main interaction loop.
"""

import argparse
import asyncio
import sys

import yaml
from dotenv import load_dotenv

from .agent import OperatorAgent
from .clients.factory import create_client, get_available_providers, get_light_model
from .config import get_settings
from .exceptions import (
    AgentError,
    AuthenticationError,
    ProviderUnavailableError,
    RateLimitError,
)
from .logging import setup_logging
from .platforms.base import PlatformRegistry
from .platforms.memory import InMemoryPlatform
from .storage.memory import InMemoryConversationStore
from .streaming import EventType, StreamChannel, StreamEvent


def load_yaml_config(path: str = "config.yaml") -> dict:
    """Load configuration from config.yaml if it exists."""
    try:
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}


def get_provider_and_model(args: argparse.Namespace, yaml_config: dict) -> tuple[str | None, str | None]:
    """Determine the provider and model to use.

    Priority order:
    1. CLI arguments
    2. Config file (config.yaml)
    3. Environment variables (via pydantic settings)
    4. Auto-detection based on available API keys
    """
    settings = get_settings()
    llm_config = yaml_config.get("llm", {})

    # priority: cli > yaml > env
    provider = args.provider or llm_config.get("provider") or settings.detect_provider()
    model = args.model or llm_config.get("model") or settings.llm_model

    return provider, model


def build_platforms(yaml_config: dict) -> PlatformRegistry:
    """Build in-memory platforms from the `platforms` section of the config."""
    registry = PlatformRegistry()
    for name, data in (yaml_config.get("platforms") or {}).items():
        registry.register(InMemoryPlatform.from_mapping(name, data or {}))
    return registry


def _start_server(host: str, port: int) -> None:
    """Start the API server."""
    import uvicorn

    from .api.server import app

    print(f"Starting API server at http://{host}:{port}")
    print(f"API docs available at http://{host}:{port}/docs")
    uvicorn.run(app, host=host, port=port)


def main():
    """Main entry point for the operator agent CLI."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="Operator Agent CLI")
    parser.add_argument(
        "--provider",
        choices=get_available_providers(),
        help="LLM provider to use (overrides config and auto-detection)"
    )
    parser.add_argument(
        "--model",
        help="LLM model to use (overrides config)"
    )
    parser.add_argument(
        "--config",
        "--seed",
        dest="config",
        default="config.yaml",
        help="YAML file with llm settings and seeded platforms (default: config.yaml)"
    )
    parser.add_argument(
        "--user",
        default="local-operator",
        help="User id the REPL acts as (default: local-operator)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (also settable via OPERATOR_AGENT_LOG_LEVEL env var)"
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the API server instead of CLI"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the API server (default: 8000)"
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for the API server (default: 127.0.0.1)"
    )
    args = parser.parse_args()

    # setup logging early
    setup_logging(args.log_level)

    # handle API server mode
    if args.serve:
        _start_server(args.host, args.port)
        return

    yaml_config = load_yaml_config(args.config)
    provider, model = get_provider_and_model(args, yaml_config)

    if not provider:
        print("Error: No LLM provider specified and no API keys found.")
        print("Please set one of the following:")
        print("  - LLM_PROVIDER environment variable")
        print("  - provider in config.yaml")
        print("  - ANTHROPIC_API_KEY or OPENAI_API_KEY")
        sys.exit(1)

    print(f"Using provider: {provider}")
    if model:
        print(f"Using model: {model}")

    settings = get_settings()
    try:
        # extract client config parameters (excluding provider/model which are handled separately)
        llm_config = yaml_config.get("llm", {})
        client_config = {
            k: v for k, v in llm_config.items()
            if k not in ["provider", "model", "memory_model"]
        }

        client = create_client(provider, model, client_config)
        light_model = llm_config.get("memory_model") or settings.memory_model or get_light_model(provider)
        light_client = create_client(provider, light_model, client_config)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    platforms = build_platforms(yaml_config)
    if not platforms.domains:
        print(f"Warning: no platforms seeded from {args.config}; entity lookups will come back empty.")

    agent = OperatorAgent(
        client,
        platforms,
        InMemoryConversationStore(),
        light_client=light_client,
        settings=settings,
    )

    asyncio.run(run_repl(agent, args.user))


def print_event(event: StreamEvent) -> None:
    """Render one stream event to the terminal."""
    data = event.data
    if event.type == EventType.TEXT:
        print(data["chunk"], end="", flush=True)
    elif event.type == EventType.TOOL_STATUS:
        if data["status"] == "running":
            print(f"  [{data['tool']}] running...")
        elif data.get("summary"):
            print(f"  [{data['tool']}] {data['summary']}")
    elif event.type == EventType.CHART:
        spec = data["spec"]
        print(f"  [chart] {spec['type']}: {spec['title']} ({len(spec['data'])} points)")
    elif event.type == EventType.SUGGESTIONS:
        print("\nTry next:")
        for suggestion in data["suggestions"]:
            print(f"  - {suggestion}")
    elif event.type == EventType.ERROR:
        print(f"\nError: {data['message']}")


async def run_repl(agent: OperatorAgent, user_id: str) -> None:
    """Run the interactive REPL loop.

    Args:
        agent: The OperatorAgent instance to use.
        user_id: The user the session acts as.
    """
    print("Operator Agent Initialized. Type 'exit' to quit.")
    print("-" * 50)

    await agent.start()
    conversation_id = None
    try:
        while True:
            try:
                user_input = await asyncio.to_thread(input, "You: ")
            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye!")
                break

            if user_input.lower() in ("exit", "quit"):
                print("Goodbye!")
                break

            if not user_input.strip():
                continue

            channel = StreamChannel()
            try:
                turn = asyncio.create_task(
                    agent.send_message(user_id, user_input, channel, conversation_id)
                )
                # unblock the event loop below if the turn raises before streaming
                turn.add_done_callback(lambda _: channel.cancel())
                print("Agent: ", end="", flush=True)
                async for event in channel.events():
                    if event.type == EventType.DONE:
                        conversation_id = event.data["conversation_id"]
                        print()
                    else:
                        print_event(event)
                await turn

            except AuthenticationError as e:
                print(f"Authentication error: {e}")
                print("Please check your API key.")
            except RateLimitError as e:
                print(f"Rate limit exceeded: {e}")
                print("Please wait a moment and try again.")
            except ProviderUnavailableError as e:
                print(f"Provider unavailable: {e}")
                print("Please try again later.")
            except AgentError as e:
                print(f"Agent error: {e}")
            except Exception as e:
                print(f"Unexpected error: {type(e).__name__}: {e}")
    finally:
        await agent.shutdown()


if __name__ == "__main__":
    main()
