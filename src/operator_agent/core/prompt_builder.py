"""Prompt construction and formatting utilities.

This module builds the system context for a turn and the user-facing
messages the conversation manager persists.
"""

from ..prompts import MEMORY_SECTION, PENDING_SECTION, SYSTEM_PROMPT
from ..tools.base import BaseTool
from ..types import MemoryFact, MessageRole, PendingAction, UnifiedMessage


class PromptBuilder:
    """Constructs and formats prompts for the agent.

    The system context is the base prompt with tool descriptions filled in,
    followed by the user's live pending actions and whatever the agent
    remembers about them. Later turns learn pending ids only from this
    section.
    """

    def __init__(self, base_prompt: str = SYSTEM_PROMPT):
        """Initialize the prompt builder.

        Args:
            base_prompt: System prompt template with a {tool_descriptions} slot.
        """
        self.base_prompt = base_prompt

    def format_system_prompt(
        self,
        tools: list[BaseTool],
        facts: list[MemoryFact] | None = None,
        pending: list[PendingAction] | None = None,
    ) -> str:
        """Format the system prompt with tools, pending actions and remembered facts.

        Args:
            tools: Tools available this turn.
            facts: Remembered facts about the user, newest first.
            pending: The user's unexpired pending actions, oldest first.

        Returns:
            Formatted system prompt string.
        """
        tool_descriptions = "\n".join(f"- {tool.name}: {tool.description}" for tool in tools)
        prompt = self.base_prompt.format(tool_descriptions=tool_descriptions).strip()
        for section in (self.format_pending(pending or []), self.format_memories(facts or [])):
            if section:
                prompt = f"{prompt}\n\n{section}"
        return prompt

    @staticmethod
    def format_pending(actions: list[PendingAction]) -> str:
        if not actions:
            return ""
        return PENDING_SECTION.format(
            actions="\n".join(f"- {a.id}: {a.description}" for a in actions)
        )

    @staticmethod
    def format_memories(facts: list[MemoryFact]) -> str:
        if not facts:
            return ""
        return MEMORY_SECTION.format(facts="\n".join(f"- {f.fact}" for f in facts))

    def build_user_message(self, content: str) -> UnifiedMessage:
        return UnifiedMessage(role=MessageRole.USER, content=content)

    def build_assistant_message(self, content: str, chart: dict | None = None) -> UnifiedMessage:
        """Create the persisted assistant reply, with optional chart metadata."""
        return UnifiedMessage(role=MessageRole.ASSISTANT, content=content, chart=chart)
