"""Long-term memory extraction.

Every N persisted messages in a conversation, a lightweight oracle call
distills the recent exchange into a few durable facts about the user. The
work runs in the background and never affects the turn that triggered it.
"""

import asyncio

from ..clients.base import BaseLLMClient
from ..logging import get_logger
from ..prompts import MEMORY_EXTRACTION_PROMPT
from ..storage.base import ConversationStore
from ..types import MemoryFact
from ..utils.json_array import parse_string_array

logger = get_logger(__name__)

MAX_FACTS_PER_EXTRACTION = 3
MESSAGE_CHAR_LIMIT = 500
DEDUPE_LOOKBACK = 100


def _normalize(fact: str) -> str:
    return " ".join(fact.lower().split())


class MemoryExtractor:
    """Counts persisted messages per conversation and extracts facts.

    Args:
        client: Lightweight oracle client used for extraction.
        store: Conversation store holding messages and facts.
        interval: Extract after every `interval` persisted messages.
        window: How many recent messages an extraction reads.
        dedupe: Skip facts that repeat an existing fact (case and
            whitespace insensitive).
    """

    def __init__(
        self,
        client: BaseLLMClient,
        store: ConversationStore,
        interval: int = 5,
        window: int = 10,
        dedupe: bool = True,
    ):
        self.client = client
        self.store = store
        self.interval = interval
        self.window = window
        self.dedupe = dedupe
        self._counters: dict[str, int] = {}
        self._background_tasks: set[asyncio.Task] = set()

    def record(self, conversation_id: str, user_id: str, count: int = 1) -> asyncio.Task | None:
        """Count newly persisted messages; schedule an extraction on each Nth.

        Returns:
            The scheduled background task, or None if none was due.
        """
        before = self._counters.get(conversation_id, 0)
        after = before + count
        self._counters[conversation_id] = after
        if after // self.interval == before // self.interval:
            return None

        task = asyncio.create_task(self.extract(conversation_id, user_id))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    def forget(self, conversation_id: str) -> None:
        self._counters.pop(conversation_id, None)

    async def extract(self, conversation_id: str, user_id: str) -> list[str]:
        """Extract and store facts from a conversation's recent messages.

        Failures are logged and swallowed.

        Returns:
            The facts that were stored.
        """
        try:
            return await self._extract(conversation_id, user_id)
        except Exception as e:
            logger.warning(f"Memory extraction failed for conversation {conversation_id}: {e}")
            return []

    async def _extract(self, conversation_id: str, user_id: str) -> list[str]:
        messages = await self.store.fetch_messages(conversation_id, limit=self.window)
        lines = [
            f"{m.role.value}: {m.content[:MESSAGE_CHAR_LIMIT]}"
            for m in messages
            if m.content
        ]
        if not lines:
            return []

        prompt = MEMORY_EXTRACTION_PROMPT.format(conversation="\n".join(lines))
        text = await self.client.complete(prompt, max_tokens=300)
        facts = parse_string_array(text, limit=MAX_FACTS_PER_EXTRACTION)

        seen: set[str] = set()
        if self.dedupe:
            existing = await self.store.recent_facts(user_id, limit=DEDUPE_LOOKBACK)
            seen = {_normalize(f.fact) for f in existing}

        stored = []
        for fact in facts:
            key = _normalize(fact)
            if self.dedupe and key in seen:
                continue
            seen.add(key)
            await self.store.add_fact(MemoryFact(user_id=user_id, fact=fact))
            stored.append(fact)

        if stored:
            logger.info(f"Stored {len(stored)} memory fact(s) for user {user_id}")
        return stored

    async def recall(self, user_id: str, limit: int = 20) -> list[MemoryFact]:
        """Recent facts about a user, newest first. Empty on storage errors."""
        try:
            return await self.store.recent_facts(user_id, limit=limit)
        except Exception as e:
            logger.warning(f"Could not load memories for user {user_id}: {e}")
            return []

    async def drain(self) -> None:
        """Wait for in-flight extractions to finish."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
