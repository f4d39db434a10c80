"""Tests for long-term memory extraction."""

import pytest

from operator_agent.core.memory_extractor import MemoryExtractor
from operator_agent.exceptions import ProviderUnavailableError
from operator_agent.streaming import StreamChannel
from operator_agent.types import MemoryFact, MessageRole, UnifiedMessage

from conftest import USER


@pytest.fixture
async def conversation(store):
    conversation = await store.create_conversation(USER, "test")
    for i in range(6):
        role = MessageRole.USER if i % 2 == 0 else MessageRole.ASSISTANT
        await store.append_message(conversation.id, UnifiedMessage(role=role, content=f"message {i}"))
    return conversation


@pytest.fixture
def extractor(light_oracle, store):
    return MemoryExtractor(light_oracle, store, interval=5, window=4)


class TestRecord:
    """Tests for the per-conversation trigger counter."""

    async def test_triggers_on_every_fifth_message(self, extractor, conversation):
        assert extractor.record(conversation.id, USER, count=2) is None
        assert extractor.record(conversation.id, USER, count=2) is None
        task = extractor.record(conversation.id, USER, count=1)
        assert task is not None
        await task

        for _ in range(4):
            assert extractor.record(conversation.id, USER) is None
        assert extractor.record(conversation.id, USER) is not None
        await extractor.drain()

    async def test_crossing_a_multiple_triggers(self, extractor, conversation):
        extractor.record(conversation.id, USER, count=4)
        assert extractor.record(conversation.id, USER, count=2) is not None
        await extractor.drain()

    async def test_counters_are_per_conversation(self, extractor, conversation):
        extractor.record(conversation.id, USER, count=4)
        assert extractor.record("other", USER, count=1) is None

    async def test_forget_resets(self, extractor, conversation):
        extractor.record(conversation.id, USER, count=4)
        extractor.forget(conversation.id)
        assert extractor.record(conversation.id, USER, count=1) is None


class TestExtract:
    """Tests for fact extraction."""

    async def test_stores_facts(self, extractor, light_oracle, store, conversation):
        light_oracle.completions.append(
            'Here you go: ["Runs Meta and TikTok ads", "Budget cap is $5k/day", "", "Based in Berlin", "Fourth"]'
        )

        stored = await extractor.extract(conversation.id, USER)

        assert stored == ["Runs Meta and TikTok ads", "Budget cap is $5k/day", "Based in Berlin"]
        facts = await store.recent_facts(USER)
        assert [f.fact for f in facts] == list(reversed(stored))

    async def test_reads_recent_window(self, extractor, light_oracle, conversation):
        await extractor.extract(conversation.id, USER)
        prompt = light_oracle.prompts[0]
        assert "message 5" in prompt
        assert "message 2" in prompt
        assert "message 1" not in prompt

    async def test_truncates_long_messages(self, extractor, light_oracle, store, conversation):
        await store.append_message(
            conversation.id, UnifiedMessage(role=MessageRole.USER, content="y" * 800)
        )
        await extractor.extract(conversation.id, USER)
        assert "y" * 500 in light_oracle.prompts[0]
        assert "y" * 501 not in light_oracle.prompts[0]

    async def test_dedupes_existing_facts(self, extractor, light_oracle, store, conversation):
        await store.add_fact(MemoryFact(user_id=USER, fact="Runs Meta ads"))
        light_oracle.completions.append('["runs  META ads", "Likes charts", "likes charts"]')

        stored = await extractor.extract(conversation.id, USER)

        assert stored == ["Likes charts"]

    async def test_dedupe_can_be_disabled(self, light_oracle, store, conversation):
        extractor = MemoryExtractor(light_oracle, store, dedupe=False)
        await store.add_fact(MemoryFact(user_id=USER, fact="Runs Meta ads"))
        light_oracle.completions.append('["Runs Meta ads"]')

        assert await extractor.extract(conversation.id, USER) == ["Runs Meta ads"]

    async def test_failure_is_swallowed(self, extractor, light_oracle, store, conversation):
        light_oracle.completions.append(ProviderUnavailableError("down"))
        assert await extractor.extract(conversation.id, USER) == []
        assert await store.recent_facts(USER) == []

    async def test_unparseable_reply(self, extractor, light_oracle, conversation):
        light_oracle.completions.append("nothing worth remembering")
        assert await extractor.extract(conversation.id, USER) == []


class TestAgentTriggersExtraction:
    """Extraction runs in the background after enough persisted messages."""

    async def test_third_turn_triggers(self, agent, oracle, light_oracle, store):
        light_oracle.completions.append('["Manages the Spring Launch adsets"]')
        conversation_id = None
        for i in range(3):
            oracle.reply(f"answer {i}")
            channel = StreamChannel()
            await agent.send_message(USER, f"question {i}", channel, conversation_id)
            conversation_id = channel.emitted[-1].data["conversation_id"]

        await agent.memory.drain()

        assert len(light_oracle.prompts) == 1
        facts = await store.recent_facts(USER)
        assert [f.fact for f in facts] == ["Manages the Spring Launch adsets"]
