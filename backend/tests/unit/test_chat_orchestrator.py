import asyncio

import pytest

from newlife.core.errors import TransportError
from newlife.models import ChatMetadata, ChatRole
from newlife.services.chat import ChatOrchestrator, ChatRepository, ConversationStatus
from newlife.services.pregnancy import PregnancyRepository
from tests.fixtures.mock_clients import FakeAdapter

CHAT_PATH = "users/user-1/pregnancies/preg-1/chatMessages"


@pytest.fixture
def make_orchestrator(make_settings):
    def _make(store, adapter=None, init_error=None, **settings_overrides):
        return ChatOrchestrator(
            user_id="user-1",
            pregnancy_id="preg-1",
            adapter=adapter,
            chat_repository=ChatRepository(store),
            pregnancy_repository=PregnancyRepository(store),
            config=make_settings(**settings_overrides),
            init_error=init_error,
        )
    return _make


async def _stored(store):
    records = await store.query(CHAT_PATH, order_by="timestamp")
    return [(r["role"], r["content"]) for r in records]


@pytest.mark.anyio
async def test_two_sends_store_four_alternating_turns(seeded_store, make_orchestrator):
    adapter = FakeAdapter(replies=["r1", "r2"])
    chat = make_orchestrator(seeded_store, adapter)

    first = await chat.send_message("q1")
    second = await chat.send_message("q2")

    assert (first.content, second.content) == ("r1", "r2")
    assert await _stored(seeded_store) == [
        ("user", "q1"), ("assistant", "r1"), ("user", "q2"), ("assistant", "r2"),
    ]
    assert [(m.role, m.content) for m in adapter.requests[1].messages] == [
        ("user", "q1"), ("assistant", "r1"), ("user", "q2"),
    ]
    assert chat.status == ConversationStatus.IDLE
    assert chat.error is None


@pytest.mark.anyio
async def test_request_carries_prompt_and_configured_sampling(seeded_store, make_orchestrator):
    adapter = FakeAdapter()
    chat = make_orchestrator(seeded_store, adapter, AI_TEMPERATURE=0.3, AI_MAX_TOKENS=256)

    reply = await chat.send_message("  Is back pain normal?  ")

    request = adapter.requests[0]
    assert request.system_prompt == "prompt for Maya"
    assert (request.temperature, request.max_tokens) == (0.3, 256)
    assert request.messages[-1].content == "Is back pain normal?"
    assert reply.metadata == ChatMetadata(model="fake-model", tokens=15)


@pytest.mark.anyio
async def test_second_send_while_in_flight_is_rejected(seeded_store, make_orchestrator):
    adapter = FakeAdapter(replies=["slow reply"])
    gate = adapter.block()
    chat = make_orchestrator(seeded_store, adapter)

    first = asyncio.create_task(chat.send_message("first"))
    await asyncio.sleep(0)

    assert chat.sending
    assert await chat.send_message("second") is None

    gate.set()
    reply = await first

    assert reply.content == "slow reply"
    assert len(adapter.requests) == 1
    assert await _stored(seeded_store) == [("user", "first"), ("assistant", "slow reply")]


@pytest.mark.anyio
async def test_provider_failure_stores_flagged_fallback(seeded_store, make_orchestrator):
    adapter = FakeAdapter(error=TransportError("anthropic", 429, "rate limited"))
    chat = make_orchestrator(seeded_store, adapter)

    reply = await chat.send_message("hello")

    assert reply.is_error
    assert reply.content == "Sorry, I encountered an error. Please try again."
    assert chat.status == ConversationStatus.ERROR
    assert chat.error == "Anthropic API error: 429 - rate limited"
    assert await _stored(seeded_store) == [
        ("user", "hello"),
        ("assistant", "Sorry, I encountered an error. Please try again."),
    ]


@pytest.mark.anyio
async def test_unexpected_exception_also_falls_back(seeded_store, make_orchestrator):
    chat = make_orchestrator(seeded_store, FakeAdapter(error=RuntimeError("boom")))

    reply = await chat.send_message("hello")

    assert reply.is_error
    assert chat.error == "boom"


@pytest.mark.anyio
async def test_error_clears_on_dismiss_and_on_next_send(seeded_store, make_orchestrator):
    adapter = FakeAdapter(error=TransportError("openai", 500, "oops"))
    chat = make_orchestrator(seeded_store, adapter)
    await chat.send_message("hello")

    chat.clear_error()
    assert chat.error is None
    assert chat.status == ConversationStatus.IDLE

    await chat.send_message("again")
    assert chat.error is not None
    adapter.error = None
    await chat.send_message("third")
    assert chat.error is None


@pytest.mark.anyio
async def test_send_for_unknown_pregnancy_stores_nothing(store, make_orchestrator):
    adapter = FakeAdapter()
    chat = make_orchestrator(store, adapter)

    assert await chat.send_message("hello") is None

    assert chat.error == "Cannot send message: pregnancy preg-1 not found"
    assert chat.status == ConversationStatus.IDLE
    assert adapter.requests == []
    assert await _stored(store) == []


@pytest.mark.anyio
@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_blank_text_is_ignored(seeded_store, make_orchestrator, text):
    adapter = FakeAdapter()
    chat = make_orchestrator(seeded_store, adapter)

    assert await chat.send_message(text) is None
    assert adapter.requests == []
    assert await _stored(seeded_store) == []


@pytest.mark.anyio
async def test_unconfigured_chat_refuses_to_send(seeded_store, make_orchestrator):
    chat = make_orchestrator(seeded_store, None, init_error="Anthropic API key not configured")

    assert not chat.available
    assert await chat.send_message("hello") is None
    assert chat.error == "Anthropic API key not configured"
    assert await _stored(seeded_store) == []


def test_create_without_credentials_disables_chat(store, make_settings):
    chat = ChatOrchestrator.create(store, "user-1", "preg-1", config=make_settings())

    assert not chat.available
    assert chat.error == "Anthropic API key not configured"


@pytest.mark.anyio
async def test_history_is_limited_to_recent_turns(seeded_store, make_orchestrator):
    repo = ChatRepository(seeded_store)
    for i in range(6):
        await repo.add_message("user-1", "preg-1", ChatRole.USER, f"q{i}")
        await repo.add_message("user-1", "preg-1", ChatRole.ASSISTANT, f"r{i}")
    adapter = FakeAdapter()
    chat = make_orchestrator(seeded_store, adapter)
    await chat.load_history()

    await chat.send_message("latest")

    sent = [m.content for m in adapter.requests[0].messages]
    assert len(sent) == 11
    assert sent[0] == "q1"
    assert sent[-2:] == ["r5", "latest"]


@pytest.mark.anyio
async def test_unanswered_user_turns_are_left_out_of_history(seeded_store, make_orchestrator):
    repo = ChatRepository(seeded_store)
    await repo.add_message("user-1", "preg-1", ChatRole.USER, "lost")
    await repo.add_message("user-1", "preg-1", ChatRole.USER, "q1")
    await repo.add_message("user-1", "preg-1", ChatRole.ASSISTANT, "r1")
    await repo.add_message("user-1", "preg-1", ChatRole.USER, "interrupted")
    adapter = FakeAdapter()
    chat = make_orchestrator(seeded_store, adapter)
    await chat.load_history()

    await chat.send_message("q2")

    assert [(m.role, m.content) for m in adapter.requests[0].messages] == [
        ("user", "q1"), ("assistant", "r1"), ("user", "q2"),
    ]


@pytest.mark.anyio
async def test_started_session_follows_the_store(seeded_store, make_orchestrator):
    chat = make_orchestrator(seeded_store, FakeAdapter(replies=["hi"]))
    chat.start()

    await chat.send_message("hello")
    await ChatRepository(seeded_store).add_message("user-1", "preg-1", ChatRole.USER, "from elsewhere")

    assert [m.content for m in chat.messages] == ["hello", "hi", "from elsewhere"]

    chat.close()
    await ChatRepository(seeded_store).add_message("user-1", "preg-1", ChatRole.ASSISTANT, "late")
    assert len(chat.messages) == 3


@pytest.mark.anyio
async def test_history_window_drops_orphan_before_counting(seeded_store, make_orchestrator):
    repo = ChatRepository(seeded_store)
    for i in range(5):
        await repo.add_message("user-1", "preg-1", ChatRole.USER, f"q{i}")
        await repo.add_message("user-1", "preg-1", ChatRole.ASSISTANT, f"r{i}")
    await repo.add_message("user-1", "preg-1", ChatRole.USER, "interrupted")
    adapter = FakeAdapter()
    chat = make_orchestrator(seeded_store, adapter)
    await chat.load_history()

    await chat.send_message("latest")

    sent = adapter.requests[0].messages
    assert len(sent) == 11
    assert (sent[0].role, sent[0].content) == ("user", "q0")
    assert [m.content for m in sent[-2:]] == ["r4", "latest"]


@pytest.mark.anyio
async def test_history_window_never_opens_with_assistant_turn(seeded_store, make_orchestrator):
    repo = ChatRepository(seeded_store)
    for i in range(4):
        await repo.add_message("user-1", "preg-1", ChatRole.USER, f"q{i}")
        await repo.add_message("user-1", "preg-1", ChatRole.ASSISTANT, f"r{i}")
    chat = make_orchestrator(seeded_store, FakeAdapter(), CHAT_HISTORY_LIMIT=5)
    await chat.load_history()

    history = chat.recent_history()

    assert [(m.role, m.content) for m in history] == [
        ("user", "q2"), ("assistant", "r2"), ("user", "q3"), ("assistant", "r3"),
    ]
