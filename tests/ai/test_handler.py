"""Tests for ChatService: the end-to-end chat turn."""

import asyncio
import gc

import pytest

from jai_chat.ai.handler import ChatService, derive_title
from jai_chat.ai.orchestrator import ProviderFallbackOrchestrator
from jai_chat.ai.overrides import CustomOverrideEngine
from jai_chat.config import GenerationConfig
from jai_chat.core.identity import Identity
from jai_chat.errors import AccessDeniedError, NotFoundError, PersistenceError, ValidationError
from tests.helpers.fakes import FakeProvider, failing


def _service(chat_repo, custom_repo, providers) -> ChatService:
    orchestrator = ProviderFallbackOrchestrator(providers, CustomOverrideEngine(custom_repo), GenerationConfig())
    return ChatService(chat_repo, orchestrator)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider("primary", "Hello from the model")


@pytest.fixture
def service(chat_repo, custom_repo, provider) -> ChatService:
    return _service(chat_repo, custom_repo, [provider])


def test_derive_title():
    assert derive_title("  short  question ") == "short question"
    assert derive_title("x" * 50) == "x" * 40 + "..."
    assert derive_title("") == "Image"


async def test_send_persists_both_turns(service, guest):
    chat = await service.create_chat(guest)
    reply = await service.send(guest, chat.id, "What is Python?", mode_key="concise")

    assert reply.is_ai
    assert reply.content == "Hello from the model"
    messages = await service.get_messages(guest, chat.id)
    assert [(m.content, m.is_ai) for m in messages] == [
        ("What is Python?", False),
        ("Hello from the model", True),
    ]


async def test_history_includes_just_sent_turn(service, provider, user):
    chat = await service.create_chat(user)
    await service.send(user, chat.id, "first")
    await service.send(user, chat.id, "second")

    sent = provider.calls[-1]["messages"]
    assert [m["content"] for m in sent] == ["first", "Hello from the model", "second"]


async def test_title_derived_from_first_message(service, user, chat_repo):
    chat = await service.create_chat(user)
    await service.send(user, chat.id, "Explain the difference between TCP and UDP please")
    await service.send(user, chat.id, "And QUIC?")

    title = (await chat_repo.get_chat(chat.id)).title
    assert title == "Explain the difference between TCP and UD..."


async def test_explicit_title_kept(service, user, chat_repo):
    chat = await service.create_chat(user, "Networking")
    await service.send(user, chat.id, "hi")
    assert (await chat_repo.get_chat(chat.id)).title == "Networking"


async def test_total_failure_still_persists_user_turn(chat_repo, custom_repo, guest):
    service = _service(chat_repo, custom_repo, [failing("a"), failing("b")])
    chat = await service.create_chat(guest)

    reply = await service.send(guest, chat.id, "anyone there?")

    assert reply.content == GenerationConfig().degraded_response
    messages = await chat_repo.get_messages(chat.id)
    assert [m.content for m in messages] == ["anyone there?", reply.content]


async def test_image_only_turn(service, provider, user):
    chat = await service.create_chat(user)
    await service.send(user, chat.id, "", image_url="https://img.example/cat.png")
    content = provider.calls[0]["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": "What's in this image?"}
    assert content[1]["type"] == "image_url"


async def test_empty_turn_rejected(service, user, chat_repo):
    chat = await service.create_chat(user)
    with pytest.raises(ValidationError):
        await service.send(user, chat.id, "   ")
    assert await chat_repo.get_messages(chat.id) == []


async def test_unknown_mode_rejected_before_write(service, user, chat_repo):
    chat = await service.create_chat(user)
    with pytest.raises(ValidationError):
        await service.send(user, chat.id, "hi", mode_key="pirate")
    assert await chat_repo.get_messages(chat.id) == []


async def test_foreign_chat_rejected(service, user, guest, chat_repo):
    chat = await service.create_chat(user)
    with pytest.raises(AccessDeniedError):
        await service.send(guest, chat.id, "hi")
    with pytest.raises(AccessDeniedError):
        await service.get_messages(Identity.user("someone-else"), chat.id)
    with pytest.raises(AccessDeniedError):
        await service.delete_chat(guest, chat.id)
    assert await chat_repo.get_messages(chat.id) == []


async def test_missing_chat(service, user):
    with pytest.raises(NotFoundError):
        await service.send(user, "nope", "hi")


async def test_assistant_write_failure_is_fatal(service, user, chat_repo, monkeypatch):
    chat = await service.create_chat(user)
    original = chat_repo.create_message

    async def fail_on_ai(chat_id, content, image_url=None, is_ai=False):
        if is_ai:
            raise PersistenceError("disk full")
        return await original(chat_id, content, image_url=image_url, is_ai=is_ai)

    monkeypatch.setattr(chat_repo, "create_message", fail_on_ai)
    with pytest.raises(PersistenceError):
        await service.send(user, chat.id, "hi")


async def test_concurrent_sends_in_one_chat_are_serialized(chat_repo, custom_repo, user):
    provider = FakeProvider("slow", "reply", delay=0.05)
    service = _service(chat_repo, custom_repo, [provider])
    chat = await service.create_chat(user)

    await asyncio.gather(service.send(user, chat.id, "one"), service.send(user, chat.id, "two"))

    roles = [m.is_ai for m in await chat_repo.get_messages(chat.id)]
    assert roles == [False, True, False, True]


async def test_delete_chat(service, user):
    chat = await service.create_chat(user)
    await service.delete_chat(user, chat.id)
    assert await service.list_chats(user) == []


async def test_claim_guest_chats_then_list(service, guest, user):
    await service.create_chat(guest, "a")
    await service.create_chat(guest, "b")
    assert await service.claim_guest_chats(guest.value, user.value) == 2
    assert await service.claim_guest_chats(guest.value, user.value) == 0
    assert {c.title for c in await service.list_chats(user)} == {"a", "b"}
    assert await service.list_chats(guest) == []


async def test_chat_locks_released_after_sends(chat_repo, custom_repo, guest, user):
    provider = FakeProvider("slow", "reply", delay=0.01)
    service = _service(chat_repo, custom_repo, [provider])
    first = await service.create_chat(user)
    second = await service.create_chat(guest)

    await asyncio.gather(
        service.send(user, first.id, "one"),
        service.send(user, first.id, "two"),
        service.send(guest, second.id, "three"),
    )
    gc.collect()

    assert len(service._chat_locks) == 0


async def test_delete_keeps_lock_held_by_pending_send(chat_repo, custom_repo, user):
    provider = FakeProvider("slow", "reply", delay=0.2)
    service = _service(chat_repo, custom_repo, [provider])
    chat = await service.create_chat(user)

    pending = asyncio.create_task(service.send(user, chat.id, "one"))
    while not provider.calls:
        await asyncio.sleep(0.005)
    lock = service._chat_locks[chat.id]
    assert lock.locked()

    await service.delete_chat(user, chat.id)

    assert service._chat_locks.get(chat.id) is lock
    with pytest.raises(PersistenceError):
        await pending
