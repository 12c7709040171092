import asyncio

import pytest

from conftest import FakeGeminiClient, text_reply
from exceptions.exceptions import ConfigurationError, GenerationFailed, ValidationError
from models.message_parts import ImagePart, TextPart
from services.conversation.proxy import CLEARED_MESSAGE, ConversationalProxy
from services.conversation.session_store import InMemorySessionStore


def test_same_session_reuses_one_handle(proxy, fake_client):
    asyncio.run(proxy.send_message("s1", "hi"))
    asyncio.run(proxy.send_message("s1", "again"))

    assert fake_client.chats_created == 1
    assert fake_client.chats[0].sent == ["hi", "again"]


def test_distinct_sessions_get_distinct_handles(proxy, fake_client, session_store):
    asyncio.run(proxy.send_message("a", "hi"))
    asyncio.run(proxy.send_message("b", "hi"))

    assert fake_client.chats_created == 2
    assert len(session_store) == 2


def test_clear_then_send_opens_new_handle(proxy, fake_client, session_store):
    asyncio.run(proxy.send_message("s1", "hi"))
    assert asyncio.run(proxy.clear_session("s1")) == CLEARED_MESSAGE
    assert "s1" not in session_store

    asyncio.run(proxy.send_message("s1", "fresh start"))
    assert fake_client.chats_created == 2
    assert fake_client.chats[1].sent == ["fresh start"]


def test_clear_unknown_session_succeeds(proxy):
    assert asyncio.run(proxy.clear_session("never-used")) == CLEARED_MESSAGE
    assert asyncio.run(proxy.clear_session("never-used")) == CLEARED_MESSAGE


def test_send_message_returns_text_parts(proxy, fake_client):
    fake_client.chat_replies.append(text_reply("Hello there"))
    parts = asyncio.run(proxy.send_message("s1", "hi"))
    assert parts == [TextPart("Hello there")]


def test_send_message_normalizes_mixed_reply(proxy, fake_client):
    fake_client.chat_replies.append(
        {
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {"text": "Here you go"},
                            {"inlineData": {"mimeType": "image/png", "data": "AAAA"}},
                        ]
                    }
                }
            ]
        }
    )
    parts = asyncio.run(proxy.send_message("s1", "draw"))
    assert parts == [TextPart("Here you go"), ImagePart("data:image/png;base64,AAAA")]


def test_truncated_reply_explains_stop_reason(proxy, fake_client):
    fake_client.chat_replies.append({"candidates": [{"finishReason": "MAX_TOKENS"}]})
    parts = asyncio.run(proxy.send_message("s1", "long story"))
    assert parts == [TextPart("The response was stopped prematurely. Reason: MAX_TOKENS")]


def test_empty_reply_is_not_an_error(proxy, fake_client):
    fake_client.chat_replies.append({"candidates": [{"content": {"parts": []}, "finishReason": "STOP"}]})
    parts = asyncio.run(proxy.send_message("s1", "hi"))
    assert parts == [TextPart("I received a response, but it was empty.")]


@pytest.mark.parametrize("session_id, message", [("", "hi"), ("s1", ""), ("s1", [])])
def test_send_message_requires_inputs(proxy, session_id, message):
    with pytest.raises(ValidationError):
        asyncio.run(proxy.send_message(session_id, message))


def test_generate_image_returns_data_uri(proxy, fake_client):
    url = asyncio.run(proxy.generate_image("a red skateboard"))
    assert url == "data:image/png;base64,iVBORw0KGgo="

    call = fake_client.calls[-1]
    assert call["number_of_images"] == 1
    assert call["aspect_ratio"] == "1:1"


def test_generate_image_without_images_is_generation_failed(proxy, fake_client):
    fake_client.images_reply = {}
    with pytest.raises(GenerationFailed) as excinfo:
        asyncio.run(proxy.generate_image("something blocked"))
    assert "safety filters" in excinfo.value.message
    assert excinfo.value.status_code == 422


def test_multimodal_edit_sends_image_then_prompt(proxy, fake_client):
    fake_client.content_reply = {
        "candidates": [{"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "BBBB"}}]}}]
    }
    parts = asyncio.run(
        proxy.multimodal_edit(
            prompt="make it blue",
            image_data="data:image/jpeg;base64,QUJD",
            mime_type="image/jpeg",
        )
    )
    assert parts == [ImagePart("data:image/png;base64,BBBB")]

    call = fake_client.calls[-1]
    assert call["generation_config"] == {"responseModalities": ["IMAGE", "TEXT"]}
    assert call["contents"] == [
        {
            "role": "user",
            "parts": [
                {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}},
                {"text": "make it blue"},
            ],
        }
    ]


def test_multimodal_edit_without_inputs_returns_provider_output(proxy, fake_client):
    parts = asyncio.run(proxy.multimodal_edit())
    assert parts == [TextPart("edited")]
    assert fake_client.calls[-1]["contents"] == [{"role": "user", "parts": []}]


def test_multimodal_edit_empty_reply_explains_stop(proxy, fake_client):
    fake_client.content_reply = {"candidates": [{"finishReason": "IMAGE_SAFETY"}]}
    parts = asyncio.run(proxy.multimodal_edit(prompt="edit"))
    assert parts == [TextPart("Image editing stopped prematurely. Reason: IMAGE_SAFETY")]


def test_missing_key_fails_before_any_upstream_call(settings):
    client = FakeGeminiClient(configured=False)
    proxy = ConversationalProxy(client, InMemorySessionStore(), settings)

    for call in (
        proxy.send_message("s1", "hi"),
        proxy.generate_image("cat"),
        proxy.multimodal_edit(prompt="edit"),
        proxy.clear_session("s1"),
    ):
        with pytest.raises(ConfigurationError):
            asyncio.run(call)

    assert client.chats_created == 0
    assert client.calls == []


def test_concurrent_sends_on_one_session_share_a_handle(settings):
    class SlowChat:
        def __init__(self):
            self.active = 0
            self.max_active = 0
            self.history = []

        async def send_message(self, message):
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            await asyncio.sleep(0.01)
            self.active -= 1
            return text_reply(message)

    class SlowClient(FakeGeminiClient):
        def create_chat(self, *, model, system_instruction):
            self.chats_created += 1
            chat = SlowChat()
            self.chats.append(chat)
            return chat

    client = SlowClient()
    proxy = ConversationalProxy(client, InMemorySessionStore(), settings)

    async def run():
        return await asyncio.gather(*(proxy.send_message("shared", f"m{i}") for i in range(5)))

    results = asyncio.run(run())

    assert client.chats_created == 1
    assert client.chats[0].max_active == 1
    assert [r[0].text for r in results] == [f"m{i}" for i in range(5)]


def test_clear_between_queued_turns_keeps_sends_serialized(settings):
    class TrackingClient(FakeGeminiClient):
        def __init__(self):
            super().__init__()
            self.active = 0
            self.max_active = 0

        def create_chat(self, *, model, system_instruction):
            self.chats_created += 1
            client = self

            class TrackedChat:
                history = []

                async def send_message(self, message):
                    client.active += 1
                    client.max_active = max(client.max_active, client.active)
                    await asyncio.sleep(0.01)
                    client.active -= 1
                    return text_reply(message)

            return TrackedChat()

    client = TrackingClient()
    proxy = ConversationalProxy(client, InMemorySessionStore(), settings)

    async def run():
        queued = []

        async def first():
            await proxy.send_message("s", "m1")
            # The second turn has been woken but has not run yet.
            await proxy.clear_session("s")
            queued.append(asyncio.create_task(proxy.send_message("s", "m3")))

        holder = asyncio.create_task(first())
        await asyncio.sleep(0)
        waiter = asyncio.create_task(proxy.send_message("s", "m2"))
        await asyncio.gather(holder, waiter)
        await asyncio.gather(*queued)

    asyncio.run(run())

    assert client.max_active == 1
