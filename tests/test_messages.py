"""Tests for MessageService: static tables and AI-generated text."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from voicenotify.core.config import AIConfig
from voicenotify.services.messages import (
    AI_UNAVAILABLE_MESSAGE,
    GENERIC_MESSAGE,
    STATIC_MESSAGES,
    MessageService,
    clean_ai_text,
    static_message,
)


def _completion(text: str | None):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))]
    )


def _ai_client(text: str | None = None, error: Exception | None = None):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=_completion(text), side_effect=error
    )
    client.close = AsyncMock()
    return client


# ── Static tables ──────────────────────────────────────────


class TestStaticMessages:
    def test_single_comes_from_table(self):
        msg = static_message("permission", False, 1)
        assert msg in STATIC_MESSAGES[("permission", False, False)]

    def test_multiple_fills_count(self):
        msg = static_message("question", True, 4)
        assert "4" in msg
        assert "{count}" not in msg

    def test_idle_has_no_multiple_table(self):
        msg = static_message("idle", True, 3)
        assert msg in STATIC_MESSAGES[("idle", True, False)]

    def test_unknown_kind_is_generic(self):
        assert static_message("deploy", False) == GENERIC_MESSAGE

    def test_every_table_has_five_phrases(self):
        for phrases in STATIC_MESSAGES.values():
            assert len(phrases) == 5


class TestCleanAiText:
    def test_strips_wrapping_quotes(self):
        assert clean_ai_text('"All done, take a look!"') == "All done, take a look!"
        assert clean_ai_text("'Ready for review.'") == "Ready for review."

    def test_rejects_too_short(self):
        assert clean_ai_text("Hi") is None

    def test_rejects_too_long(self):
        assert clean_ai_text("x" * 201) is None

    def test_rejects_empty(self):
        assert clean_ai_text(None) is None
        assert clean_ai_text("   ") is None


# ── MessageService ─────────────────────────────────────────


class TestMessageService:
    @pytest.mark.asyncio
    async def test_static_when_ai_disabled(self):
        client = _ai_client("should not be used")
        service = MessageService(AIConfig(enabled=False), client=client)
        msg = await service.get_message("idle", False)
        assert msg in STATIC_MESSAGES[("idle", False, False)]
        client.chat.completions.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ai_message_is_used(self):
        client = _ai_client('"Your task is finished, come take a look!"')
        service = MessageService(AIConfig(enabled=True, model="mistral"), client=client)
        msg = await service.get_message("permission", True, 1)

        assert msg == "Your task is finished, come take a look!"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "mistral"
        assert kwargs["max_tokens"] == 1000
        assert kwargs["messages"][0]["role"] == "system"
        assert "permission approval is still needed" in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_ai_prompt_mentions_count(self):
        client = _ai_client("Three questions are waiting for you.")
        service = MessageService(AIConfig(enabled=True), client=client)
        await service.get_message("question", False, 3)
        prompt = client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert "3 items" in prompt

    @pytest.mark.asyncio
    async def test_ai_failure_falls_back_to_static(self):
        client = _ai_client(error=RuntimeError("connection refused"))
        service = MessageService(AIConfig(enabled=True), client=client)
        msg = await service.get_message("question", False, 1)
        assert msg in STATIC_MESSAGES[("question", False, False)]

    @pytest.mark.asyncio
    async def test_invalid_ai_text_falls_back(self):
        client = _ai_client("ok")
        service = MessageService(AIConfig(enabled=True), client=client)
        msg = await service.get_message("idle", True)
        assert msg in STATIC_MESSAGES[("idle", True, False)]

    @pytest.mark.asyncio
    async def test_no_fallback_gives_generic_prompt(self):
        client = _ai_client(error=RuntimeError("timeout"))
        service = MessageService(
            AIConfig(enabled=True, fallback_to_static=False), client=client
        )
        assert await service.get_message("idle", False) == AI_UNAVAILABLE_MESSAGE

    @pytest.mark.asyncio
    async def test_unknown_prompt_type(self):
        client = _ai_client("Something happened here.")
        service = MessageService(AIConfig(enabled=True), client=client)
        assert await service.generate("deploy") is None
        client.chat.completions.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self):
        client = _ai_client()
        service = MessageService(AIConfig(enabled=True), client=client)
        await service.aclose()
        client.close.assert_awaited_once()


class TestCheckAiConnection:
    @pytest.mark.asyncio
    async def test_disabled(self):
        service = MessageService(AIConfig(enabled=False))
        result = await service.check_ai_connection()
        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_lists_models(self):
        client = MagicMock()
        client.models.list = AsyncMock(
            return_value=SimpleNamespace(
                data=[SimpleNamespace(id=name) for name in ["llama3", "mistral", "phi3", "qwen2"]]
            )
        )
        service = MessageService(AIConfig(enabled=True), client=client)
        result = await service.check_ai_connection()
        assert result["success"] is True
        assert result["models"] == ["llama3", "mistral", "phi3", "qwen2"]
        assert result["message"].endswith("llama3, mistral, phi3...")

    @pytest.mark.asyncio
    async def test_unreachable(self):
        client = MagicMock()
        client.models.list = AsyncMock(side_effect=ConnectionError("refused"))
        service = MessageService(AIConfig(enabled=True), client=client)
        result = await service.check_ai_connection()
        assert result == {"success": False, "message": "refused"}
