"""
Unit tests for services.assistant module.
Tests prompt rendering, windowing and fallbacks.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from nutshell.services.assistant import QUERY_FALLBACK, TIP_FALLBACK, EventAssistant


def _segment(i, table_id=1, speaker="Ana", text=None):
    return SimpleNamespace(id=i, table_id=table_id, speaker=speaker, text=text or f"line {i}")


def _reply(content):
    return MagicMock(
        status_code=200,
        json=lambda: {"choices": [{"message": {"content": content}}]},
        raise_for_status=MagicMock(),
    )


class TestAnswerQuery:
    @pytest.mark.asyncio
    async def test_context_oldest_first_with_query(self):
        assistant = EventAssistant()
        newest_first = [_segment(2, table_id=4, speaker=None), _segment(1, table_id=3)]
        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=_reply("  **Pricing** came up at table 3.  "))
            mock_client.return_value.__aenter__.return_value.post = post

            answer = await assistant.answer_query("What about pricing?", newest_first)

        assert answer == "**Pricing** came up at table 3."
        messages = post.call_args.kwargs["json"]["messages"]
        assert "ONLY on the provided transcript data" in messages[0]["content"]
        assert messages[1]["content"] == (
            "Transcript Data:\n"
            "[Table 3] Ana: line 1\n"
            "[Table 4] Unknown: line 2\n\n"
            "Query: What about pricing?"
        )

    @pytest.mark.asyncio
    async def test_no_transcripts_yet(self):
        assistant = EventAssistant()
        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=_reply("No evidence."))
            mock_client.return_value.__aenter__.return_value.post = post
            await assistant.answer_query("Anything?", [])

        user_msg = post.call_args.kwargs["json"]["messages"][1]["content"]
        assert user_msg.startswith("Transcript Data:\nNo transcripts available yet.")

    @pytest.mark.asyncio
    async def test_window_keeps_newest(self):
        assistant = EventAssistant()
        newest_first = [_segment(i) for i in range(150, 0, -1)]
        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=_reply("ok"))
            mock_client.return_value.__aenter__.return_value.post = post
            await assistant.answer_query("q", newest_first)

        lines = post.call_args.kwargs["json"]["messages"][1]["content"].splitlines()
        context = [line for line in lines if line.startswith("[Table")]
        assert len(context) == EventAssistant.QUERY_WINDOW
        assert context[0].endswith("line 51")
        assert context[-1].endswith("line 150")

    @pytest.mark.asyncio
    async def test_failure_returns_fallback(self):
        assistant = EventAssistant()
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post.side_effect = Exception("API Error")
            assert await assistant.answer_query("q", [_segment(1)]) == QUERY_FALLBACK

    @pytest.mark.asyncio
    async def test_empty_reply_returns_fallback(self):
        assistant = EventAssistant()
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=_reply(None))
            assert await assistant.answer_query("q", []) == QUERY_FALLBACK


class TestCoachTip:
    @pytest.mark.asyncio
    async def test_agenda_and_discussion_rendered(self):
        assistant = EventAssistant()
        agenda = [SimpleNamespace(phase="Intro", text="Names and roles"), SimpleNamespace(phase="Deep dive", text="Costs")]
        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=_reply("Ask Bo about costs."))
            mock_client.return_value.__aenter__.return_value.post = post

            tip = await assistant.coach_tip(agenda, [_segment(2, speaker="Bo"), _segment(1)])

        assert tip == "Ask Bo about costs."
        sent = post.call_args.kwargs["json"]
        assert sent["max_tokens"] == 100
        assert sent["messages"][1]["content"] == (
            "Agenda:\nIntro: Names and roles\nDeep dive: Costs\n\n"
            "Recent Discussion:\nAna: line 1\nBo: line 2"
        )

    @pytest.mark.asyncio
    async def test_discussion_just_started(self):
        assistant = EventAssistant()
        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=_reply("Open with introductions."))
            mock_client.return_value.__aenter__.return_value.post = post
            await assistant.coach_tip([], [])

        assert post.call_args.kwargs["json"]["messages"][1]["content"] == (
            "Agenda:\n\n\nRecent Discussion:\nDiscussion just started."
        )

    @pytest.mark.asyncio
    async def test_failure_returns_fallback(self):
        assistant = EventAssistant()
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post.side_effect = Exception("timeout")
            assert await assistant.coach_tip([], [_segment(1)]) == TIP_FALLBACK
