"""
Event Assistant Service

Free-form questions over an event's recent transcripts, and short coaching
tips for a table facilitator. One chat-completion call each; a failed call
yields a neutral fallback text instead of an error.
"""
import logging
from typing import Any, Iterable, List, Optional, Sequence

from ..config import settings
from .openai_chat import ChatCompletionService, chat_service

logger = logging.getLogger(__name__)

QUERY_FALLBACK = "No response generated."
TIP_FALLBACK = "Keep the conversation flowing!"

QUERY_SYSTEM_PROMPT = """You are an AI analyst for Nutshell, a conference intelligence platform.
Analyze the following transcript segments from a live event.

Instructions:
1. Answer the query based ONLY on the provided transcript data.
2. If the data supports it, provide a direct answer or summary.
3. Cite specific tables and speakers in your answer.
4. If the answer is not found in the transcripts, state that there is no evidence.
5. Format your response in Markdown."""

COACH_SYSTEM_PROMPT = (
    "You are a facilitator coach. Based on the discussion so far and the agenda, "
    "suggest one brief tip to help the facilitator. Keep it to 1-2 sentences. "
    "Focus on topics that haven't been covered or questions that could deepen the discussion."
)


class EventAssistant:
    """Ad-hoc analyst queries and facilitator tips"""

    QUERY_WINDOW = 100
    TIP_WINDOW = 20

    def __init__(self, chat: Optional[ChatCompletionService] = None):
        self.chat = chat or chat_service

    def is_available(self) -> bool:
        return self.chat.is_available()

    async def answer_query(self, query: str, segments: Sequence[Any]) -> str:
        """
        Answer a question from the event's transcripts.

        Parameters:
            query: The organizer's question
            segments: Event transcripts, newest first; only the newest QUERY_WINDOW are used

        Returns:
            str: Markdown answer, or QUERY_FALLBACK if the call failed or came back empty
        """
        window = list(segments[: self.QUERY_WINDOW])
        window.reverse()
        context = "\n".join(
            f"[Table {s.table_id}] {s.speaker or 'Unknown'}: {s.text}" for s in window
        )
        user_msg = f"Transcript Data:\n{context or 'No transcripts available yet.'}\n\nQuery: {query}"
        return await self._ask(QUERY_SYSTEM_PROMPT, user_msg, QUERY_FALLBACK, "query")

    async def coach_tip(self, agenda: Iterable[Any], segments: Sequence[Any]) -> str:
        """
        Suggest one tip for a facilitator.

        Parameters:
            agenda: Items with `phase` and `text`
            segments: The table's transcripts, newest first; only the newest TIP_WINDOW are used

        Returns:
            str: One or two sentences, or TIP_FALLBACK if the call failed or came back empty
        """
        window = list(segments[: self.TIP_WINDOW])
        window.reverse()
        discussion = "\n".join(f"{s.speaker or 'Unknown'}: {s.text}" for s in window)
        agenda_text = "\n".join(f"{a.phase}: {a.text}" for a in agenda)
        user_msg = f"Agenda:\n{agenda_text}\n\nRecent Discussion:\n{discussion or 'Discussion just started.'}"
        return await self._ask(COACH_SYSTEM_PROMPT, user_msg, TIP_FALLBACK, "coach", max_tokens=100)

    async def _ask(self, system: str, user_msg: str, fallback: str, kind: str, max_tokens: Optional[int] = None) -> str:
        messages: List[dict] = [
            {"role": "system", "content": system},
            {"role": "user", "content": user_msg},
        ]
        try:
            content = await self.chat.complete(
                messages,
                timeout=settings.assistant_timeout_sec,
                max_tokens=max_tokens,
            )
        except Exception as e:
            logger.warning("[assistant] %s call failed, using fallback: %r", kind, e)
            return fallback
        return content.strip() or fallback


# Global singleton
event_assistant = EventAssistant()
