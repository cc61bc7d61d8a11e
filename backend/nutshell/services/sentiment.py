"""
Sentiment Scoring Service

Scores a single utterance in [-1, 1] with one chat-completion call.
Scoring never fails ingestion: any problem yields 0 (neutral).
"""
import logging
import math
from typing import Optional

from ..config import settings
from .openai_chat import ChatCompletionService, chat_service

logger = logging.getLogger(__name__)

NEUTRAL = 0.0

SYSTEM_PROMPT = (
    "You are a sentiment analyzer. Respond with only a number between -1 and 1 "
    "representing the sentiment of the text. -1 is very negative, 0 is neutral, "
    "1 is very positive."
)


class SentimentScorer:
    """Per-utterance sentiment scorer"""

    def __init__(self, chat: Optional[ChatCompletionService] = None):
        self.chat = chat or chat_service

    def is_available(self) -> bool:
        return self.chat.is_available()

    async def score(self, text: str) -> float:
        """
        Score the sentiment of one utterance.

        Returns:
            float in [-1, 1]; 0.0 when the model is unavailable, the call fails
            or times out, or the reply is not a finite number in range
        """
        if not text or not text.strip() or not self.is_available():
            return NEUTRAL

        try:
            content = await self.chat.complete(
                [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": text},
                ],
                timeout=settings.sentiment_timeout_sec,
                max_tokens=10,
            )
        except Exception as e:
            logger.warning("[sentiment] scoring call failed, using neutral: %r", e)
            return NEUTRAL

        return self.parse_score(content)

    @staticmethod
    def parse_score(content: str) -> float:
        try:
            value = float((content or "").strip())
        except ValueError:
            logger.warning("[sentiment] non-numeric reply %r, using neutral", content)
            return NEUTRAL
        if not math.isfinite(value) or not -1.0 <= value <= 1.0:
            logger.warning("[sentiment] out-of-range reply %r, using neutral", content)
            return NEUTRAL
        return value


# Global singleton
sentiment_scorer = SentimentScorer()
