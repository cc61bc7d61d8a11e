"""
Insight Extraction Engine

Sends a batch of recent transcript segments for one event to the model and
returns classified insight drafts:
1. THEME - recurring topics across tables
2. ACTION_ITEM - tasks or follow-ups
3. QUESTION - open questions
4. SENTIMENT_SPIKE - notable positive/negative reactions
5. GOLDEN_NUGGET - quotable moments

A failed or malformed call yields no drafts; it is logged, never raised.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from ..config import settings
from ..models import InsightType, Transcript
from .openai_chat import ChatCompletionService, chat_service

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8

SYSTEM_PROMPT = """You are an AI analyst for a conference intelligence platform. Analyze transcripts and extract insights in JSON format.

Each transcript line starts with [Table <id>] where <id> is the numeric table id.

Return a JSON object with this structure:
{
  "insights": [
    {
      "type": "THEME" | "ACTION_ITEM" | "QUESTION" | "SENTIMENT_SPIKE" | "GOLDEN_NUGGET",
      "title": "Brief title",
      "description": "Detailed description",
      "confidence": 0.0-1.0,
      "relatedTableIds": [table ids as numbers],
      "evidenceCount": number of supporting statements
    }
  ]
}

Focus on:
- THEME: Recurring topics across multiple tables
- ACTION_ITEM: Specific tasks or follow-ups mentioned
- QUESTION: Questions that need answering
- SENTIMENT_SPIKE: Notable positive or negative reactions
- GOLDEN_NUGGET: Quotable moments or key insights

Only use table ids that appear in the transcript."""


@dataclass
class InsightDraft:
    """Unsaved insight produced by the engine"""
    type: InsightType
    title: str
    description: str = ""
    confidence: float = DEFAULT_CONFIDENCE
    related_table_ids: List[int] = field(default_factory=list)
    evidence_count: int = 1


class InsightExtractionEngine:
    """Batch theme / action-item extraction"""

    def __init__(self, chat: Optional[ChatCompletionService] = None):
        self.chat = chat or chat_service

    def is_available(self) -> bool:
        return self.chat.is_available()

    async def extract(
        self,
        event_id: int,
        recent_segments: Sequence[Transcript],
        limit: Optional[int] = None,
    ) -> List[InsightDraft]:
        """
        Extract insight drafts from recent segments of one event.

        Parameters:
            event_id: Event the segments belong to (for logging)
            recent_segments: Segments ordered newest first
            limit: Only the `limit` most recent segments are sent to the model

        Returns:
            List of drafts; empty when unavailable, on error, or on malformed output
        """
        if limit is None:
            limit = settings.insight_segment_window
        window = list(recent_segments)[:limit]
        if not window or not self.is_available():
            return []

        # Oldest first reads like a conversation
        transcript_text = self._render(reversed(window))
        known_tables = {s.table_id for s in window}

        try:
            content = await self.chat.complete(
                [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": transcript_text},
                ],
                timeout=settings.insight_timeout_sec,
                json_mode=True,
            )
            parsed = json.loads(content)
            drafts = self.parse_drafts(parsed, known_tables, max_evidence=len(window))
        except Exception as e:
            logger.warning("[insights] extraction failed for event %s: %r", event_id, e)
            return []

        logger.info("[insights] event %s: %d segment(s) -> %d draft(s)", event_id, len(window), len(drafts))
        return drafts

    @staticmethod
    def _render(segments: Iterable[Transcript]) -> str:
        return "\n".join(
            f"[Table {s.table_id}] {s.speaker or 'Unknown'}: {s.text}" for s in segments
        )

    @classmethod
    def parse_drafts(
        cls,
        parsed: Any,
        known_tables: Optional[set] = None,
        max_evidence: Optional[int] = None,
    ) -> List[InsightDraft]:
        """
        Turn the decoded model reply into drafts, skipping malformed entries.

        Accepts either {"insights": [...]} or a bare list. evidenceCount is capped at
        `max_evidence` (the number of statements the model was shown) when given.
        """
        items = parsed.get("insights") if isinstance(parsed, dict) else parsed
        if not isinstance(items, list):
            logger.warning("[insights] reply has no insight list: %.200r", parsed)
            return []

        drafts = []
        for item in items:
            draft = cls._parse_one(item, known_tables, max_evidence)
            if draft is None:
                logger.info("[insights] skipping malformed draft: %.200r", item)
                continue
            drafts.append(draft)
        return drafts

    @staticmethod
    def _parse_one(item: Any, known_tables: Optional[set], max_evidence: Optional[int] = None) -> Optional[InsightDraft]:
        if not isinstance(item, dict):
            return None
        try:
            insight_type = InsightType(str(item.get("type", "")).strip().upper())
        except ValueError:
            return None
        title = item.get("title")
        if not isinstance(title, str) or not title.strip():
            return None

        description = item.get("description")
        if not isinstance(description, str):
            description = ""

        try:
            confidence = float(item.get("confidence", DEFAULT_CONFIDENCE))
        except (TypeError, ValueError):
            confidence = DEFAULT_CONFIDENCE
        if confidence != confidence:  # NaN
            confidence = DEFAULT_CONFIDENCE
        confidence = min(1.0, max(0.0, confidence))

        table_ids = []
        raw_ids = item.get("relatedTableIds") or []
        if isinstance(raw_ids, list):
            for raw in raw_ids:
                try:
                    tid = int(raw)
                except (TypeError, ValueError, OverflowError):
                    continue
                if known_tables is not None and tid not in known_tables:
                    continue
                if tid not in table_ids:
                    table_ids.append(tid)

        try:
            evidence = int(item.get("evidenceCount", 1))
        except (TypeError, ValueError, OverflowError):  # inf from 1e999 / Infinity
            evidence = 1
        evidence = max(1, evidence)
        if max_evidence is not None:
            evidence = min(evidence, max(1, max_evidence))

        return InsightDraft(
            type=insight_type,
            title=title.strip()[:255],
            description=description.strip(),
            confidence=confidence,
            related_table_ids=table_ids,
            evidence_count=evidence,
        )


# Global singleton
insight_engine = InsightExtractionEngine()
