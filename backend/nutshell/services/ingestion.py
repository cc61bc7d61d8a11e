"""
Transcript ingestion

Scores an utterance, persists the segment and stamps the owning table's
activity timestamps. Broadcast and insight extraction happen afterwards,
outside this function, so they can never roll back or block the write.
"""
import logging
from typing import Optional

from ..models import Table, Transcript
from .sentiment import SentimentScorer, sentiment_scorer

logger = logging.getLogger(__name__)


async def ingest_segment(
    table: Table,
    text: str,
    speaker: Optional[str] = None,
    is_quote: bool = False,
    scorer: Optional[SentimentScorer] = None,
) -> Transcript:
    """
    Persist one transcript segment for a table.

    The sentiment call is awaited before the insert; it degrades to 0 on failure.

    Returns:
        Transcript: The stored segment
    """
    sentiment = await (scorer or sentiment_scorer).score(text)
    transcript = await Transcript.create(
        table=table,
        speaker=speaker,
        text=text,
        sentiment=sentiment,
        is_quote=is_quote,
    )
    table.last_transcript = transcript.timestamp
    table.last_audio = transcript.timestamp
    await table.save(update_fields=["last_transcript", "last_audio"])
    logger.debug("[ingest] table %s segment %s sentiment=%.2f", table.id, transcript.id, sentiment)
    return transcript
