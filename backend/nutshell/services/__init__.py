"""
Services Module

Server-side processing behind the live dashboard:
- Sentiment scoring of each utterance (OpenAI chat completions)
- Batch insight extraction (themes, action items, questions, ...)
- Transcript ingestion and the periodic / on-demand insight pipeline
- Organizer questions over transcripts and facilitator coaching tips
"""

from .openai_chat import ChatCompletionService, chat_service
from .sentiment import SentimentScorer, sentiment_scorer
from .insight_extraction import InsightDraft, InsightExtractionEngine, insight_engine
from .ingestion import ingest_segment
from .insight_pipeline import InsightPipeline, insight_pipeline
from .assistant import EventAssistant, event_assistant

__all__ = [
    "ChatCompletionService",
    "chat_service",
    "SentimentScorer",
    "sentiment_scorer",
    "InsightDraft",
    "InsightExtractionEngine",
    "insight_engine",
    "ingest_segment",
    "InsightPipeline",
    "insight_pipeline",
    "EventAssistant",
    "event_assistant",
]
