# nutshell/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Nutshell Live API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for the dashboard / facilitator console
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # OpenAI chat completions (sentiment + insight extraction)
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_api_url: str = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")
    gpt_model: str = os.getenv("GPT_MODEL", "gpt-4o-mini")
    enable_ai: bool = _env_flag("ENABLE_AI", "true")

    # Sentiment scoring runs inside the transcript-append request, keep it short
    sentiment_timeout_sec: float = float(os.getenv("SENTIMENT_TIMEOUT_SEC", "10"))

    # Insight extraction
    insight_timeout_sec: float = float(os.getenv("INSIGHT_TIMEOUT_SEC", "60"))
    insight_every_n_segments: int = int(os.getenv("INSIGHT_EVERY_N_SEGMENTS", "10"))  # 0 disables periodic runs
    insight_segment_window: int = int(os.getenv("INSIGHT_SEGMENT_WINDOW", "100"))

    # Organizer questions and facilitator tips
    assistant_timeout_sec: float = float(os.getenv("ASSISTANT_TIMEOUT_SEC", "30"))

    # Client sync defaults
    ws_url: str = os.getenv("NUTSHELL_WS_URL", "ws://127.0.0.1:8000/ws")
    api_base_url: str = os.getenv("NUTSHELL_API_URL", "http://127.0.0.1:8000/api/v1")
    ws_reconnect_base_delay_sec: float = float(os.getenv("WS_RECONNECT_BASE_DELAY_SEC", "1.0"))
    ws_max_reconnect_attempts: int = int(os.getenv("WS_MAX_RECONNECT_ATTEMPTS", "5"))
    reconcile_interval_sec: float = float(os.getenv("RECONCILE_INTERVAL_SEC", "30"))

    # Local retention caps for long sessions
    transcript_retention: int = int(os.getenv("TRANSCRIPT_RETENTION", "500"))
    insight_retention: int = int(os.getenv("INSIGHT_RETENTION", "200"))
    notice_retention: int = int(os.getenv("NOTICE_RETENTION", "100"))


settings = Settings()  # Instantiate configuration
