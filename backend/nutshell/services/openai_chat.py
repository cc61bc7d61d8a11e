"""
OpenAI Chat Completions client

Thin async wrapper used by the sentiment scorer and the insight extraction
engine. It raises on transport or HTTP errors; callers decide the fallback.
"""
import httpx
from typing import Dict, List, Optional
from ..config import settings


class ChatCompletionService:
    """Chat completions over httpx"""

    def __init__(self):
        self.api_url = settings.openai_api_url

    @property
    def model(self) -> str:
        return settings.gpt_model

    def is_available(self) -> bool:
        """Check if API key is configured and AI features are enabled"""
        return bool(settings.openai_api_key) and settings.enable_ai

    async def complete(
        self,
        messages: List[Dict[str, str]],
        timeout: float,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        """
        Run one chat completion and return the assistant message content.

        Parameters:
            messages: OpenAI-style [{"role": ..., "content": ...}] list
            timeout: Whole-request timeout in seconds
            max_tokens: Optional completion cap
            json_mode: Ask the model for a JSON object response

        Raises:
            httpx.HTTPError: Transport failure, timeout, or non-2xx status
            KeyError / IndexError / TypeError: Unexpected response shape
        """
        headers = {
            "Authorization": f"Bearer {settings.openai_api_key}",
            "Content-Type": "application/json"
        }

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": 0.0,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(self.api_url, headers=headers, json=payload)
            resp.raise_for_status()
            result = resp.json()

        return result["choices"][0]["message"]["content"] or ""


# Global singleton
chat_service = ChatCompletionService()
