# backend/utils/ai_client.py
import httpx
import logging
from typing import List
from config import settings
from utils.errors import UpstreamError, UpstreamNotConfigured

logger = logging.getLogger(__name__)

class ChatClient:
    """Minimal client for an OpenAI-compatible chat completion endpoint."""

    def __init__(self):
        self.api_url = settings.DEEPSEEK_API_URL.rstrip("/")
        self.api_key = settings.DEEPSEEK_API_KEY
        self.model = settings.DEEPSEEK_MODEL
        self.timeout = settings.AI_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def complete(self, messages: List[dict]) -> str:
        if not self.configured:
            raise UpstreamNotConfigured("AI assistant is not configured (DEEPSEEK_API_KEY missing)")

        url = f"{self.api_url}/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        payload = {"model": self.model, "messages": messages}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                # Never log the request headers, they carry the API key
                logger.error("AI provider returned %s: %s", e.response.status_code, e.response.text[:500])
                raise UpstreamError("AI service error") from e
            except (httpx.RequestError, ValueError) as e:
                logger.error("AI provider request failed: %s", e)
                raise UpstreamError("AI service unavailable") from e

        try:
            return (data["choices"][0]["message"]["content"] or "").strip()
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected AI provider response shape: %s", str(data)[:500])
            raise UpstreamError("AI service returned an unexpected response") from e

chat_client = ChatClient()
