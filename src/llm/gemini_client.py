import asyncio
from typing import Any

from google import genai
from google.genai import types

from config.settings import GEMINI_API_KEY, GEMINI_BASE_URL, LLM_MODEL
from datamodel import User
from llm.base import LLMClient, LLMNotConfiguredError, build_system_instruction
from logger import logger


class GeminiClient(LLMClient):
    def __init__(self, api_key: str | None = GEMINI_API_KEY, base_url: str | None = GEMINI_BASE_URL, model: str = LLM_MODEL) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        if not self.api_key:
            raise LLMNotConfiguredError("GEMINI_API_KEY is not set")
        if self._client is None:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options={"base_url": self.base_url} if self.base_url else None,
            )
        return self._client

    @staticmethod
    def _extract_text(response: Any) -> str:
        text = getattr(response, "text", None)
        if isinstance(text, str):
            return text.strip()
        return ""

    async def generate_response(self, prompt: str, user: User | None = None) -> str:
        client = self._get_client()
        config = types.GenerateContentConfig(system_instruction=build_system_instruction(user))

        logger.trace(f"Gemini request Model:{self.model}; Prompt:{prompt}")
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=self.model,
            contents=prompt,
            config=config,
        )
        logger.trace(f"Gemini response: {response}")
        return self._extract_text(response)
