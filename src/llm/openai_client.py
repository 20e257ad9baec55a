from logger import logger
from config.settings import OPENAI_API_KEY, OPENAI_BASE_URL, LLM_MODEL
from datamodel import User
from llm.base import LLMClient, LLMNotConfiguredError, build_system_instruction
from openai import AsyncOpenAI


class OpenAIClient(LLMClient):
    def __init__(
        self,
        api_key: str | None = OPENAI_API_KEY,
        base_url: str = OPENAI_BASE_URL,
        model: str = LLM_MODEL,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise LLMNotConfiguredError("OPENAI_API_KEY is not set")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def generate_response(self, prompt: str, user: User | None = None) -> str:
        client = self._get_client()
        logger.trace(f"LLM request BaseUrl:{self.base_url}; Model:{self.model}; Prompt:{prompt}")
        response = await client.responses.create(
            model=self.model,
            instructions=build_system_instruction(user),
            input=prompt,
        )
        logger.trace(f"LLM response: {response}")
        return (response.output_text or "").strip()
