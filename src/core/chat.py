import time
from typing import Any, List

import storage.message as message_storage
from config.prompts import GREETING_TEMPLATE, LLM_ERROR_REPLY, NOT_CONFIGURED_REPLY
from datamodel import *
from llm.base import LLMClient, LLMNotConfiguredError
from logger import logger
from metrics import runtime_metrics

__all__ = ["ChatSession"]


class ChatSession:
    """Chat history of one user scope plus the exchange with the LLM.

    Every non-blank prompt gets exactly one bot reply: the model's answer, the
    "not configured" notice, or an apology when the call fails.
    """

    def __init__(self, user: User, scope: str, llm: LLMClient | None, store: Any = message_storage) -> None:
        self.user = user
        self.scope = scope
        self.log = logger.bind(scope=scope)
        self.llm = llm
        self.store = store
        self._messages: List[Message] = []

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    def greeting(self) -> Message:
        return Message(text=GREETING_TEMPLATE.format(name=self.user.name), sender=MessageSender.BOT)

    async def load(self) -> None:
        history = await self.store.get_chat_history(self.scope)
        self._messages = history or [self.greeting()]

    async def send(self, prompt: str) -> Message | None:
        text = (prompt or "").strip()
        if not text:
            return None

        self._messages.append(Message(text=text, sender=MessageSender.USER))
        reply = Message(text=await self._generate(text), sender=MessageSender.BOT)
        self._messages.append(reply)
        await self.store.save_chat_history(self.scope, self._messages)
        return reply

    async def _generate(self, prompt: str) -> str:
        if self.llm is None:
            return NOT_CONFIGURED_REPLY

        started = time.perf_counter()
        try:
            answer = await self.llm.generate_response(prompt, self.user)
        except LLMNotConfiguredError as e:
            self.log.warning(f"LLM is not configured: {e}")
            return NOT_CONFIGURED_REPLY
        except Exception as e:
            runtime_metrics.record_llm_call((time.perf_counter() - started) * 1000, error=True)
            self.log.opt(exception=e).error("LLM call failed")
            return LLM_ERROR_REPLY

        runtime_metrics.record_llm_call((time.perf_counter() - started) * 1000)
        return answer or LLM_ERROR_REPLY
