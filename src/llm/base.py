from abc import ABC, abstractmethod

from config.prompts import CORE_SYSTEM_PROMPT, STUDENT_PROFILE_SECTION
from datamodel import User

__all__ = ["LLMClient", "LLMNotConfiguredError", "build_system_instruction"]


class LLMNotConfiguredError(RuntimeError):
    """No API key is configured for the selected provider."""


def build_system_instruction(user: User | None) -> str:
    profile_section = ""
    if user is not None and not user.is_admin:
        profile_section = STUDENT_PROFILE_SECTION.format(
            branch=user.branch, year=user.year, semester=user.semester
        )
    return CORE_SYSTEM_PROMPT.format(profile_section=profile_section)


class LLMClient(ABC):
    @abstractmethod
    async def generate_response(self, prompt: str, user: User | None = None) -> str:
        """Single-turn completion. Raises on any provider failure, no retry."""
        pass
