"""Analysis backends for git-explain.

An analysis backend turns diff text or contributor statistics into prose.
Callers only ever see ``AnalysisBackend``; which provider answers is decided
when the backend is built from a registry descriptor.
"""

import logging
from abc import ABC, abstractmethod

from git_explain.ai.client import LLMClient
from git_explain.ai.prompts import (
    COMMIT_MESSAGE_PROMPT,
    CONTRIBUTOR_PROMPT,
    FILE_CHANGES_PROMPT,
    truncate_input,
)

logger = logging.getLogger(__name__)


class AnalysisBackend(ABC):
    """Capability every analysis backend provides.

    Each operation either returns the generated text or raises
    ``GenerationError``. Implementations may retry or time out internally
    but must not touch caller state.
    """

    name: str = "backend"

    @abstractmethod
    async def generate_commit_message(self, diff: str) -> str:
        """Generate a commit message for a full diff."""

    @abstractmethod
    async def analyze_file_changes(self, diff: str) -> str:
        """Explain the diff of a single file."""

    @abstractmethod
    async def analyze_contributor(self, stats: str) -> str:
        """Summarize a contributor's activity from statistics text."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}')>"


class LiteLLMBackend(AnalysisBackend):
    """Analysis backend answered by any model LiteLLM can reach."""

    def __init__(
        self,
        name: str,
        llm_client: LLMClient,
        max_input_chars: int = 12000,
    ) -> None:
        """Initialize the backend.

        Args:
            name: Display name of the backend
            llm_client: Client used for every request
            max_input_chars: Longer inputs are truncated before sending
        """
        self.name = name
        self.llm_client = llm_client
        self.max_input_chars = max_input_chars

    async def _ask(self, system_prompt: str, content: str) -> str:
        user_content = truncate_input(content, self.max_input_chars)
        if user_content != content:
            logger.info(
                f"{self.name}: input truncated from {len(content)} to "
                f"{self.max_input_chars} chars"
            )
        return await self.llm_client.generate(system_prompt, user_content)

    async def generate_commit_message(self, diff: str) -> str:
        return await self._ask(COMMIT_MESSAGE_PROMPT, diff)

    async def analyze_file_changes(self, diff: str) -> str:
        return await self._ask(FILE_CHANGES_PROMPT, diff)

    async def analyze_contributor(self, stats: str) -> str:
        return await self._ask(CONTRIBUTOR_PROMPT, stats)
