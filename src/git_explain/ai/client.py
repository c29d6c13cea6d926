"""LiteLLM client wrapper for git-explain.

This module provides a clean interface around LiteLLM with our conventions,
supporting multiple AI providers with an optional fallback model and a
single error type for every failure.
"""

import logging
import os

import litellm
from litellm import acompletion

from git_explain.config import Config
from git_explain.exceptions import GenerationError

logger = logging.getLogger(__name__)

# Environment variables LiteLLM reads for each provider
API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GEMINI_API_KEY",
    "groq": "GROQ_API_KEY",
}


class LLMClient:
    """Clean wrapper around LiteLLM with our conventions."""

    def __init__(
        self,
        model: str,
        fallback_model: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        timeout: int = 60,
        api_base: str | None = None,
    ):
        """Initialize the LLM client.

        Args:
            model: LiteLLM model identifier (e.g., "openai/gpt-4o-mini", "ollama/llama3.1")
            fallback_model: Model tried once if the primary model fails
            max_tokens: Maximum tokens in response
            temperature: Response creativity (0.0-1.0)
            timeout: Request timeout in seconds
            api_base: Override the provider endpoint (local servers)
        """
        self.model = model
        self.fallback_model = fallback_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.api_base = api_base

        litellm.set_verbose = False  # We handle our own logging
        litellm.drop_params = True  # Drop unsupported parameters gracefully

        self._setup_api_keys()
        self._validate_api_keys()

        logger.info(f"Initialized LLM client with model: {model}, fallback: {fallback_model}")

    def _setup_api_keys(self) -> None:
        """Export stored API keys, never overriding the environment."""
        config = Config()

        for provider, env_var in API_KEY_ENV_VARS.items():
            if os.getenv(env_var):
                continue
            key = config.get_ai_api_key(provider)
            if key:
                os.environ[env_var] = key
                logger.debug(f"Set {env_var} from config")

    def _validate_api_keys(self) -> None:
        """Warn about missing API keys for the configured models."""
        missing = []
        for model in filter(None, [self.model, self.fallback_model]):
            provider = model.split("/", 1)[0].lower()
            if provider == "gemini":
                provider = "google"
            env_var = API_KEY_ENV_VARS.get(provider)
            if env_var and not os.getenv(env_var) and env_var not in missing:
                missing.append(env_var)

        if missing:
            logger.warning(f"Missing API keys: {', '.join(missing)}. Some models may not work.")

    async def _complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        tokens: int,
        temp: float,
    ) -> str:
        kwargs = {}
        if self.api_base:
            kwargs["api_base"] = self.api_base

        response = await acompletion(
            model=model,
            messages=messages,
            max_tokens=tokens,
            temperature=temp,
            timeout=self.timeout,
            **kwargs,
        )

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise GenerationError(f"Malformed response from {model}") from e
        if not content or not str(content).strip():
            raise GenerationError(f"Empty response from {model}")

        return str(content).strip()

    async def generate(
        self,
        system_prompt: str,
        user_content: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Generate text with automatic fallback.

        Args:
            system_prompt: System instruction for the AI
            user_content: User content to analyze
            max_tokens: Override default max tokens
            temperature: Override default temperature

        Returns:
            Generated text

        Raises:
            GenerationError: If the primary model (and the fallback, when
                configured) fails
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]
        tokens = max_tokens or self.max_tokens
        temp = self.temperature if temperature is None else temperature

        try:
            logger.debug(f"Attempting generation with model: {self.model}")
            content = await self._complete(self.model, messages, tokens, temp)
            logger.info(f"Generated {len(content)} chars with {self.model}")
            return content
        except Exception as e:
            if not self.fallback_model:
                logger.error(f"Model {self.model} failed: {e}")
                if isinstance(e, GenerationError):
                    raise
                raise GenerationError(f"Model {self.model} failed: {e}") from e

            logger.warning(f"Primary model {self.model} failed: {e}")

            try:
                logger.info(f"Attempting fallback to model: {self.fallback_model}")
                content = await self._complete(self.fallback_model, messages, tokens, temp)
                logger.info(f"Generated {len(content)} chars with fallback {self.fallback_model}")
                return content
            except Exception as fallback_error:
                logger.error(f"Fallback model {self.fallback_model} also failed: {fallback_error}")
                raise GenerationError(
                    f"Both primary ({e}) and fallback ({fallback_error}) models failed"
                ) from fallback_error
