"""AI integration module for git-explain.

Analysis backends built on LiteLLM for multi-provider support, plus the
prompts they send.
"""

from .backends import AnalysisBackend, LiteLLMBackend
from .client import LLMClient

__all__ = [
    "AnalysisBackend",
    "LiteLLMBackend",
    "LLMClient",
]
