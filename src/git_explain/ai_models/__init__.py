"""Backend registry for git-explain.

This module provides the ModelManager class, which loads the available
analysis backends from YAML provider files and builds them on demand.
Built-in providers ship in ``built_in/``; users can add their own files to
``~/.git-explain/backends/``.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from git_explain.ai.backends import AnalysisBackend, LiteLLMBackend
from git_explain.ai.client import LLMClient
from git_explain.config import Config

logger = logging.getLogger(__name__)

VALID_TIERS = ["free", "low", "medium", "high"]


@dataclass
class BackendDescriptor:
    """Registry entry describing one buildable analysis backend."""

    name: str
    display_name: str
    provider: str
    description: str
    context_limit: int
    tier: str
    api_key_env: str | None = None
    api_base: str | None = None
    fallback_model: str | None = None
    yaml_path: str | None = None

    @property
    def label(self) -> str:
        """Menu label for selection prompts."""
        return f"{self.display_name} ({self.provider})"

    @property
    def max_input_chars(self) -> int:
        # Roughly four characters per token, leaving room for prompt and answer
        return max(4000, min(self.context_limit * 2, 48000))

    def build(self) -> AnalysisBackend:
        """Construct the analysis backend this descriptor describes."""
        client = LLMClient(
            model=self.name,
            fallback_model=self.fallback_model,
            api_base=self.api_base,
        )
        return LiteLLMBackend(
            name=self.display_name,
            llm_client=client,
            max_input_chars=self.max_input_chars,
        )


class ModelManager:
    """Load and list the analysis backends available to the session."""

    def __init__(self, extra_dirs: list[Path] | None = None) -> None:
        """Initialize the ModelManager.

        Args:
            extra_dirs: Additional directories of provider YAML files. Defaults
                to the user directory ``~/.git-explain/backends``.
        """
        self._backends: dict[str, BackendDescriptor] = {}
        self._providers: dict[str, str | None] = {}

        self._load_dir(Path(__file__).parent / "built_in")
        if extra_dirs is None:
            extra_dirs = [Path.home() / ".git-explain" / "backends"]
        for directory in extra_dirs:
            self._load_dir(directory)

    def _load_dir(self, directory: Path) -> None:
        if not directory.exists():
            logger.debug(f"Backend directory not found: {directory}")
            return

        for yaml_file in sorted(directory.glob("*.yaml")):
            self._load_provider_file(yaml_file)

    def _load_provider_file(self, yaml_file: Path) -> None:
        """Load a provider YAML file, skipping invalid entries."""
        try:
            with open(yaml_file, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML syntax in {yaml_file}: {e}")
            return
        except OSError as e:
            logger.error(f"Cannot read backend file {yaml_file}: {e}")
            return

        if not self._validate_provider_structure(data, yaml_file):
            return

        provider_name = data["provider"]
        api_key_env = data.get("api_key_env")
        loaded = 0

        for i, entry in enumerate(data["models"]):
            if not self._validate_model_definition(entry, yaml_file, i):
                continue

            descriptor = BackendDescriptor(
                name=entry["name"],
                display_name=entry.get("display_name", entry["name"]),
                provider=provider_name,
                description=entry["description"],
                context_limit=int(entry["context_limit"]),
                tier=entry["tier"].lower(),
                api_key_env=api_key_env,
                api_base=entry.get("api_base", data.get("api_base")),
                fallback_model=entry.get("fallback_model"),
                yaml_path=str(yaml_file),
            )
            if descriptor.name in self._backends:
                logger.info(f"Backend {descriptor.name} redefined by {yaml_file}")
            self._backends[descriptor.name] = descriptor
            loaded += 1

        if loaded:
            self._providers[provider_name.lower()] = api_key_env
            logger.debug(f"Loaded {loaded} backends from {provider_name}")
        else:
            logger.warning(f"No valid backends found in {yaml_file}")

    def _validate_provider_structure(self, data: Any, file_path: Path) -> bool:
        if not isinstance(data, dict):
            logger.error(f"Backend file {file_path}: root must be a mapping")
            return False

        for field in ["provider", "models"]:
            if field not in data:
                logger.error(f"Backend file {file_path} missing required field '{field}'")
                return False

        if not isinstance(data["models"], list):
            logger.error(f"Backend file {file_path}: 'models' must be a list")
            return False

        return True

    def _validate_model_definition(self, model: Any, file_path: Path, index: int) -> bool:
        if not isinstance(model, dict):
            logger.error(f"Model {index} in {file_path} must be a mapping")
            return False

        for field in ["name", "description", "context_limit", "tier"]:
            if field not in model:
                logger.error(f"Model {index} in {file_path} missing required field '{field}'")
                return False

        try:
            if int(model["context_limit"]) <= 0:
                logger.error(f"Model {model['name']} in {file_path} has invalid context_limit")
                return False
        except (ValueError, TypeError):
            logger.error(f"Model {model['name']} in {file_path} has non-numeric context_limit")
            return False

        if str(model["tier"]).lower() not in VALID_TIERS:
            logger.error(
                f"Model {model['name']} in {file_path} has invalid tier '{model['tier']}'. "
                f"Must be one of: {VALID_TIERS}"
            )
            return False

        return True

    def list_available_backends(self, provider: str | None = None) -> list[BackendDescriptor]:
        """Return descriptors ordered by provider, tier and name.

        Args:
            provider: Filter by provider name (case-insensitive)
        """
        backends = list(self._backends.values())

        if provider:
            backends = [b for b in backends if b.provider.lower() == provider.lower()]

        backends.sort(key=lambda b: (b.provider, VALID_TIERS.index(b.tier), b.name))
        return backends

    def get_backend(self, name: str) -> BackendDescriptor | None:
        """Look up a descriptor by model name or display name."""
        if name in self._backends:
            return self._backends[name]

        for descriptor in self._backends.values():
            if descriptor.display_name.lower() == name.lower():
                return descriptor
        return None

    def get_providers(self) -> list[str]:
        return list(self._providers.keys())

    def check_api_key_status(self, descriptor: BackendDescriptor) -> bool:
        """Check whether the backend's provider has an API key available.

        Providers without an ``api_key_env`` (local servers) always count as
        configured.
        """
        if not descriptor.api_key_env:
            return True

        if os.getenv(descriptor.api_key_env):
            return True

        return bool(Config().get_ai_api_key(descriptor.provider))

    def get_backends_with_status(self) -> list[dict[str, Any]]:
        """Get all backends with their API key configuration status."""
        result = []
        for descriptor in self.list_available_backends():
            status = self.check_api_key_status(descriptor)
            result.append(
                {
                    "backend": descriptor,
                    "configured": status,
                    "status_text": "✓ Configured" if status else "✗ Not configured",
                }
            )
        return result
