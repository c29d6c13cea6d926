"""Configuration management for git-explain."""

import json
from pathlib import Path
from typing import Any

from rich import print

from git_explain.exceptions import ConfigurationError
from git_explain.progress import ProgressCallback, ProgressNotifier

# Providers whose API keys can be stored locally
AI_PROVIDERS = ["openai", "anthropic", "google", "groq"]


class Config:
    """Manage git-explain configuration and AI API key storage."""

    def __init__(self, progress_callback: ProgressCallback | None = None) -> None:
        """Initialize config with default paths.

        Args:
            progress_callback: Receives status messages instead of them being
                printed to the console
        """
        self.config_dir = Path.home() / ".git-explain"
        self.config_file = self.config_dir / "config.json"
        self._notifier = ProgressNotifier(progress_callback)
        self._ensure_config_dir()

    def _ensure_config_dir(self) -> None:
        """Create config directory if it doesn't exist."""
        self.config_dir.mkdir(exist_ok=True)
        self.config_dir.chmod(0o700)

    def _report(self, message: str, completed: bool = True) -> None:
        if self._notifier.callback is None:
            print(f"[green]✓[/green] {message}" if completed else message)
        elif completed:
            self._notifier.completed(message)
        else:
            self._notifier.info(message)

    def _load_config(self) -> dict[str, Any]:
        """Load existing config or return empty dict."""
        if not self.config_file.exists():
            return {}

        try:
            with self.config_file.open() as f:
                return json.load(f)  # type: ignore[no-any-return]
        except (json.JSONDecodeError, OSError):
            return {}

    def _save_config(self, config_data: dict[str, Any]) -> None:
        if not config_data:
            self.config_file.unlink(missing_ok=True)
            return

        with self.config_file.open("w") as f:
            json.dump(config_data, f, indent=2)
        self.config_file.chmod(0o600)

    @staticmethod
    def _check_provider(provider: str) -> str:
        provider = provider.lower()
        if provider not in AI_PROVIDERS:
            raise ConfigurationError(
                f"Unknown provider '{provider}'. Use one of: {', '.join(AI_PROVIDERS)}"
            )
        return provider

    def get_ai_api_key(self, provider: str) -> str | None:
        """Get the stored API key for an AI provider.

        Returns:
            The key if stored, None otherwise
        """
        keys = self._load_config().get("ai_api_keys", {})
        return keys.get(provider.lower())

    def set_ai_api_key(self, provider: str, api_key: str) -> None:
        """Store an API key for an AI provider.

        Raises:
            ConfigurationError: If the provider is unknown
        """
        provider = self._check_provider(provider)
        config_data = self._load_config()
        config_data.setdefault("ai_api_keys", {})[provider] = api_key
        self._save_config(config_data)
        self._report(f"{provider.title()} API key stored securely in {self.config_file}")

    def remove_ai_api_key(self, provider: str) -> None:
        """Remove the stored API key for an AI provider."""
        provider = provider.lower()
        config_data = self._load_config()
        keys = config_data.get("ai_api_keys", {})

        if provider not in keys:
            self._report(f"No {provider} API key stored", completed=False)
            return

        del keys[provider]
        if not keys:
            config_data.pop("ai_api_keys")
        self._save_config(config_data)
        self._report(f"{provider.title()} API key removed from local storage")

    def list_ai_api_keys(self) -> dict[str, bool]:
        """Return which providers have a stored API key."""
        keys = self._load_config().get("ai_api_keys", {})
        return {provider: bool(keys.get(provider)) for provider in AI_PROVIDERS}

    def get_default_backend(self) -> str | None:
        """Get the name of the backend preselected in menus."""
        return self._load_config().get("default_backend")

    def set_default_backend(self, name: str) -> None:
        config_data = self._load_config()
        config_data["default_backend"] = name
        self._save_config(config_data)
        self._report(f"Default backend set to {name}")

    def get_config_info(self) -> dict[str, Any]:
        """Get information about current configuration.

        Returns:
            Dictionary with config status information
        """
        config_exists = self.config_file.exists()

        return {
            "config_file": str(self.config_file),
            "config_exists": config_exists,
            "default_backend": self.get_default_backend(),
            "ai_api_keys": self.list_ai_api_keys(),
            "config_file_permissions": oct(self.config_file.stat().st_mode)[-3:]
            if config_exists
            else None,
        }
