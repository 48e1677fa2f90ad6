"""
tools/settings_store.py
Author: Yang
Description: Vision provider settings (provider, model, API key, token budget)
             persisted under the "settings" key and merged over config.py defaults.
"""

import logging

from config import (
    AI_MAX_TOKENS, AI_MODEL, AI_PROVIDER, AI_TEMPERATURE,
    MAX_TOKENS_MAX, MAX_TOKENS_MIN, PROVIDER_API_KEYS, SETTINGS_KEY,
)
from memory.errors import InvalidInput, PersistenceError

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, dict] = {
    "openai": {
        "name": "OpenAI",
        "models": [
            {"id": "gpt-4o",            "name": "GPT-4o (Recommended)"},
            {"id": "gpt-4o-mini",       "name": "GPT-4o Mini (Cheaper)"},
            {"id": "gpt-4-turbo",       "name": "GPT-4 Turbo"},
            {"id": "chatgpt-4o-latest", "name": "ChatGPT-4o Latest"},
        ],
        "api_key_prefix": "sk-",
        "api_key_label":  "OpenAI API Key",
    },
    "gemini": {
        "name": "Google Gemini",
        "models": [
            {"id": "gemini-2.5-flash",      "name": "Gemini 2.5 Flash (Stable & Fast)"},
            {"id": "gemini-2.5-flash-lite", "name": "Gemini 2.5 Flash-Lite (Cheapest)"},
            {"id": "gemini-2.5-pro",        "name": "Gemini 2.5 Pro (Deep thinking)"},
        ],
        "api_key_prefix": "AI",
        "api_key_label":  "Google AI API Key",
    },
    "anthropic": {
        "name": "Anthropic Claude",
        "models": [
            {"id": "claude-3-opus-20240229",   "name": "Claude 3 Opus"},
            {"id": "claude-3-sonnet-20240229", "name": "Claude 3 Sonnet"},
            {"id": "claude-3-haiku-20240307",  "name": "Claude 3 Haiku (Faster)"},
        ],
        "api_key_prefix": "sk-ant-",
        "api_key_label":  "Anthropic API Key",
    },
}

_MASK_MIN_LEN = 15


def default_settings() -> dict:
    return {
        "provider":    AI_PROVIDER,
        "apiKey":      PROVIDER_API_KEYS.get(AI_PROVIDER, ""),
        "model":       AI_MODEL,
        "maxTokens":   AI_MAX_TOKENS,
        "temperature": AI_TEMPERATURE,
    }


class SettingsStore:
    """Read-merge-write access to the settings record."""

    def __init__(self, store, key: str = SETTINGS_KEY):
        self.store = store
        self.key   = key

    def get_config(self) -> dict:
        """Stored settings over defaults. Read errors fall back to defaults."""
        config = default_settings()
        try:
            stored = self.store.read(self.key) or {}
        except Exception as e:
            logger.error("Failed to get config: %s", e)
            return config
        config.update(stored)
        if not config.get("apiKey"):
            config["apiKey"] = PROVIDER_API_KEYS.get(config.get("provider"), "")
        return config

    def save_config(self, config: dict) -> None:
        try:
            ok = self.store.write(self.key, config)
        except Exception as e:
            logger.error("Failed to save config: %s", e)
            raise PersistenceError(f"could not save settings: {e}") from e
        if ok is False:
            raise PersistenceError("could not save settings: store rejected write")

    # ── Setters ───────────────────────────────────────────────────────────────

    def set_provider(self, provider: str) -> None:
        """Switch provider and reset the model to that provider's first entry."""
        if provider not in PROVIDERS:
            raise InvalidInput(f"Unknown provider: {provider}")
        config = self.get_config()
        config["provider"] = provider
        config["model"]    = PROVIDERS[provider]["models"][0]["id"]
        self.save_config(config)

    def set_model(self, model: str) -> None:
        if not model or not isinstance(model, str):
            raise InvalidInput("Model must be a non-empty string")
        config = self.get_config()
        config["model"] = model
        self.save_config(config)

    def set_api_key(self, api_key: str) -> None:
        """Store *api_key* after checking it against the current provider's prefix."""
        if not api_key or not isinstance(api_key, str):
            raise InvalidInput("Invalid API key")
        config   = self.get_config()
        provider = PROVIDERS.get(config.get("provider"), PROVIDERS["openai"])
        if not api_key.startswith(provider["api_key_prefix"]):
            raise InvalidInput(
                f'{provider["name"]} API keys should start with "{provider["api_key_prefix"]}"')
        config["apiKey"] = api_key
        self.save_config(config)

    def set_max_tokens(self, max_tokens: int) -> None:
        if (not isinstance(max_tokens, int) or isinstance(max_tokens, bool)
                or not MAX_TOKENS_MIN <= max_tokens <= MAX_TOKENS_MAX):
            raise InvalidInput(
                f"Max tokens must be between {MAX_TOKENS_MIN} and {MAX_TOKENS_MAX}")
        config = self.get_config()
        config["maxTokens"] = max_tokens
        self.save_config(config)

    def clear_api_key(self) -> None:
        config = self.get_config()
        config["apiKey"] = ""
        self.save_config(config)

    def reset_to_defaults(self) -> None:
        self.save_config(default_settings())

    # ── Queries ───────────────────────────────────────────────────────────────

    def validate(self) -> dict:
        config   = self.get_config()
        issues   = []
        provider = PROVIDERS.get(config.get("provider"))

        if provider is None:
            issues.append(f"Unknown provider: {config.get('provider')}")
        if not config.get("apiKey"):
            issues.append("API key is not configured")
        elif provider and not config["apiKey"].startswith(provider["api_key_prefix"]):
            issues.append("API key format appears invalid")
        if not config.get("model"):
            issues.append("Model is not set")
        max_tokens = config.get("maxTokens", 0)
        if not isinstance(max_tokens, int) or not MAX_TOKENS_MIN <= max_tokens <= MAX_TOKENS_MAX:
            issues.append("Max tokens is out of valid range")

        return {"valid": not issues, "issues": issues}

    def get_masked_api_key(self) -> str:
        """First 7 and last 4 characters, the rest as bullets."""
        api_key = self.get_config().get("apiKey", "")
        if not api_key or len(api_key) < _MASK_MIN_LEN:
            return "Not configured"
        return api_key[:7] + "•" * (len(api_key) - 11) + api_key[-4:]

    def get_available_models(self) -> list[dict]:
        provider = self.get_config().get("provider", "openai")
        return PROVIDERS.get(provider, {}).get("models", [])
