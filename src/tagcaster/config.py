"""Configuration management and environment loading."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .types import ConfigError, RetryConfig

_ENV_PREFIX = "TAGCASTER_"


@dataclass
class CasterConfig:
    """Main configuration for the Caster client."""

    # Default model to use if not specified per-call
    default_model: str | None = None

    # Default generation parameters
    default_temperature: float | None = 0.1
    default_max_tokens: int | None = None

    # Additional attempts after an invalid response
    max_retries: int = 3

    # Transport retries inside the litellm adapter
    retry: RetryConfig = field(default_factory=RetryConfig)

    # Logging
    log_requests: bool = False
    log_level: str = "INFO"

    # Default kwargs to pass to every generation request
    default_kwargs: dict[str, Any] = field(default_factory=dict)

    # Timeout in seconds
    timeout: float = 600.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ConfigError(f"max_retries must be >= 0, got {self.max_retries}")

    @classmethod
    def from_env(cls) -> "CasterConfig":
        """Create config from TAGCASTER_ prefixed environment variables."""
        config = cls()

        if model := _getenv("DEFAULT_MODEL"):
            config.default_model = model

        if temp := _getenv("DEFAULT_TEMPERATURE"):
            config.default_temperature = _parse("DEFAULT_TEMPERATURE", temp, float)

        if max_tokens := _getenv("DEFAULT_MAX_TOKENS"):
            config.default_max_tokens = _parse("DEFAULT_MAX_TOKENS", max_tokens, int)

        if max_retries := _getenv("MAX_RETRIES"):
            value = _parse("MAX_RETRIES", max_retries, int)
            if value < 0:
                raise ConfigError(f"Invalid {_ENV_PREFIX}MAX_RETRIES: {max_retries}")
            config.max_retries = value

        if log_level := _getenv("LOG_LEVEL"):
            config.log_level = log_level.upper()

        if _getenv("LOG_REQUESTS", "").lower() in ("1", "true", "yes"):
            config.log_requests = True

        if attempts := _getenv("RETRY_ATTEMPTS"):
            config.retry.max_attempts = _parse("RETRY_ATTEMPTS", attempts, int)

        if timeout := _getenv("TIMEOUT"):
            config.timeout = _parse("TIMEOUT", timeout, float)

        return config


def _getenv(name: str, default: str | None = None) -> str | None:
    return os.getenv(f"{_ENV_PREFIX}{name}", default)


def _parse(name: str, raw: str, convert: Any) -> Any:
    try:
        return convert(raw)
    except ValueError:
        raise ConfigError(f"Invalid {_ENV_PREFIX}{name}: {raw}") from None


def load_env_files(
    env_file: str | Path | None = None,
    env_files: list[str | Path] | None = None,
) -> None:
    """
    Load environment variables from .env files.

    Args:
        env_file: Single env file to load
        env_files: Multiple env files to load (later files override earlier)
    """
    files_to_load: list[Path] = []

    if env_files:
        files_to_load.extend(Path(f) for f in env_files)
    elif env_file:
        files_to_load.append(Path(env_file))
    else:
        # Default: try to load .env from current directory
        default_env = Path(".env")
        if default_env.exists():
            files_to_load.append(default_env)

    # Load files in order (later overrides earlier)
    for file_path in files_to_load:
        if file_path.exists():
            load_dotenv(file_path, override=True)


def validate_api_keys(required_providers: list[str] | None = None) -> dict[str, bool]:
    """
    Check which API keys are configured.

    Args:
        required_providers: If provided, raise error if any are missing

    Returns:
        Dict mapping provider names to whether their key is set
    """
    key_mapping = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "google": "GOOGLE_API_KEY",
        "deepseek": "DEEPSEEK_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "bedrock": "AWS_ACCESS_KEY_ID",
    }

    results = {provider: bool(os.getenv(env_var)) for provider, env_var in key_mapping.items()}

    if required_providers:
        missing = [p for p in required_providers if not results.get(p)]
        if missing:
            raise ConfigError(
                f"Missing API keys for providers: {', '.join(missing)}. "
                f"Set the corresponding environment variables."
            )

    return results
