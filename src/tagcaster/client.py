"""Main Caster client class."""

import asyncio
import logging
from pathlib import Path
from typing import Any, TypeVar, overload

from .concurrency import ConcurrencyLimiter
from .config import CasterConfig, load_env_files
from .core.completion import LiteLLMGenerator
from .core.messages import format_messages
from .decoding.decoder import Decoder, default_decoder
from .observability.callbacks import CallbackManager
from .orchestrator import generate_as
from .prompts import PromptTemplates
from .schema.cache import SchemaCache, default_schema_cache
from .types import GenerateFn, Messages, RetryConfig

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Caster:
    """
    Batteries-included client turning model replies into typed values.

    Features:
    - Schema instructions rendered from type annotations and cached per type
    - Tolerant decoding with feedback-driven retries
    - litellm backend with transport retries, or any custom generation function
    - Async-first with sync wrappers
    - Full passthrough of provider kwargs
    """

    def __init__(
        self,
        # Environment
        env_file: str | Path | None = None,
        env_files: list[str | Path] | None = None,
        # Configuration
        config: CasterConfig | None = None,
        default_model: str | None = None,
        max_retries: int | None = None,
        retry: RetryConfig | None = None,
        # Generation backend (defaults to litellm)
        generate: GenerateFn | None = None,
        # Schema & decoding
        schema_cache: SchemaCache | None = None,
        decoder: Decoder | None = None,
        templates: PromptTemplates | None = None,
        # Logging & Observability
        log_requests: bool = False,
        log_level: str = "INFO",
        callbacks: CallbackManager | None = None,
        # Defaults
        default_kwargs: dict[str, Any] | None = None,
        timeout: float = 600.0,
    ):
        """
        Initialize the Caster client.

        Args:
            env_file: Path to .env file to load
            env_files: Multiple .env files to load (later overrides earlier)
            config: Full configuration object (overrides individual params)
            default_model: Default model to use if not specified per-call
            max_retries: Additional attempts after an invalid response
            retry: Transport retry configuration for the litellm backend
            generate: Custom generation function used instead of litellm
            schema_cache: Schema cache (defaults to the process-wide one)
            decoder: Decoder (defaults to the process-wide one)
            templates: Prompt templates for instructions and feedback
            log_requests: Whether to log requests/responses
            log_level: Logging level
            callbacks: Callback manager for attempt lifecycle hooks
            default_kwargs: Default kwargs for all generation requests
            timeout: Request timeout in seconds
        """
        # Load environment files
        load_env_files(env_file, env_files)

        # Build configuration
        if config:
            self._config = config
        else:
            # Start with env-based config, then override with explicit params
            self._config = CasterConfig.from_env()

            if default_model:
                self._config.default_model = default_model
            if max_retries is not None:
                if max_retries < 0:
                    raise ValueError(f"max_retries must be >= 0, got {max_retries}")
                self._config.max_retries = max_retries
            if retry:
                self._config.retry = retry
            if log_requests:
                self._config.log_requests = log_requests
            if log_level != "INFO":
                self._config.log_level = log_level.upper()
            if default_kwargs:
                self._config.default_kwargs = default_kwargs
            if timeout != 600.0:
                self._config.timeout = timeout

        # Setup logging
        logging.basicConfig(level=getattr(logging, self._config.log_level))

        self._generate = generate
        self._schema_cache = schema_cache or default_schema_cache
        self._decoder = decoder or default_decoder
        self._templates = templates or PromptTemplates()
        self._callbacks = callbacks

    def generator(
        self,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> GenerateFn:
        """
        Get the generation function for a call.

        Returns the custom function when one was given, otherwise a
        LiteLLMGenerator built from the configured defaults and the
        per-call overrides. Per-call overrides do not apply to a custom
        function and are logged as ignored.

        Raises:
            ValueError: If no model is given and no default_model is configured
        """
        if self._generate is not None:
            ignored = [
                name
                for name, value in (
                    ("model", model),
                    ("temperature", temperature),
                    ("max_tokens", max_tokens),
                )
                if value is not None
            ] + sorted(kwargs)
            if ignored:
                logger.warning(
                    f"Custom generate function in use; ignoring {', '.join(ignored)}"
                )
            return self._generate

        effective_model = model or self._config.default_model
        if not effective_model:
            raise ValueError(
                "No model specified. Either pass model= or set default_model in config."
            )

        extra_kwargs = {**self._config.default_kwargs, **kwargs}
        return LiteLLMGenerator(
            effective_model,
            temperature=(
                temperature if temperature is not None else self._config.default_temperature
            ),
            max_tokens=max_tokens if max_tokens is not None else self._config.default_max_tokens,
            timeout=self._config.timeout,
            retry=self._config.retry,
            log_requests=self._config.log_requests,
            **extra_kwargs,
        )

    @overload
    async def cast(
        self,
        response_model: type[T],
        messages: Messages | str | None = None,
        *,
        model: str | None = None,
        system: str | None = None,
        user: str | None = None,
        example: Any = None,
        max_retries: int | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> T: ...

    @overload
    async def cast(
        self,
        response_model: Any,
        messages: Messages | str | None = None,
        *,
        model: str | None = None,
        system: str | None = None,
        user: str | None = None,
        example: Any = None,
        max_retries: int | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> Any: ...

    async def cast(
        self,
        response_model: Any,
        messages: Messages | str | None = None,
        *,
        model: str | None = None,
        system: str | None = None,
        user: str | None = None,
        example: Any = None,
        max_retries: int | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> Any:
        """
        Ask the model for a value of ``response_model``.

        Args:
            response_model: Type to produce (pydantic model, Enum, leaf,
                container, union, or an Annotated type carrying a Tag)
            messages: Messages list or single user message string
            model: Model identifier (uses default_model if not provided)
            system: System prompt (prepended to messages)
            user: User message (appended to messages)
            example: Optional valid instance shown to the model
            max_retries: Additional attempts after an invalid response
            temperature: Sampling temperature
            max_tokens: Maximum tokens in each reply
            **kwargs: Additional litellm parameters (e.g. mock_response)

        Returns:
            The decoded value

        Raises:
            RequestError: If the generation request fails
            RetryLimitExceeded: If every attempt produced an invalid response
        """
        final_messages = format_messages(messages, system, user)
        if not final_messages:
            raise ValueError("No messages provided. Pass messages=, system= or user=.")

        generate = self.generator(model, temperature, max_tokens, **kwargs)
        retries = max_retries if max_retries is not None else self._config.max_retries

        logger.debug(f"Casting {response_model!r} with {len(final_messages)} messages")
        return await generate_as(
            generate,
            response_model,
            final_messages,
            max_retries=retries,
            schema_cache=self._schema_cache,
            decoder=self._decoder,
            example=example,
            templates=self._templates,
            callbacks=self._callbacks,
        )

    def cast_sync(
        self,
        response_model: Any,
        messages: Messages | str | None = None,
        **kwargs: Any,
    ) -> Any:
        """
        Synchronous version of cast().

        See cast() for full parameter documentation.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            # We're in an async context - use thread
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor() as executor:
                future = executor.submit(
                    asyncio.run,
                    self.cast(response_model, messages, **kwargs),
                )
                return future.result()
        else:
            return asyncio.run(self.cast(response_model, messages, **kwargs))

    async def cast_many(
        self,
        requests: list[dict[str, Any]],
        max_concurrency: int = 10,
    ) -> list[Any]:
        """
        Run multiple casts in parallel with concurrency control.

        Args:
            requests: List of kwargs dicts for cast(). Each must contain
                     ``response_model`` and may set its own model, messages, etc.
            max_concurrency: Maximum concurrent casts (default: 10)

        Returns:
            List of decoded values in same order as requests

        Example:
            people = await caster.cast_many([
                {"response_model": Person, "messages": "Describe Ada Lovelace"},
                {"response_model": Person, "messages": "Describe Alan Turing"},
            ])
        """
        limiter = ConcurrencyLimiter(max_concurrency)

        async def process_one(req_kwargs: dict[str, Any]) -> Any:
            async with limiter:
                return await self.cast(**req_kwargs)

        tasks = [process_one(req) for req in requests]
        return await asyncio.gather(*tasks)

    def schema_for(self, response_model: Any) -> str:
        """Get the schema text sent to the model for ``response_model``."""
        return self._schema_cache.schema_for(response_model)

    # Properties
    @property
    def config(self) -> CasterConfig:
        """Get the current configuration."""
        return self._config

    @property
    def schema_cache(self) -> SchemaCache:
        """Get the schema cache."""
        return self._schema_cache

    @property
    def decoder(self) -> Decoder:
        """Get the decoder."""
        return self._decoder

    @property
    def templates(self) -> PromptTemplates:
        """Get the prompt templates."""
        return self._templates

    @property
    def callbacks(self) -> CallbackManager | None:
        """Get the callback manager."""
        return self._callbacks

    def schema_cache_stats(self) -> dict[str, int]:
        """Get schema cache statistics."""
        return self._schema_cache.stats()
