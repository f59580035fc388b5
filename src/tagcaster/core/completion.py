"""Generation function backed by litellm."""

import asyncio
import logging
from typing import Any

import litellm
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ..types import GenerationRequest, Message, RequestError, RetryConfig

logger = logging.getLogger(__name__)


async def complete(request: GenerationRequest) -> str:
    """
    Execute a single completion request using litellm.

    Args:
        request: The generation request

    Returns:
        The text content of the first choice ("" when the model sent none)

    Raises:
        RequestError: If the API call fails
    """
    kwargs = request.to_litellm_kwargs()

    try:
        response = await litellm.acompletion(**kwargs)
    except litellm.exceptions.APIConnectionError as e:
        raise RequestError(f"API connection error: {e}", response=e) from e
    except litellm.exceptions.RateLimitError as e:
        raise RequestError(
            f"Rate limit exceeded: {e}",
            status_code=429,
            response=e,
        ) from e
    except litellm.exceptions.APIError as e:
        raise RequestError(
            f"API error: {e}",
            status_code=getattr(e, "status_code", None),
            response=e,
        ) from e
    except Exception as e:
        raise RequestError(f"Completion failed: {e}", response=e) from e

    if response.choices:
        choice = response.choices[0]
        if choice.message and choice.message.content:
            return choice.message.content
    return ""


def should_retry(exception: BaseException, config: RetryConfig | None = None) -> bool:
    """Determine if an exception should trigger a transport retry."""
    retry_on_status = (config or RetryConfig()).retry_on_status
    if isinstance(exception, RequestError):
        # Retry on specific status codes
        if exception.status_code in retry_on_status:
            return True
        # Don't retry on client errors (4xx except 429)
        if exception.status_code and 400 <= exception.status_code < 500:
            return False
        # Connection failures are wrapped with the transport error as response
        if isinstance(exception.response, litellm.exceptions.APIConnectionError):
            return True
        if isinstance(exception.__cause__, (ConnectionError, TimeoutError)):
            return True
    # Retry on connection errors, timeouts, etc.
    if isinstance(exception, (ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return True
    return False


class LiteLLMGenerator:
    """
    Generation function that sends the conversation to a litellm model.

    Instances are async callables taking the message list and returning the
    raw text of the reply, so they plug straight into ``generate_as``.
    Transient failures (429, 5xx, connection errors, timeouts) are retried
    with exponential backoff and jitter; everything else surfaces as a
    ``RequestError`` immediately.

    Example:
        generate = LiteLLMGenerator("gpt-4o-mini", temperature=0.1)
        person = await generate_as(generate, Person, messages)

        # Offline, without an API key
        generate = LiteLLMGenerator("gpt-4o-mini", mock_response="<Person>...</Person>")
    """

    def __init__(
        self,
        model: str,
        temperature: float | None = 0.1,
        max_tokens: int | None = None,
        timeout: float | None = None,
        retry: RetryConfig | None = None,
        log_requests: bool = False,
        **kwargs: Any,
    ):
        """
        Initialize the generator.

        Args:
            model: litellm model identifier (e.g. "gpt-4o", "claude-3-5-sonnet-20241022")
            temperature: Sampling temperature
            max_tokens: Maximum tokens in the reply
            timeout: Request timeout in seconds
            retry: Transport retry configuration
            log_requests: Log each request and reply at INFO level
            **kwargs: Additional parameters passed to litellm (e.g. mock_response, api_base)
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.retry = retry or RetryConfig()
        self.log_requests = log_requests
        self.extra_kwargs = kwargs

    def build_request(self, messages: list[Message]) -> GenerationRequest:
        """Build the litellm request for a conversation."""
        return GenerationRequest(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout=self.timeout,
            extra_kwargs=dict(self.extra_kwargs),
        )

    async def __call__(self, messages: list[Message]) -> str:
        """
        Generate a reply for the conversation.

        Raises:
            RequestError: If the request fails or transport retries are exhausted
        """
        request = self.build_request(messages)
        config = self.retry

        if self.log_requests:
            logger.info(f"Request: model={self.model}, messages={len(messages)}")

        async for attempt_state in AsyncRetrying(
            stop=stop_after_attempt(config.max_attempts),
            wait=wait_exponential_jitter(
                initial=config.initial_delay,
                max=config.max_delay,
                exp_base=config.exponential_base,
                jitter=config.initial_delay if config.jitter else 0,
            ),
            retry=retry_if_exception(lambda e: should_retry(e, config)),
            reraise=True,
        ):
            with attempt_state:
                attempt = attempt_state.retry_state.attempt_number
                if attempt > 1:
                    logger.info(
                        f"Retry attempt {attempt}/{config.max_attempts} "
                        f"for model={self.model}"
                    )
                content = await complete(request)
                if self.log_requests:
                    logger.info(f"Response: model={self.model}, {len(content)} chars")
                return content

        # This should never be reached, but satisfies type checker
        raise RequestError("Retry logic failed unexpectedly")

    def __repr__(self) -> str:
        return f"LiteLLMGenerator(model={self.model!r})"
