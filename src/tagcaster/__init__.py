"""
Tagcaster - Typed structured output from LLMs over tagged markup.

Features:
- Schema instructions rendered from type annotations (recursive types included)
- Process-wide schema cache, computed once per type
- Tolerant decoding: CDATA strings, boolean synonyms, quoted numbers
- Feedback-driven retries until the reply decodes
- litellm backend with transport retries, or any generation function
- Async-first with sync wrappers
"""

from .client import Caster
from .concurrency import ConcurrencyLimiter
from .config import CasterConfig, load_env_files, validate_api_keys
from .core.completion import LiteLLMGenerator
from .core.messages import (
    assistant_message,
    format_messages,
    system_message,
    user_message,
)
from .decoding import BooleanSynonyms, Decoder, decode
from .markup import Element, extract_root, parse_markup
from .markup.encoder import to_markup
from .observability import CallbackManager, create_logging_callbacks
from .orchestrator import ConversationContext, generate_as
from .prompts import PromptTemplates
from .schema import (
    DescriptorRegistry,
    Kind,
    MemberDescriptor,
    SchemaCache,
    ShadowDescriptor,
    Tag,
    TypeDescriptor,
    default_schema_cache,
    descriptor_of,
    render_schema,
    schema_for,
)
from .types import (
    # Exceptions
    CasterError,
    ConfigError,
    DecodeError,
    DecodeIssue,
    ExtractionError,
    GenerateFn,
    GenerationRequest,
    # Message types
    Message,
    MessageDict,
    Messages,
    RequestError,
    RetryConfig,
    RetryLimitExceeded,
    Role,
    TemplateError,
)

__version__ = "0.1.0"

__all__ = [
    # Main client
    "Caster",
    "generate_as",
    "ConversationContext",
    "LiteLLMGenerator",
    "ConcurrencyLimiter",
    # Configuration
    "CasterConfig",
    "RetryConfig",
    "load_env_files",
    "validate_api_keys",
    # Messages
    "Message",
    "Messages",
    "MessageDict",
    "Role",
    "GenerateFn",
    "GenerationRequest",
    "format_messages",
    "user_message",
    "system_message",
    "assistant_message",
    # Schema
    "Tag",
    "Kind",
    "TypeDescriptor",
    "MemberDescriptor",
    "ShadowDescriptor",
    "DescriptorRegistry",
    "descriptor_of",
    "render_schema",
    "SchemaCache",
    "default_schema_cache",
    "schema_for",
    # Markup
    "Element",
    "parse_markup",
    "extract_root",
    "to_markup",
    # Decoding
    "Decoder",
    "BooleanSynonyms",
    "decode",
    # Prompts
    "PromptTemplates",
    # Observability
    "CallbackManager",
    "create_logging_callbacks",
    # Exceptions
    "CasterError",
    "RequestError",
    "ExtractionError",
    "DecodeError",
    "DecodeIssue",
    "RetryLimitExceeded",
    "TemplateError",
    "ConfigError",
]
