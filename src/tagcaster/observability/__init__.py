"""Observability module for tagcaster."""

from .callbacks import (
    CallbackManager,
    OnAttemptCallback,
    OnInvalidCallback,
    OnSuccessCallback,
    create_logging_callbacks,
)

__all__ = [
    "CallbackManager",
    "OnAttemptCallback",
    "OnInvalidCallback",
    "OnSuccessCallback",
    "create_logging_callbacks",
]
