"""
Services Module - Conversation services for the Eliza engine
============================================================

This module provides the main services:
- Response Engine: script-driven reply generation
"""

from .responder import (
    ResponseEngine,
    ResponseResult,
    ResponseSource,
    ConversationState,
    inject_typo,
)

__all__ = [
    "ResponseEngine",
    "ResponseResult",
    "ResponseSource",
    "ConversationState",
    "inject_typo",
]
