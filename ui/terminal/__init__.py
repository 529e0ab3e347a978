"""
Terminal UI Module - Line-oriented console
==========================================

This module provides the interactive console conversation: a prompt,
a reply per line, and an optional typing delay.
"""

from .app import ConsoleSession, run_console

__all__ = [
    "ConsoleSession",
    "run_console",
]
