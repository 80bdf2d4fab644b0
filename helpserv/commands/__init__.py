"""Command handler framework for helpserv.

Provides the BaseCommandHandler ABC, HandlerContext dependency
container, and HandlerRegistry for mapping command names to async
handlers.
"""

from .base import BaseCommandHandler, CommandHandler, HandlerContext, HandlerRegistry
from .core import HelpCommandHandler

__all__ = [
    "BaseCommandHandler",
    "CommandHandler",
    "HandlerContext",
    "HandlerRegistry",
    "HelpCommandHandler",
]
