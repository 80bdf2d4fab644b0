"""Base classes for the command handler framework.

Command handlers are grouped into classes that extend
BaseCommandHandler, then registered with a HandlerRegistry that maps
command names to async callables.

Key classes:
    HandlerContext: Dependency container shared by all handlers.
    BaseCommandHandler: ABC that handler groups must implement.
    HandlerRegistry: Maps command names to handler callables.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional

import structlog

if TYPE_CHECKING:
    from ..context import OutputSink
    from ..service import HelpService, ServiceHost

logger = structlog.get_logger("helpserv.commands")

# Handler signature: async (service, actor, args, sink) -> None
CommandHandler = Callable[
    ["HelpService", str, str, "OutputSink"], Awaitable[None]
]


@dataclass
class HandlerContext:
    """Dependency container for command handlers.

    Handlers receive the addressed service as an argument, so HELP
    does not read the host. It is kept here for handler groups that
    need the other services or the loaded-module state.
    """

    host: "ServiceHost"


class BaseCommandHandler(ABC):
    """Abstract base class for command handler groups.

    Subclasses implement get_commands() to return a dict mapping
    command names to async handler functions. Handlers write their
    replies to the sink they are given.

    Args:
        ctx: Shared HandlerContext dependency container.
    """

    def __init__(self, ctx: HandlerContext):
        self.ctx = ctx

    @abstractmethod
    def get_commands(self) -> Dict[str, CommandHandler]:
        """Return {command_name: async_handler} mapping."""
        ...


class HandlerRegistry:
    """Maps command names to handler callables.

    Command names are matched case-insensitively, as IRC services do.
    """

    def __init__(self):
        self._handlers: Dict[str, CommandHandler] = {}

    def register(self, handler: BaseCommandHandler) -> None:
        """Register all commands from a BaseCommandHandler subclass.

        Args:
            handler: Handler instance whose get_commands() dict
                will be merged into the registry.
        """
        for cmd_name, method in handler.get_commands().items():
            key = cmd_name.upper()
            if key in self._handlers:
                logger.warning(
                    "command_handler_conflict",
                    command=key,
                    handler=type(handler).__name__,
                )
            self._handlers[key] = method

    def get(self, command: str) -> Optional[CommandHandler]:
        """Look up a handler for a command name."""
        return self._handlers.get(command.upper())

    @property
    def command_names(self) -> frozenset:
        """All registered command names."""
        return frozenset(self._handlers.keys())
