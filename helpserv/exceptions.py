"""Exception hierarchy for helpserv.

Every error that can reach an actor carries a Fault, the machine-readable
kind reported alongside the human-readable text. Load-time errors (bad
registrations) use the same base class so callers can catch broadly
when needed.
"""

from enum import Enum
from typing import Any, Optional


class Fault(str, Enum):
    """Kind of failure reported back to the requesting actor."""
    NEEDMOREPARAMS = "needmoreparams"
    BADPARAMS = "badparams"
    NOSUCH_TARGET = "nosuch_target"  # Topic missing or help file unreadable


class HelpServError(Exception):
    """Base exception for all helpserv errors.

    Attributes:
        message: Human-readable error description, safe to show an actor.
        fault: Failure kind used when reporting to the actor.
        module: Originating module name (e.g. "renderer").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        fault: Fault = Fault.NOSUCH_TARGET,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.fault = fault
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def user_message(self) -> str:
        """Text reported to the actor (no module/context decoration)."""
        return self.message or self.__class__.__name__

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, fault={self.fault.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Lookup / rendering
# ---------------------------------------------------------------------------

class HelpNotFoundError(HelpServError):
    """No help entry (or no usable content source) for a topic.

    Attributes:
        topic: The topic the actor asked for.
    """

    def __init__(
        self,
        topic: str,
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.topic = topic
        super().__init__(
            f"No help available for \x02{topic}\x02.",
            fault=Fault.NOSUCH_TARGET,
            module=module or "registry",
            **context,
        )


class SourceUnavailableError(HelpServError):
    """A static help document could not be opened.

    Attributes:
        topic: The topic being rendered.
        path: The resolved file path that failed to open.
    """

    def __init__(
        self,
        topic: str,
        *,
        path: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.topic = topic
        self.path = path
        super().__init__(
            f"Could not get help file for \x02{topic}\x02.",
            fault=Fault.NOSUCH_TARGET,
            module=module or "renderer",
            **context,
        )


# ---------------------------------------------------------------------------
# Load-time errors (never shown to an actor)
# ---------------------------------------------------------------------------

class InvalidRegistrationError(HelpServError):
    """A help entry was declared without a name or without any content."""

    def __init__(
        self,
        message: str = "",
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message, fault=Fault.BADPARAMS, module=module or "registry", **context
        )

