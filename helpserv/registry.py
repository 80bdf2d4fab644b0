"""Help entry registry.

Maps case-insensitive topic names to help entries. An entry either
points at a static help document or carries a dynamic handler that
writes its own output. Insertion order is kept so topic listings are
stable.

Key classes:
    HelpEntry: A single registered topic.
    HelpRegistry: Ordered collection of entries.

Key functions:
    help_addentry, help_delentry: Thin wrappers used by services modules.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

import structlog

from .context import OutputSink, SourceInfo
from .exceptions import HelpNotFoundError, InvalidRegistrationError

logger = structlog.get_logger("helpserv.registry")

# Dynamic help handler: writes its own lines to the sink.
HelpHandler = Callable[[SourceInfo, OutputSink], None]


@dataclass(frozen=True)
class HelpEntry:
    """A registered help topic.

    Exactly one of ``file`` and ``handler`` is set.

    Attributes:
        name: Topic name, matched case-insensitively.
        file: Static help document path (absolute or share-relative).
        handler: Dynamic handler called with (source, sink).
        access: Descriptive access label; never evaluated here.
    """

    name: str
    file: Optional[str] = None
    handler: Optional[HelpHandler] = None
    access: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise InvalidRegistrationError("help entry without a topic name")
        if self.file is None and self.handler is None:
            raise InvalidRegistrationError(
                "help entry without file or handler", topic=self.name
            )
        if self.file is not None and self.handler is not None:
            raise InvalidRegistrationError(
                "help entry with both file and handler", topic=self.name
            )

    @property
    def is_static(self) -> bool:
        return self.file is not None

    @property
    def is_dynamic(self) -> bool:
        return self.handler is not None

    def matches(self, name: str) -> bool:
        return self.name.lower() == name.lower()


class HelpRegistry:
    """Ordered, case-insensitive collection of help entries.

    Duplicate names are tolerated; the first one registered wins on
    lookup and ``remove_entry`` drops them all.

    Args:
        label: Name used in log events (usually the owning service).
    """

    def __init__(self, label: str = ""):
        self.label = label
        self._entries: List[HelpEntry] = []

    def add_entry(
        self,
        name: Optional[str],
        file: Optional[str] = None,
        handler: Optional[HelpHandler] = None,
        access: Optional[str] = None,
    ) -> Optional[HelpEntry]:
        """Append a help entry.

        When both ``file`` and ``handler`` are given the handler is kept.
        Invalid registrations are logged and ignored.

        Returns:
            The new entry, or None if the registration was rejected.
        """
        if handler is not None:
            file = None
        try:
            entry = HelpEntry(name=name or "", file=file, handler=handler, access=access)
        except InvalidRegistrationError as e:
            logger.debug(
                "help_addentry_invalid_params",
                registry=self.label,
                topic=name,
                error=str(e),
            )
            return None

        if self.lookup(entry.name) is not None:
            logger.warning(
                "help_addentry_duplicate", registry=self.label, topic=entry.name
            )
        self._entries.append(entry)
        return entry

    def lookup(self, name: str) -> Optional[HelpEntry]:
        """Return the first entry matching ``name``, or None."""
        for entry in self._entries:
            if entry.matches(name):
                return entry
        return None

    def resolve(self, name: str) -> HelpEntry:
        """Return the first entry matching ``name``.

        Raises:
            HelpNotFoundError: No entry is registered under ``name``.
        """
        entry = self.lookup(name)
        if entry is None:
            raise HelpNotFoundError(name, registry=self.label)
        return entry

    def remove_entry(self, name: str) -> int:
        """Remove every entry matching ``name``.

        Returns:
            Number of entries removed (0 is not an error).
        """
        kept = [entry for entry in self._entries if not entry.matches(name)]
        removed = len(self._entries) - len(kept)
        self._entries = kept
        if removed:
            logger.debug(
                "help_delentry", registry=self.label, topic=name, removed=removed
            )
        return removed

    @property
    def names(self) -> List[str]:
        """Topic names in registration order."""
        return [entry.name for entry in self._entries]

    def __iter__(self) -> Iterator[HelpEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None


def help_addentry(
    registry: HelpRegistry,
    topic: Optional[str],
    fname: Optional[str] = None,
    func: Optional[HelpHandler] = None,
    access: Optional[str] = None,
) -> Optional[HelpEntry]:
    """Register a help topic on ``registry``. See HelpRegistry.add_entry."""
    return registry.add_entry(topic, file=fname, handler=func, access=access)


def help_delentry(registry: HelpRegistry, name: str) -> int:
    """Remove every help topic called ``name`` from ``registry``."""
    return registry.remove_entry(name)
