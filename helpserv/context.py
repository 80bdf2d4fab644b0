"""Actor context and the collaborators the help core consults.

The help core never looks at global state: who is asking, what they may
do, which modules are loaded and where output goes are all handed in
through the small interfaces defined here.

Key classes:
    ServiceInfo, SourceInfo: Who is asking, and of which service.
    CapabilityContext, ModuleRegistry, OutputSink: Protocols consumed
        by the condition evaluator and renderer.
    PrivilegeTable, LoadedModules: Config-backed implementations.
    TranscriptSink, ConsoleSink: Output sinks for tests and the console.
"""

import sys
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Set, TextIO, Tuple

import structlog

from .exceptions import Fault

logger = structlog.get_logger("helpserv.service")


@dataclass(frozen=True)
class ServiceInfo:
    """A services pseudo-client.

    Attributes:
        nick: Nick shown in help banners (e.g. "NickServ").
        disp: Display name substituted for the &nick& placeholder.
    """

    nick: str
    disp: str = ""

    def __post_init__(self):
        if not self.disp:
            object.__setattr__(self, "disp", self.nick)


@dataclass(frozen=True)
class SourceInfo:
    """The actor a help request is evaluated for.

    Attributes:
        actor: Account or nick of the requester.
        service: Service the request was addressed to.
    """

    actor: str
    service: ServiceInfo


class CapabilityContext(Protocol):
    def has_any_privs(self, source: SourceInfo) -> bool: ...

    def has_priv(self, source: SourceInfo, priv: str) -> bool: ...


class ModuleRegistry(Protocol):
    def is_loaded(self, name: str) -> bool: ...


class OutputSink(Protocol):
    def report_success(self, text: str) -> None: ...

    def report_failure(self, fault: Fault, text: str) -> None: ...


class PrivilegeTable:
    """Privileges granted to accounts through operator classes.

    Args:
        operclasses: Operator class name -> list of privilege names.
        operators: Account name -> operator class name. Account names
            are matched case-insensitively.
    """

    def __init__(
        self,
        operclasses: Optional[Dict[str, Iterable[str]]] = None,
        operators: Optional[Dict[str, str]] = None,
    ):
        self._classes: Dict[str, Set[str]] = {
            name: set(privs or ()) for name, privs in (operclasses or {}).items()
        }
        self._operators: Dict[str, str] = {
            account.lower(): opclass for account, opclass in (operators or {}).items()
        }
        for account, opclass in self._operators.items():
            if opclass not in self._classes:
                logger.warning(
                    "operator_unknown_operclass", account=account, operclass=opclass
                )

    def privileges(self, source: SourceInfo) -> Set[str]:
        opclass = self._operators.get(source.actor.lower())
        if opclass is None:
            return set()
        return set(self._classes.get(opclass, ()))

    def has_any_privs(self, source: SourceInfo) -> bool:
        return bool(self.privileges(source))

    def has_priv(self, source: SourceInfo, priv: str) -> bool:
        return priv in self.privileges(source)


class LoadedModules:
    """Names of the services modules currently loaded."""

    def __init__(self, names: Iterable[str] = ()):
        self._names: Set[str] = set(names)

    def mark_loaded(self, name: str) -> None:
        self._names.add(name)

    def mark_unloaded(self, name: str) -> None:
        self._names.discard(name)

    def is_loaded(self, name: str) -> bool:
        return name in self._names

    def __iter__(self):
        return iter(sorted(self._names))

    def __len__(self) -> int:
        return len(self._names)


@dataclass
class TranscriptSink:
    """Records everything reported, in order.

    ``lines`` holds every success line; ``failures`` holds
    (fault, text) pairs. ``transcript`` interleaves both.
    """

    lines: List[str] = field(default_factory=list)
    failures: List[Tuple[Fault, str]] = field(default_factory=list)
    transcript: List[str] = field(default_factory=list)

    def report_success(self, text: str) -> None:
        self.lines.append(text)
        self.transcript.append(text)

    def report_failure(self, fault: Fault, text: str) -> None:
        self.failures.append((fault, text))
        self.transcript.append(text)


class ConsoleSink:
    """Writes replies to a text stream, as notices from a service.

    IRC bold markers (\\x02) are dropped since a terminal cannot show them.
    """

    def __init__(self, service: ServiceInfo, stream: Optional[TextIO] = None):
        self.service = service
        self.stream = stream or sys.stdout

    def _write(self, text: str) -> None:
        self.stream.write(f"-{self.service.nick}- {text.replace(chr(2), '')}\n")
        self.stream.flush()

    def report_success(self, text: str) -> None:
        self._write(text)

    def report_failure(self, fault: Fault, text: str) -> None:
        logger.debug("reply_failure", fault=fault.value, service=self.service.nick)
        self._write(text)
