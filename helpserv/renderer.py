"""Help document renderer.

Streams a static help document to an actor, interpreting ``#if`` /
``#endif`` directives and replacing the ``&nick&`` placeholder, or runs
a dynamic help handler. Both are framed by header and footer banners.

Document syntax::

    #if <condition>      start a block shown only if condition holds
    #endif               close the innermost block
    anything else        content line; "&nick&" -> service display name

Directive lines are never shown. Nesting is tracked with two counters:
the total depth and the depth inside a false branch. An ``#endif``
without an ``#if`` is ignored, and blocks still open at end of file are
dropped.

Key classes:
    HelpRenderer: Renders one entry to one sink.
    RenderState: Per-render nesting counters.

Key functions:
    render_help: Resolve a topic and render it, reporting failures.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

import structlog

from .conditions import ConditionEvaluator
from .context import OutputSink, SourceInfo
from .exceptions import HelpNotFoundError, HelpServError, SourceUnavailableError
from .registry import HelpEntry, HelpRegistry

logger = structlog.get_logger("helpserv.help")

NICK_PLACEHOLDER = "&nick&"
IF_DIRECTIVE = "#if"
ENDIF_DIRECTIVE = "#endif"

HEADER_TEMPLATE = "***** \x02{nick} Help\x02 *****"
FOOTER = "***** \x02End of Help\x02 *****"

# NickServ help is served from the UserServ tree when nicks are not owned.
LEGACY_NICKSERV_PREFIX = "help/nickserv/"
LEGACY_USERSERV_PREFIX = "help/userserv/"


@dataclass
class RenderState:
    """Directive nesting for one render pass.

    Attributes:
        if_depth: Number of currently open ``#if`` blocks.
        false_depth: How many of those are inside a false branch.
    """

    if_depth: int = 0
    false_depth: int = 0

    @property
    def suppressed(self) -> bool:
        return self.false_depth > 0

    def open_block(self, condition_holds: bool) -> None:
        if self.suppressed or not condition_holds:
            self.false_depth += 1
        self.if_depth += 1

    def close_block(self) -> None:
        if self.false_depth > 0:
            self.false_depth -= 1
        if self.if_depth > 0:
            self.if_depth -= 1

    def reset(self) -> None:
        self.if_depth = 0
        self.false_depth = 0


class HelpRenderer:
    """Renders help entries for a services network.

    Args:
        evaluator: Evaluates ``#if`` conditions.
        share_dir: Root for relative help document paths.
        nick_ownership: False when the network runs without nick
            ownership, which redirects NickServ help to UserServ files.
    """

    def __init__(
        self,
        evaluator: ConditionEvaluator,
        share_dir: Path,
        nick_ownership: bool = True,
    ):
        self.evaluator = evaluator
        self.share_dir = Path(share_dir)
        self.nick_ownership = nick_ownership

    def resolve_path(self, file: str) -> Path:
        """Map an entry's file to a filesystem path."""
        if file.startswith("/"):
            return Path(file)
        if not self.nick_ownership and file.startswith(LEGACY_NICKSERV_PREFIX):
            file = LEGACY_USERSERV_PREFIX + file[len(LEGACY_NICKSERV_PREFIX):]
        return self.share_dir / file

    def render(
        self,
        source: SourceInfo,
        entry: HelpEntry,
        sink: OutputSink,
        topic: Optional[str] = None,
    ) -> None:
        """Render ``entry`` for ``source`` into ``sink``.

        Args:
            topic: Name to use in failure messages, as the actor typed
                it. Defaults to the entry's registered name.

        Raises:
            SourceUnavailableError: The static document could not be
                opened. Nothing has been written to the sink.
            HelpNotFoundError: The entry has no content source.
        """
        topic = topic or entry.name
        if entry.file is not None:
            path = self.resolve_path(entry.file)
            try:
                fp = open(path, "r", encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning(
                    "help_file_unavailable",
                    topic=topic,
                    path=str(path),
                    error=str(e),
                )
                raise SourceUnavailableError(topic, path=str(path)) from e

            with fp:
                sink.report_success(HEADER_TEMPLATE.format(nick=source.service.nick))
                self._stream_document(source, fp, sink)
            sink.report_success(FOOTER)
        elif entry.handler is not None:
            sink.report_success(HEADER_TEMPLATE.format(nick=source.service.nick))
            entry.handler(source, sink)
            sink.report_success(FOOTER)
        else:
            raise HelpNotFoundError(topic, module="renderer")

    def _stream_document(
        self, source: SourceInfo, fp: TextIO, sink: OutputSink
    ) -> None:
        state = RenderState()
        try:
            for raw in fp:
                line = raw.rstrip("\r\n")

                if line.startswith(ENDIF_DIRECTIVE):
                    state.close_block()
                    continue
                if line.startswith(IF_DIRECTIVE):
                    holds = False
                    if not state.suppressed:
                        holds = self.evaluator.evaluate(
                            source, line[len(IF_DIRECTIVE):]
                        )
                    state.open_block(holds)
                    continue
                if state.suppressed:
                    continue

                line = line.replace(NICK_PLACEHOLDER, source.service.disp)
                sink.report_success(line if line else " ")

            if state.if_depth:
                logger.debug("help_unclosed_if", depth=state.if_depth)
        finally:
            state.reset()

    def display(
        self,
        registry: HelpRegistry,
        source: SourceInfo,
        command: str,
        sink: OutputSink,
    ) -> bool:
        """Resolve ``command`` in ``registry`` and render it.

        Failures are reported to the sink, never raised.

        Returns:
            True if help was rendered.
        """
        try:
            entry = registry.resolve(command)
            self.render(source, entry, sink, topic=command)
        except HelpServError as e:
            logger.info(
                "help_request_failed",
                topic=command,
                actor=source.actor,
                fault=e.fault.value,
            )
            sink.report_failure(e.fault, e.user_message)
            return False
        logger.debug("help_rendered", topic=command, actor=source.actor)
        return True


def render_help(
    registry: HelpRegistry,
    renderer: HelpRenderer,
    source: SourceInfo,
    command: str,
    sink: OutputSink,
) -> bool:
    """Resolve and render help for ``command``. See HelpRenderer.display."""
    return renderer.display(registry, source, command, sink)
