"""Main entry point for helpserv.

Initializes logging in two phases (defaults then config-driven),
builds the configured services, and runs a console session that reads
``[service] COMMAND [args]`` lines from stdin until EOF.

Key classes:
    ServiceShell: Routes console lines to command handlers.

Key functions:
    main: Async entry point.
    run: Synchronous wrapper that calls asyncio.run(main()).
"""

import asyncio
import sys
from typing import Optional, TextIO

import structlog

from . import __version__
from .commands import HandlerContext, HandlerRegistry, HelpCommandHandler
from .config import get_config
from .context import ConsoleSink
from .exceptions import Fault
from .logging_config import setup_logging
from .service import ServiceHost


class ServiceShell:
    """Console front end for the configured services.

    Args:
        config: Configuration to build from. Defaults to the global
            config instance.
        out: Stream replies are written to (default stdout).
    """

    def __init__(self, config=None, out: Optional[TextIO] = None):
        self.config = config or get_config()
        self.out = out or sys.stdout
        self.host = ServiceHost(self.config)
        self._registry = HandlerRegistry()
        self._registry.register(HelpCommandHandler(HandlerContext(host=self.host)))
        self.logger = structlog.get_logger("helpserv.commands")

    async def handle_line(self, line: str, actor: Optional[str] = None) -> bool:
        """Route one console line.

        The first word selects a service when it names one; otherwise
        the configured console service is addressed.

        Returns:
            True if a command handler ran.
        """
        actor = actor or self.config.console_actor
        words = line.strip().split(None, 1)
        if not words:
            return False

        service = self.host.service(words[0])
        if service is not None:
            words = words[1].split(None, 1) if len(words) > 1 else []
        else:
            default = self.config.console_service
            service = self.host.service(default) if default else None
            if service is None:
                self.out.write("No service available.\n")
                return False

        sink = ConsoleSink(service.info, self.out)
        if not words:
            sink.report_failure(
                Fault.NEEDMOREPARAMS,
                f"Use \x02/msg {service.info.disp} HELP\x02 for a command listing.",
            )
            return False

        command = words[0]
        args = words[1] if len(words) > 1 else ""
        self.logger.debug("command_routing", service=service.name, command=command.upper())

        handler = self._registry.get(command)
        if handler is None:
            sink.report_failure(
                Fault.BADPARAMS,
                f"Invalid command. Use \x02/msg {service.info.disp} HELP\x02 "
                "for a command listing.",
            )
            return False

        await handler(service, actor, args, sink)
        return True

    async def run(self, stream: Optional[TextIO] = None) -> None:
        """Read and handle lines until EOF."""
        stream = stream or sys.stdin
        while True:
            line = await asyncio.to_thread(stream.readline)
            if not line:
                break
            try:
                await self.handle_line(line)
            except Exception as e:
                self.logger.error(
                    "command_error", error=str(e), error_type=type(e).__name__
                )


async def main():
    """Main async entry point."""
    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("helpserv")

    logger.info("helpserv_starting", version=__version__)

    config = get_config()
    config.validate()

    # Phase 2: reconfigure with real config, cache_logger_on_first_use=True
    setup_logging(config)

    shell = ServiceShell(config)
    try:
        await shell.run()
    finally:
        logger.info("helpserv_stopped")


def run():
    """Synchronous entry point for the ``helpserv`` console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
