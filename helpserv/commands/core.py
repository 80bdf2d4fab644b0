"""Core command handler for helpserv.

Handles: HELP.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from .base import BaseCommandHandler

if TYPE_CHECKING:
    from ..context import OutputSink
    from ..service import HelpService

logger = structlog.get_logger("helpserv.commands")

DEFAULT_TOPIC = "HELP"


class HelpCommandHandler(BaseCommandHandler):
    """Handles the HELP command of every service."""

    def get_commands(self):
        return {
            "HELP": self.handle_help,
        }

    async def handle_help(
        self, service: "HelpService", actor: str, args: str, sink: "OutputSink"
    ) -> None:
        """Show help on a topic.

        IRC usage::

            /msg NickServ HELP
            /msg NickServ HELP REGISTER

        Args:
            service: Service the command was addressed to.
            actor: Account or nick of the requester.
            args: Topic name; empty means the service's HELP topic.
            sink: Where replies go.
        """
        topic = args.strip() or DEFAULT_TOPIC
        logger.debug("help_command", service=service.name, topic=topic)
        # Rendering is synchronous and runs to completion here.
        service.help(actor, topic, sink)
