"""Tests for command routing and the HELP command."""

import io
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml

from helpserv.commands import BaseCommandHandler, HandlerContext, HandlerRegistry, HelpCommandHandler
from helpserv.config import Config
from helpserv.context import TranscriptSink
from helpserv.main import ServiceShell


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.delenv("HELPSERV_SHARE_DIR", raising=False)
    monkeypatch.delenv("HELPSERV_ACTOR", raising=False)
    share = tmp_path / "share"
    (share / "help" / "nickserv").mkdir(parents=True)
    (share / "help" / "nickserv" / "help").write_text(
        "Talk to &nick&.\n#if anyprivs\nOper text\n#endif\n"
    )
    (share / "help" / "nickserv" / "set_email").write_text("SET EMAIL help\n")
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "settings.yaml").write_text(yaml.safe_dump({
        "share_dir": str(share),
        "operclasses": {"ircop": ["user:auspex"]},
        "operators": {"nenolod": "ircop"},
        "services": [{
            "name": "nickserv",
            "nick": "NickServ",
            "help": [
                {"topic": "HELP", "file": "help/nickserv/help"},
                {"topic": "SET EMAIL", "file": "help/nickserv/set_email"},
            ],
        }],
        "console": {"actor": "guest"},
    }))
    return Config(config_dir)


def _shell(config):
    out = io.StringIO()
    return ServiceShell(config, out=out), out


class TestHandlerRegistry:
    """Tests for HandlerRegistry."""

    def test_lookup_is_case_insensitive(self):
        registry = HandlerRegistry()
        registry.register(HelpCommandHandler(HandlerContext(host=MagicMock())))
        assert registry.get("help") is registry.get("HELP")
        assert registry.command_names == frozenset({"HELP"})
        assert registry.get("DROP") is None

    def test_conflicting_registration_replaces(self):
        first, second = AsyncMock(), AsyncMock()

        class First(BaseCommandHandler):
            def get_commands(self):
                return {"info": first}

        class Second(BaseCommandHandler):
            def get_commands(self):
                return {"INFO": second}

        ctx = HandlerContext(host=MagicMock())
        registry = HandlerRegistry()
        registry.register(First(ctx))
        registry.register(Second(ctx))
        assert registry.get("Info") is second


def test_shell_handlers_share_its_host(config):
    shell, _ = _shell(config)
    handle_help = shell._registry.get("HELP")
    assert isinstance(handle_help.__self__, HelpCommandHandler)
    assert handle_help.__self__.ctx.host is shell.host


@pytest.mark.asyncio
async def test_help_command_without_args_shows_help_topic(config):
    shell, out = _shell(config)
    service = shell.host.service("nickserv")
    handler = HelpCommandHandler(HandlerContext(host=shell.host))
    sink = TranscriptSink()
    await handler.handle_help(service, "guest", "   ", sink)
    assert sink.lines == [
        "***** \x02NickServ Help\x02 *****",
        "Talk to NickServ.",
        "***** \x02End of Help\x02 *****",
    ]


@pytest.mark.asyncio
async def test_help_command_multiword_topic(config):
    shell, _ = _shell(config)
    handler = HelpCommandHandler(HandlerContext(host=shell.host))
    sink = TranscriptSink()
    await handler.handle_help(shell.host.service("nickserv"), "guest", "set email", sink)
    assert sink.lines[1] == "SET EMAIL help"


@pytest.mark.asyncio
async def test_shell_routes_to_named_service(config):
    shell, out = _shell(config)
    assert await shell.handle_line("NickServ HELP", actor="nenolod") is True
    text = out.getvalue()
    assert "-NickServ- ***** NickServ Help *****" in text
    assert "-NickServ- Oper text" in text
    assert "\x02" not in text


@pytest.mark.asyncio
async def test_shell_uses_default_service(config):
    shell, out = _shell(config)
    assert await shell.handle_line("help") is True
    assert "Talk to NickServ." in out.getvalue()
    assert "Oper text" not in out.getvalue()


@pytest.mark.asyncio
async def test_shell_unknown_topic(config):
    shell, out = _shell(config)
    await shell.handle_line("nickserv help bogus")
    assert "No help available for bogus." in out.getvalue()


@pytest.mark.asyncio
async def test_shell_unknown_command(config):
    shell, out = _shell(config)
    assert await shell.handle_line("nickserv DROP foo") is False
    assert "Invalid command." in out.getvalue()


@pytest.mark.asyncio
async def test_shell_blank_and_service_only_lines(config):
    shell, out = _shell(config)
    assert await shell.handle_line("   ") is False
    assert out.getvalue() == ""
    assert await shell.handle_line("NickServ") is False
    assert "for a command listing" in out.getvalue()


@pytest.mark.asyncio
async def test_shell_run_reads_until_eof(config):
    shell, out = _shell(config)
    await shell.run(io.StringIO("help\nnickserv help set email\n"))
    text = out.getvalue()
    assert text.count("End of Help") == 2
    assert "SET EMAIL help" in text
