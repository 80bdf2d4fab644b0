"""Tests for configuration loading."""

from pathlib import Path

import yaml

from helpserv.config import Config
from helpserv.models import AuthMode, ServerFeatures


def _write_settings(config_dir: Path, settings: dict) -> Config:
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "settings.yaml").write_text(yaml.safe_dump(settings))
    return Config(config_dir)


def test_defaults_without_settings_file(tmp_path, monkeypatch):
    monkeypatch.delenv("HELPSERV_SHARE_DIR", raising=False)
    monkeypatch.delenv("HELPSERV_ACTOR", raising=False)
    config = Config(tmp_path)
    assert config.settings == {}
    assert config.share_dir.name == "share"
    assert config.logging_level == "INFO"
    assert config.logging_backup_count == 5
    assert config.server_features == ServerFeatures()
    assert config.no_nick_ownership is False
    assert config.services == []
    assert config.modules == []
    assert config.operclasses == {}
    assert config.console_actor == "guest"
    assert config.console_service is None


def test_share_dir_env_override(tmp_path, monkeypatch):
    config = _write_settings(tmp_path, {"share_dir": "/from/settings"})
    monkeypatch.delenv("HELPSERV_SHARE_DIR", raising=False)
    assert config.share_dir == Path("/from/settings")
    monkeypatch.setenv("HELPSERV_SHARE_DIR", "/from/env")
    assert config.share_dir == Path("/from/env")


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    # Register the variable with monkeypatch so teardown removes what dotenv sets
    monkeypatch.setenv("HELPSERV_ACTOR", "unset")
    monkeypatch.delenv("HELPSERV_ACTOR")
    (tmp_path / ".env").write_text("HELPSERV_ACTOR=jilles\n")
    config = Config(tmp_path)
    assert config.console_actor == "jilles"


def test_server_features_parsed(tmp_path):
    config = _write_settings(tmp_path, {
        "ircd": {"uses_owner": True, "uses_protect": True, "auth_mode": "sasl"},
    })
    features = config.server_features
    assert features.uses_owner and features.uses_protect
    assert not features.uses_halfops
    assert features.auth_mode is AuthMode.SASL


def test_invalid_server_features_fall_back(tmp_path):
    config = _write_settings(tmp_path, {"ircd": {"auth_mode": "kerberos"}})
    assert config.server_features == ServerFeatures()


def test_invalid_services_are_skipped(tmp_path):
    config = _write_settings(tmp_path, {
        "services": [
            {"name": "nickserv", "nick": "NickServ"},
            {"name": "broken"},
            {"name": "chanserv", "nick": "ChanServ", "help": [{"topic": "", "file": "x"}]},
        ],
    })
    assert [s.name for s in config.services] == ["nickserv"]
    assert config.console_service == "nickserv"


def test_service_display_name_defaults_to_nick(tmp_path):
    config = _write_settings(tmp_path, {
        "services": [
            {"name": "nickserv", "nick": "NickServ"},
            {"name": "userserv", "nick": "UserServ", "disp": "Accounts"},
        ],
    })
    nickserv, userserv = config.services
    assert nickserv.display_name == "NickServ"
    assert userserv.display_name == "Accounts"


def test_operators_and_operclasses(tmp_path):
    config = _write_settings(tmp_path, {
        "operclasses": {"sra": ["general:admin"], "empty": None},
        "operators": {"jilles": "sra"},
    })
    assert config.operclasses == {"sra": ["general:admin"], "empty": []}
    assert config.operators == {"jilles": "sra"}


def test_operators_wrong_type(tmp_path):
    config = _write_settings(tmp_path, {"operators": ["jilles"]})
    assert config.operators == {}


def test_validate_does_not_raise(tmp_path):
    config = _write_settings(tmp_path, {
        "share_dir": str(tmp_path / "missing"),
        "modules": [{"name": "x/y", "service": "nobody"}],
        "operators": {"jilles": "unknown"},
    })
    config.validate()
