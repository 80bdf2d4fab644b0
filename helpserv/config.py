"""Configuration management for helpserv.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a typed Config object. Property getters provide safe access with
sensible defaults: share and log directories, logging levels, server
features, services and their help topics, modules, operator classes
and the console session.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from .models import ModuleConfig, ServerFeatures, ServiceConfig

logger = structlog.get_logger("helpserv.service")


class Config:
    """Central configuration manager for helpserv.

    Loads settings.yaml and .env from the config directory. Provides
    typed property accessors for every configurable subsystem. Settings
    are read-only after __init__.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

        # Load environment variables
        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    def validate(self):
        """Validate settings at startup.

        Logs warnings/errors but does not raise -- services start with
        whatever help topics could be understood.
        """
        if not self.share_dir.is_dir():
            logger.warning("share_dir_missing", path=str(self.share_dir))

        services = self.services
        if not services:
            logger.warning("no_services_configured", msg="HELP will be unavailable")
        known = {s.name.lower() for s in services}
        for module in self.modules:
            if module.service.lower() not in known:
                logger.error(
                    "config_invalid_value",
                    key=f"modules.{module.name}.service",
                    value=module.service,
                )

        classes = self.operclasses
        for account, opclass in self.operators.items():
            if opclass not in classes:
                logger.error(
                    "config_invalid_value",
                    key=f"operators.{account}",
                    value=opclass,
                )

    @property
    def share_dir(self) -> Path:
        """Root for relative help file paths. Env HELPSERV_SHARE_DIR wins."""
        configured = os.environ.get("HELPSERV_SHARE_DIR") or self.settings.get("share_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "share"

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"help": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)

    @property
    def server_features(self) -> ServerFeatures:
        """Feature flags of the linked IRC server (``ircd`` section)."""
        ircd_config = self.settings.get("ircd") or {}
        try:
            return ServerFeatures(**ircd_config)
        except (ValidationError, TypeError) as e:
            logger.error("config_invalid_ircd", error=str(e))
            return ServerFeatures()

    @property
    def no_nick_ownership(self) -> bool:
        """Whether NickServ runs without nick ownership (UserServ mode)."""
        nickserv_config = self.settings.get("nickserv") or {}
        return bool(nickserv_config.get("no_nick_ownership", False))

    @property
    def services(self) -> List[ServiceConfig]:
        """Configured services. Invalid entries are logged and skipped."""
        result = []
        for raw in self.settings.get("services") or []:
            try:
                result.append(ServiceConfig(**raw))
            except (ValidationError, TypeError) as e:
                logger.error("config_invalid_service", entry=str(raw)[:80], error=str(e))
        return result

    @property
    def modules(self) -> List[ModuleConfig]:
        """Configured modules. Invalid entries are logged and skipped."""
        result = []
        for raw in self.settings.get("modules") or []:
            try:
                result.append(ModuleConfig(**raw))
            except (ValidationError, TypeError) as e:
                logger.error("config_invalid_module", entry=str(raw)[:80], error=str(e))
        return result

    @property
    def operclasses(self) -> Dict[str, List[str]]:
        """Operator class name -> privileges."""
        classes = self.settings.get("operclasses") or {}
        if not isinstance(classes, dict):
            logger.error("operclasses_invalid_type", type=type(classes).__name__)
            return {}
        return {name: list(privs or []) for name, privs in classes.items()}

    @property
    def operators(self) -> Dict[str, str]:
        """Account name -> operator class name."""
        operators = self.settings.get("operators") or {}
        if not isinstance(operators, dict):
            logger.error("operators_invalid_type", type=type(operators).__name__)
            return {}
        return {str(account): str(opclass) for account, opclass in operators.items()}

    @property
    def console_actor(self) -> str:
        """Account the console session acts as. Env HELPSERV_ACTOR wins."""
        console_config = self.settings.get("console") or {}
        return os.environ.get("HELPSERV_ACTOR") or console_config.get("actor", "guest")

    @property
    def console_service(self) -> Optional[str]:
        """Service addressed when a console line names none (default: first)."""
        console_config = self.settings.get("console") or {}
        configured = console_config.get("service")
        if configured:
            return configured
        services = self.services
        return services[0].name if services else None


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
