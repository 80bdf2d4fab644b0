"""Services and their help registries.

A HelpService is one services pseudo-client (NickServ, ChanServ, ...)
with its own help registry. The ServiceHost builds every configured
service, wires the condition evaluator and renderer, and loads or
unloads modules, which add and remove their help topics.

Key classes:
    HelpService: One service, its registry and its HELP rendering.
    ServiceHost: All services plus module lifecycle.
"""

from typing import Dict, List, Optional

import structlog

from .conditions import ConditionEvaluator
from .config import Config, get_config
from .context import (
    LoadedModules,
    OutputSink,
    PrivilegeTable,
    ServiceInfo,
    SourceInfo,
)
from .models import HelpTopicConfig, ModuleConfig, ServiceConfig
from .registry import HelpRegistry
from .renderer import HelpRenderer, render_help

logger = structlog.get_logger("helpserv.service")

COMMANDS_TOPIC = "COMMANDS"


class HelpService:
    """A services pseudo-client with its own help topics.

    Registers the configured topics plus a dynamic COMMANDS topic that
    lists everything currently registered.

    Args:
        service_config: Service definition from configuration.
        renderer: Shared help renderer.
    """

    def __init__(self, service_config: ServiceConfig, renderer: HelpRenderer):
        self.name = service_config.name
        self.info = ServiceInfo(
            nick=service_config.nick, disp=service_config.display_name
        )
        self.renderer = renderer
        self.registry = HelpRegistry(label=self.name)

        self.add_topics(service_config.help)
        if COMMANDS_TOPIC not in self.registry:
            self.registry.add_entry(
                COMMANDS_TOPIC, handler=self._list_topics, access="everyone"
            )

    def add_topics(self, topics: List[HelpTopicConfig]) -> None:
        for topic in topics:
            self.registry.add_entry(topic.topic, file=topic.file, access=topic.access)

    def remove_topics(self, topics: List[HelpTopicConfig]) -> None:
        for topic in topics:
            self.registry.remove_entry(topic.topic)

    def _list_topics(self, source: SourceInfo, sink: OutputSink) -> None:
        """Dynamic COMMANDS topic: one line per registered topic."""
        sink.report_success(f"The following topics are available from {self.info.disp}:")
        for entry in self.registry:
            if entry.name.upper() == COMMANDS_TOPIC:
                continue
            if entry.access:
                sink.report_success(f"{entry.name.upper():<16} {entry.access}")
            else:
                sink.report_success(entry.name.upper())
        sink.report_success(" ")
        sink.report_success(
            f"For more information on a topic, type: /msg {self.info.disp} HELP <topic>"
        )

    def help(self, actor: str, topic: str, sink: OutputSink) -> bool:
        """Render help on ``topic`` for ``actor``. Failures go to ``sink``."""
        source = SourceInfo(actor=actor, service=self.info)
        return render_help(self.registry, self.renderer, source, topic, sink)


class ServiceHost:
    """Builds configured services and manages module (un)loading.

    Args:
        config: Configuration to build from. Defaults to the global
            config instance.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()

        self.features = self.config.server_features
        self.privileges = PrivilegeTable(
            operclasses=self.config.operclasses,
            operators=self.config.operators,
        )
        self.loaded_modules = LoadedModules()
        self.evaluator = ConditionEvaluator(
            self.features, self.privileges, self.loaded_modules
        )
        self.renderer = HelpRenderer(
            self.evaluator,
            share_dir=self.config.share_dir,
            nick_ownership=not self.config.no_nick_ownership,
        )

        self.services: Dict[str, HelpService] = {}
        for service_config in self.config.services:
            key = service_config.name.lower()
            if key in self.services:
                logger.warning("service_duplicate", service=service_config.name)
                continue
            self.services[key] = HelpService(service_config, self.renderer)

        self._modules: Dict[str, ModuleConfig] = {}
        for module_config in self.config.modules:
            self._modules[module_config.name] = module_config

        for module_config in self._modules.values():
            if module_config.autoload:
                self.load_module(module_config.name)

        logger.info(
            "service_host_ready",
            services=len(self.services),
            modules_loaded=len(self.loaded_modules),
        )

    def service(self, name: str) -> Optional[HelpService]:
        """Look up a service by name or nick (case-insensitive)."""
        found = self.services.get(name.lower())
        if found is not None:
            return found
        for service in self.services.values():
            if service.info.nick.lower() == name.lower():
                return service
        return None

    def load_module(self, name: str) -> bool:
        """Load a configured module and register its help topics.

        Returns:
            True if the module was loaded, False if unknown, already
            loaded or its service does not exist.
        """
        module_config = self._modules.get(name)
        if module_config is None:
            logger.warning("module_unknown", module=name)
            return False
        if self.loaded_modules.is_loaded(name):
            logger.debug("module_already_loaded", module=name)
            return False

        service = self.service(module_config.service)
        if service is None:
            logger.error(
                "module_service_missing", module=name, service=module_config.service
            )
            return False

        service.add_topics(module_config.help)
        self.loaded_modules.mark_loaded(name)
        logger.info("module_loaded", module=name, topics=len(module_config.help))
        return True

    def unload_module(self, name: str) -> bool:
        """Unload a module and remove its help topics.

        Returns:
            True if the module was loaded and is now unloaded.
        """
        if not self.loaded_modules.is_loaded(name):
            logger.debug("module_not_loaded", module=name)
            return False

        module_config = self._modules[name]
        service = self.service(module_config.service)
        if service is not None:
            service.remove_topics(module_config.help)
        self.loaded_modules.mark_unloaded(name)
        logger.info("module_unloaded", module=name)
        return True
