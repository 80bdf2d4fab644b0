"""Pydantic models for configuration-fed help data.

Domain models (loaded from settings.yaml):
    ServerFeatures, HelpTopicConfig, ServiceConfig, ModuleConfig

Enums:
    AuthMode
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class AuthMode(str, Enum):
    """How the services network authenticates accounts.

    Anything other than NONE means an external authentication
    mechanism is configured, which the ``auth`` help condition tests.
    """
    NONE = "none"
    SASL = "sasl"
    LDAP = "ldap"
    EXTERNAL = "external"


class ServerFeatures(BaseModel):
    """Static feature flags of the IRC server the services link to."""

    uses_halfops: bool = Field(default=False, description="Server has +h")
    uses_owner: bool = Field(default=False, description="Server has channel owner (+q)")
    uses_protect: bool = Field(default=False, description="Server has protected ops (+a)")
    auth_mode: AuthMode = Field(default=AuthMode.NONE)


class HelpTopicConfig(BaseModel):
    """A static help topic declared in configuration.

    ``file`` is relative to the share directory unless it starts with "/".
    """

    topic: str = Field(..., min_length=1, description="Topic name (case-insensitive)")
    file: str = Field(..., min_length=1, description="Help document path")
    access: Optional[str] = Field(
        default=None, description="Access label shown in topic listings"
    )


class ServiceConfig(BaseModel):
    """A services pseudo-client and its built-in help topics."""

    name: str = Field(..., min_length=1, description="Internal service name")
    nick: str = Field(..., min_length=1, description="Nick shown in help banners")
    disp: Optional[str] = Field(
        default=None, description="Display name substituted for &nick&"
    )
    help: List[HelpTopicConfig] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.disp or self.nick


class ModuleConfig(BaseModel):
    """A loadable services module that contributes help topics."""

    name: str = Field(..., min_length=1, description="Module name, e.g. nickserv/info")
    service: str = Field(..., min_length=1, description="Service owning the topics")
    autoload: bool = Field(default=True, description="Load at startup")
    help: List[HelpTopicConfig] = Field(default_factory=list)
