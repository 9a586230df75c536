"""Configuration schema using Pydantic."""

import os
import re

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from frontdesk.agent.invoker import DEFAULT_MODEL
from frontdesk.agent.receptionist import DEFAULT_PREVIEW_CHARS, FALLBACK_TEXT
from frontdesk.session.history import MAX_HISTORY

_ENV_REF = re.compile(r"^\$\{?([A-Za-z_][A-Za-z0-9_]*)\}?$")


def _resolve_env(value: str) -> str:
    """Resolve ``$VAR`` / ``${VAR}`` references; unset variables keep the original text."""
    if not value:
        return value
    match = _ENV_REF.match(value)
    if not match:
        return value
    return os.environ.get(match.group(1), value)


class Base(BaseModel):
    """Base model that accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AgentConfig(Base):
    """Receptionist agent defaults."""

    model: str = DEFAULT_MODEL
    max_history: int = Field(default=MAX_HISTORY, ge=1)
    fallback_text: str = FALLBACK_TEXT
    preview_chars: int = Field(default=DEFAULT_PREVIEW_CHARS, ge=0)
    timeout: float | None = Field(default=None, gt=0)  # seconds; None waits for the stream to end


class ProviderConfig(Base):
    """Hosted model provider credentials and endpoint."""

    api_key: str = ""
    api_base: str | None = None
    extra_headers: dict[str, str] | None = None
    request_timeout: float | None = Field(default=120, gt=0)

    @property
    def resolved_api_key(self) -> str:
        return _resolve_env(self.api_key)


class LangfuseConfig(Base):
    enabled: bool = False
    public_key: str = ""
    secret_key: str = ""
    host: str = ""


class ObservabilityConfig(Base):
    langfuse: LangfuseConfig = Field(default_factory=LangfuseConfig)


class LoggingConfig(Base):
    json_output: bool = True
    level: str = "INFO"


class HealthConfig(Base):
    host: str = "127.0.0.1"
    port: int = 8765


class Config(Base):
    """Root configuration for frontdesk."""

    agent: AgentConfig = Field(default_factory=AgentConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
