"""Application state and configuration."""

from __future__ import annotations

import datetime
import os
import re
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from firebisect.core.base import BaseConfig, BaseState
from firebisect.core.log import Logger
from firebisect.core.yaml_settings import YamlWithIncludesSettingsSource
from firebisect.search.registry import SessionRegistry

# Modules reachable from templates, e.g. {platformdirs.user_state_dir}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class TelegramConfig(BaseConfig):
    """Telegram Bot API connection."""

    token: str | None = Field(
        default=None,
        description="Bot token issued by @BotFather (required by serve)",
    )
    api_base: str = Field(
        default="https://api.telegram.org",
        description="Bot API base URL",
    )
    poll_timeout: int = Field(
        default=30,
        description="Long-poll timeout for getUpdates, in seconds",
    )
    timeout: float = Field(
        default=60.0,
        description="HTTP timeout in seconds (must exceed poll_timeout)",
    )
    max_retries: int = Field(
        default=3,
        description="Attempts for transient HTTP failures",
    )


class CatalogConfig(BaseConfig):
    """NASA Earth imagery catalog and the observed location."""

    api_key: str = Field(
        default="DEMO_KEY",
        description="api.nasa.gov key; DEMO_KEY is heavily rate limited",
    )
    endpoint: str = Field(
        default="https://api.nasa.gov/planetary/earth/",
        description="Earth API base URL (trailing slash required)",
    )
    longitude: float = Field(
        default=-120.70418, description="Longitude of the observed point"
    )
    latitude: float = Field(
        default=38.32974, description="Latitude of the observed point"
    )
    begin: datetime.date = Field(
        default=datetime.date(2000, 1, 1),
        description="Earliest image date to consider",
    )
    cloud_score: bool = Field(
        default=True,
        description="Ask the catalog to compute a cloud score per image",
    )
    timeout: float = Field(default=30.0, description="HTTP timeout")
    max_retries: int = Field(
        default=3, description="Attempts for transient HTTP failures"
    )


class MessagesConfig(BaseConfig):
    """User-facing texts. {date} expands where noted."""

    probe_caption: str = Field(
        default="[{date}] - Do you see wildfire damages ?",
        description="Caption of each probe image ({date})",
    )
    culprit: str = Field(
        default="Culprit: {date}",
        description="Result when damage was found ({date})",
    )
    no_culprit: str = Field(
        default="No wildfire damage was reported on any image.",
        description="Result when every answer was no",
    )
    empty_catalog: str = Field(
        default="Cannot bisect an empty array...",
        description="Reply when the catalog has no images",
    )
    catalog_unavailable: str = Field(
        default="The imagery catalog is unavailable, try again later.",
    )
    image_unavailable: str = Field(
        default=(
            "Could not load the image for {date}. "
            "Send START to begin a new search."
        ),
        description="Reply when a probe image cannot be loaded ({date})",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance",
    )
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)

    run_name: str = Field(
        default="bot",
        description="Name of this run, used for log file paths",
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / "firebisect"
        ),
        description="Root directory for log files",
    )

    def setup_logger(self) -> Logger:
        """Install the global logger from this configuration."""
        from firebisect.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        self.logger = setup_logger(
            log_root=self.log_root,
            run_name=self.run_name,
            console=self.logger.console,
            file=self.logger.file,
            logfire=self.logger.logfire,
            level=self.logger.level,
        )
        return self.logger


# ============================================================
# RUNTIME STATE MODELS (mutable while a command runs)
# ============================================================

class SearchState(BaseState):
    """Collaborators and sessions shared by all conversations."""

    registry: Any = Field(
        default_factory=SessionRegistry,
        description="Active bisection per conversation",
    )
    catalog: Any = Field(
        default=None,
        description="Imagery catalog client",
    )
    transport: Any = Field(
        default=None,
        description="Conversational transport",
    )
    events_handled: int = Field(
        default=0,
        description="Inbound events processed since start",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class Runtime(BaseModel):
    """All runtime state, grouped by concern."""

    search: SearchState = Field(default_factory=SearchState)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Configuration plus runtime state, passed to every workflow.

    Sources, highest priority first: init arguments and CLI, YAML files
    (see YamlWithIncludesSettingsSource), .env, environment variables
    (FIREBISECT_CONFIG__CATALOG__API_KEY=...), file secrets.
    """

    config: Config = Field(default_factory=Config)
    runtime: Runtime = Field(default_factory=Runtime)
    include: list[str] | None = Field(
        default=None,
        description="Additional YAML files to deep-merge (--include)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FIREBISECT_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> State:
        """Expand {config.x.y} and {platformdirs.*} templates, then
        install the global logger from the expanded configuration.

        Unknown references such as {date} are left for runtime
        formatting.
        """
        self._substitute_recursive(self.config)
        self.config.setup_logger()
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i, item in enumerate(obj):
                obj[i] = self._substitute_value(item)

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            substituted = self._substitute_string(value)
            return value if substituted == value else substituted
        if isinstance(value, Path):
            substituted = self._substitute_string(str(value))
            return value if substituted == str(value) else Path(substituted)
        if isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        """Replace {dotted.path} references that resolve.

        Examples:
            "{platformdirs.user_state_dir}/x" -> "~/.local/state/firebisect/x"
            "{config.run_name}.log"           -> "bot.log"
            "[{date}]"                        -> "[{date}]"
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    obj = obj('firebisect', appauthor=False)
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = ["State", "Config", "BaseConfig", "BaseState"]
