"""Configuration management for termbridge.

Loads settings from a YAML configuration file with environment variable
overrides for deployment-specific values. Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from termbridge.normalizer.rules import (
    CONCATENATED_NAMESPACES,
    DEFAULT_COMMAND,
    ENDPOINT_ALLOWED_PATTERNS,
    ENDPOINT_BLOCKED_PATTERNS,
    ENTITY_NAMES,
    ENTITY_NAMESPACE,
    HEADLESS_DENIED,
    NO_INTERACTION_FLAG,
    QUOTED_FUNCTIONS,
    SAFETY_FLAG_RULES,
    SafetyFlagRule,
)
from termbridge.process.locator import (
    COMMON_TOOL_PATHS,
    DEFAULT_TOOL_ARCHIVE,
    DEFAULT_TOOL_DOWNLOAD_URL,
    DEFAULT_TOOL_NAME,
)
from termbridge.process.runner import LONG_RUNNING_VERBS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/termbridge.yaml")


class EndpointConfig(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1, le=65535)
    enabled: bool = Field(
        default=True, description="Open to every client; otherwise only whitelisted addresses"
    )
    whitelists: list[str] = Field(
        default_factory=lambda: ["127.0.0.1", "::1", "10.0.2.2", "192.168.1.1"]
    )


class NormalizerConfig(BaseModel):
    entity_names: list[str] = Field(default_factory=lambda: list(ENTITY_NAMES))
    entity_namespace: str = Field(default=ENTITY_NAMESPACE)
    concatenated_namespaces: dict[str, str] = Field(
        default_factory=lambda: dict(CONCATENATED_NAMESPACES)
    )
    quoted_functions: list[str] = Field(default_factory=lambda: list(QUOTED_FUNCTIONS))
    default_command: str = Field(default=DEFAULT_COMMAND, min_length=1)
    no_interaction_flag: str = Field(default=NO_INTERACTION_FLAG, min_length=1)
    safety_flags: list[SafetyFlagRule] = Field(
        default_factory=lambda: list(SAFETY_FLAG_RULES)
    )
    headless_denied: dict[str, str] = Field(default_factory=lambda: dict(HEADLESS_DENIED))


class PolicyConfig(BaseModel):
    allowed_patterns: list[str] = Field(default_factory=lambda: list(ENDPOINT_ALLOWED_PATTERNS))
    blocked_patterns: list[str] = Field(default_factory=lambda: list(ENDPOINT_BLOCKED_PATTERNS))


class ReplConfig(BaseModel):
    command: str = Field(default="python", min_length=1)
    session_window_seconds: int = Field(default=300, gt=0)
    ttl_minutes: int = Field(default=60, gt=0)
    store: Literal["memory", "file"] = Field(default="memory")
    store_path: str = Field(default="storage/termbridge")
    preload: list[str] = Field(
        default_factory=list, description="Modules imported into every REPL evaluation"
    )


class ConsoleConfig(BaseModel):
    command_name: str = Field(default="console", min_length=1)
    command: list[str] = Field(
        default_factory=list, description="Host CLI argv, e.g. ['python', 'manage.py']"
    )
    timeout: float | None = Field(default=None, gt=0)


class ToolConfig(BaseModel):
    command_name: str = Field(default="pip", min_length=1)
    name: str = Field(default=DEFAULT_TOOL_NAME)
    archive: str = Field(default=DEFAULT_TOOL_ARCHIVE)
    download_url: str = Field(default=DEFAULT_TOOL_DOWNLOAD_URL)
    common_paths: list[str] = Field(default_factory=lambda: list(COMMON_TOOL_PATHS))
    long_running: list[str] = Field(default_factory=lambda: list(LONG_RUNNING_VERBS))
    default_args: list[str] = Field(default_factory=lambda: ["--no-color", "--no-input"])
    project_root: str = Field(default=".")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for termbridge.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "TERMBRIDGE_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    endpoint: EndpointConfig = Field(default_factory=EndpointConfig)
    normalizer: NormalizerConfig = Field(default_factory=NormalizerConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    repl: ReplConfig = Field(default_factory=ReplConfig)
    console: ConsoleConfig = Field(default_factory=ConsoleConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    # Load .env file manually for non-prefixed vars
    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    # APP_DEBUG opens the endpoint to every client unless YAML decides
    app_debug = os.environ.get("APP_DEBUG", "")

    if "endpoint" not in yaml_data:
        yaml_data["endpoint"] = {}

    if app_debug and "enabled" not in yaml_data["endpoint"]:
        yaml_data["endpoint"]["enabled"] = app_debug.strip().lower() in ("1", "true", "yes", "on")
