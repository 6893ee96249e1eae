"""Configuration management for webterminal.

Loads settings from a YAML configuration file with environment variable
overrides (``WEBTERMINAL_`` prefix, ``__`` for nested sections). Supports
.env files.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/webterminal.yaml")

DEFAULT_BLOCKLIST = [
    "rm -rf /",
    "sudo",
    "su",
    "passwd",
    "useradd",
    "userdel",
    "reboot",
    "shutdown",
    "init",
    "systemctl",
]


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)
    ws_path: str = Field(default="/ws")
    api_prefix: str = Field(default="/api")


class SandboxConfig(BaseModel):
    root: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "webterminal",
        description="Directory under which each session gets its own sandbox",
    )
    user: str = Field(default="user")
    hostname: str = Field(default="webterminal")
    system_path: str = Field(
        default="/usr/local/bin:/usr/bin:/bin:/usr/local/sbin:/usr/sbin:/sbin:/usr/local/node/bin",
    )


class ExecutorConfig(BaseModel):
    shell: str = Field(default="/bin/bash")
    timeout: float = Field(default=30.0, gt=0)
    max_output_bytes: int = Field(default=1024 * 1024, gt=0)
    blocklist: list[str] = Field(default_factory=lambda: list(DEFAULT_BLOCKLIST))


class HistoryConfig(BaseModel):
    queue_size: int = Field(default=1000, gt=0)
    default_limit: int = Field(default=50, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the webterminal server.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "WEBTERMINAL_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    YAML values are passed as init arguments, so pydantic-settings gives
    them precedence: YAML file > env vars > .env file > defaults.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
