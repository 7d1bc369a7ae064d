"""
YAML configuration file.

    signal_phone_number: "+4915112345678"
    servers:
      - servername: Work
        base_url: https://chat.example.com
        token: <personal access token>
"""

from pathlib import Path
from typing import Union
from urllib.parse import urlsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from mm_signal.dispatch import DEFAULT_TIMEZONE
from mm_signal.errors import ConfigError
from mm_signal.keepalive import DEFAULT_IDLE_TIMEOUT, DEFAULT_KEEPALIVE_INTERVAL
from mm_signal.notify import DEFAULT_EXECUTABLE
from mm_signal.session import DEFAULT_RECONNECT_BACKOFF
from mm_signal.watchdog import DEFAULT_CHECK_INTERVAL


class ServerConfig(BaseModel):
    servername: str
    base_url: str
    token: str

    @field_validator("base_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("must be an http(s) URL with a host")
        return value


class Config(BaseModel):
    signal_phone_number: str
    servers: list[ServerConfig] = Field(min_length=1)
    timezone: str = DEFAULT_TIMEZONE
    signal_cli: str = DEFAULT_EXECUTABLE
    keepalive_interval: float = Field(DEFAULT_KEEPALIVE_INTERVAL, gt=0)
    idle_timeout: float = Field(DEFAULT_IDLE_TIMEOUT, gt=0)
    reconnect_backoff: float = Field(DEFAULT_RECONNECT_BACKOFF, ge=0)
    token_check_interval: float = Field(DEFAULT_CHECK_INTERVAL, gt=0)

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown time zone {value!r}") from e
        return value


def load_config(path: Union[str, Path]) -> Config:
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} is not valid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    try:
        return Config.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}:\n{e}") from e
