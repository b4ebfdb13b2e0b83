"""Runtime configuration for the collector server and the agent via Pydantic settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_ADDRESS = "localhost:8080"
_DEFAULT_PORT = 8080


def normalize_base_url(address: str) -> str:
    """Prefix a bare ``host:port`` with ``http://`` and drop any trailing slash."""

    address = address.strip().rstrip("/")
    if not address.startswith(("http://", "https://")):
        address = f"http://{address}"
    return address


class _BaseSettings(BaseSettings):
    address: str = Field(default=DEFAULT_ADDRESS, alias="ADDRESS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("address")
    @classmethod
    def strip_address(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("ADDRESS must not be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        return value.strip().upper()


class ServerSettings(_BaseSettings):
    """Settings for the collector server, sourced from environment variables."""

    @field_validator("address")
    @classmethod
    def validate_port(cls, value: str) -> str:
        _, sep, port = value.split("://", 1)[-1].rstrip("/").rpartition(":")
        if sep and not port.isdigit():
            raise ValueError(f"Invalid port in ADDRESS '{value}'")
        return value

    @property
    def host(self) -> str:
        return self._split_address()[0]

    @property
    def port(self) -> int:
        return self._split_address()[1]

    def _split_address(self) -> tuple[str, int]:
        address = self.address.split("://", 1)[-1].rstrip("/")
        host, sep, port = address.rpartition(":")
        if not sep:
            return address, _DEFAULT_PORT
        return host or "0.0.0.0", int(port)


class AgentSettings(_BaseSettings):
    """Settings for the sampling agent, sourced from environment variables."""

    poll_interval: float = Field(default=2.0, gt=0, alias="POLL_INTERVAL")
    report_interval: float = Field(default=10.0, gt=0, alias="REPORT_INTERVAL")
    request_timeout: float = Field(default=5.0, gt=0, alias="REQUEST_TIMEOUT")

    @property
    def server_url(self) -> str:
        return normalize_base_url(self.address)


@lru_cache
def get_server_settings() -> ServerSettings:
    """Return cached server settings instance."""

    return ServerSettings()  # type: ignore[call-arg]


@lru_cache
def get_agent_settings() -> AgentSettings:
    """Return cached agent settings instance."""

    return AgentSettings()  # type: ignore[call-arg]
