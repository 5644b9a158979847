from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_udp_addr(addr: str) -> tuple[str, int]:
    """Split a "host:port" string into a (host, port) tuple."""
    host, sep, port = addr.rpartition(":")
    if not sep or not host:
        raise ValueError(f"Failed to parse IP:PORT, got value: {addr}")
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"Failed to parse IP:PORT, got value: {addr}") from None
    if not 0 < port_num < 65536:
        raise ValueError(f"UDP port out of range, got value: {addr}")
    return host, port_num


class LoggerConfig(BaseModel):
    # verbose: true logs snapshots at INFO instead of DEBUG
    verbose: bool = False

    # Remote UDP listeners, "IP:PORT"
    udp: list[str] = Field(default_factory=list)

    # Compact datagram layout: parallel arrays or per-field mappings
    wire_layout: Literal["arrays", "keyed"] = "arrays"

    @field_validator("udp")
    @classmethod
    def _check_udp(cls, value: list[str]) -> list[str]:
        for addr in value:
            parse_udp_addr(addr)
        return value

    def udp_addrs(self) -> list[tuple[str, int]]:
        return [parse_udp_addr(a) for a in self.udp]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DHT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "DHT Sensor Logger"

    # Source mode: "serial" for hardware, "sim" for development
    source_mode: Literal["serial", "sim"] = "serial"

    # Serial link
    port: str = "/dev/ttyUSB0"      # Windows example: "COM3"
    baud: int = 115200
    timeout_s: float = 4.0
    buffer_size: int = Field(default=1024, gt=2)

    # Retry policy for one poll cycle
    retries: int = Field(default=10, ge=0)
    retry_backoff_s: float = Field(default=0.1, ge=0.0)
    poll_interval_s: float = Field(default=0.0, ge=0.0)

    # Key carrying a per-sensor error message in raw payloads
    error_key: Literal["error", "e"] = "error"

    logger_config: LoggerConfig = Field(default_factory=LoggerConfig)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Simulated source
    sim_labels: list[str] = Field(default_factory=lambda: ["indoor", "outdoor"])
    sim_failure_rate: float = Field(default=0.0, ge=0.0, le=1.0)


def load_settings(config_file: Optional[Path] = None, **overrides) -> Settings:
    """Build settings from env/.env, an optional YAML file and explicit overrides.

    Values from the YAML file win over the environment, explicit overrides
    win over both.
    """
    values: dict = {}
    if config_file is not None:
        with open(config_file, "r", encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file must contain a YAML mapping: {config_file}")
        values.update(loaded)
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)
