"""Configuration management for iio-scan."""

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

IIOD_PORT = 30431


class DiscoveryConfig(BaseModel):
    """Configuration for the mDNS/DNS-SD backend."""

    mdns_service_types: List[str] = Field(default_factory=lambda: ["_iio._tcp.local."], description="mDNS service types to browse for.")
    browse_timeout_seconds: float = Field(default=3.0, gt=0, le=60, description="How long to listen for service announcements.")
    resolve_timeout_ms: int = Field(default=3000, ge=100, le=30000, description="Timeout for resolving a single announced service.")
    default_port: int = Field(default=IIOD_PORT, ge=0, le=65535, description="Port omitted from generated URIs.")


class ProbeConfig(BaseModel):
    """Configuration for the reachability probe ("port knock")."""

    timeout_seconds: float = Field(default=5.0, gt=0, le=60, description="Timeout for a single connection attempt.")
    max_concurrent_probes: int = Field(default=16, ge=1, le=256, description="Maximum connection attempts in flight.")


class ScanConfig(BaseModel):
    """Configuration for a full scan."""

    deadline_seconds: Optional[float] = Field(default=None, gt=0, description="Overall deadline for one scan. None disables it.")


class DescriptionConfig(BaseModel):
    max_length: int = Field(default=255, ge=16, le=4096, description="Capacity of a context description, in characters.")


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format ('json' or 'console')")
    file: Optional[Path] = Field(default=None, description="Log file path")


class Config(BaseSettings):
    """Main configuration for iio-scan. Loads from environment variables prefixed with IIO_SCAN_."""

    model_config = SettingsConfigDict(
        env_prefix='IIO_SCAN_',
        env_nested_delimiter='__',  # e.g., IIO_SCAN_PROBE__TIMEOUT_SECONDS
        extra='ignore',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    description: DescriptionConfig = Field(default_factory=DescriptionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, file_path: Path) -> "Config":
        """Create configuration strictly from a JSON file.

        This does not layer with environment variables; `Config()` does that.
        """
        with open(file_path) as f:
            config_data = json.load(f)
        return cls.model_validate(config_data)
