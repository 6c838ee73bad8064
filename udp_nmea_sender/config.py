"""Configuration management using environment variables and plugin options."""

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Sentinel used by the configuration UI for "no broadcast address selected"
UNSET_ADDRESS = "-"
DEFAULT_PORT = 2000


class Settings(BaseSettings):
    """Service settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    # Plugin options storage
    options_file: str = Field(
        default="udp-nmea-sender.json",
        description="JSON file holding the destination options"
    )

    # NMEA input (standalone host only)
    nmea_listen_enabled: bool = Field(
        default=True,
        description="Accept NMEA 0183 sentences over UDP and publish them as nmea0183 events"
    )
    nmea_listen_host: str = Field(
        default="0.0.0.0",
        description="Host to bind the NMEA input listener to"
    )
    nmea_listen_port: int = Field(
        default=10110,
        ge=0,
        le=65535,
        description="Port to listen for NMEA 0183 sentences (0 picks a free port)"
    )
    udp_buffer_size: int = Field(
        default=65536,
        ge=256,
        le=1048576,
        description="UDP receive buffer size in bytes"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional log file path"
    )

    # Metrics Configuration
    metrics_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics"
    )
    metrics_port: int = Field(
        default=9110,
        ge=1,
        le=65535,
        description="Port for Prometheus metrics endpoint"
    )

    # Health Check Configuration
    health_check_interval: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Seconds between statistics reports"
    )

    @validator("log_level")
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @validator("log_format")
    def validate_log_format(cls, v):
        """Validate log format."""
        v_lower = v.lower()
        if v_lower not in ("json", "text"):
            raise ValueError(f"Invalid log format: {v}. Must be json or text")
        return v_lower

    def get_summary(self) -> dict:
        """Get configuration summary for logging."""
        return {
            "options_file": self.options_file,
            "nmea_input": (f"{self.nmea_listen_host}:{self.nmea_listen_port}"
                           if self.nmea_listen_enabled else "disabled"),
            "log_level": self.log_level,
            "metrics": f"port {self.metrics_port}" if self.metrics_enabled else "disabled"
        }


class LineDelimiter(str, Enum):
    """Suffix policy applied to every outgoing message."""

    NONE = "None"
    LF = "LF"
    CRLF = "CRLF"

    @property
    def suffix(self) -> str:
        return DELIMITERS[self]


DELIMITERS: Dict[LineDelimiter, str] = {
    LineDelimiter.NONE: "",
    LineDelimiter.LF: "\n",
    LineDelimiter.CRLF: "\r\n",
}


class DestinationConfig(BaseModel):
    """
    One relay target as stored by the host.

    Keys use the host's camelCase names; snake_case names are accepted too.
    """

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    ipaddress: Optional[str] = Field(
        default=None,
        description="IP address, overrides the broadcast address if entered"
    )
    broadcast_address: Optional[str] = Field(
        default=UNSET_ADDRESS,
        alias="broadcastAddress",
        description="Subnet broadcast address"
    )
    port: int = Field(
        default=DEFAULT_PORT,
        ge=1,
        le=65535,
        description="Destination UDP port"
    )
    line_delimiter: LineDelimiter = Field(
        default=LineDelimiter.NONE,
        alias="lineDelimiter",
        description="Line delimiter appended to every message"
    )
    nmea0183: bool = Field(
        default=True,
        description="Use server event nmea0183"
    )
    nmea0183out: bool = Field(
        default=True,
        description="Use server event nmea0183out"
    )
    additional_events: List[str] = Field(
        default_factory=list,
        alias="additionalEvents",
        description="Additional events whose data should be sent"
    )

    @validator("ipaddress", "broadcast_address", pre=True)
    def strip_address(cls, v):
        """Treat blank addresses as missing."""
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @validator("port", pre=True)
    def default_port(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_PORT
        return v

    @validator("line_delimiter", pre=True)
    def validate_line_delimiter(cls, v):
        """Unknown delimiters fall back to no delimiter."""
        if isinstance(v, LineDelimiter):
            return v
        try:
            return LineDelimiter(v)
        except ValueError:
            return LineDelimiter.NONE

    @validator("nmea0183", "nmea0183out", pre=True)
    def default_listen_flag(cls, v):
        """An unset flag means subscribe."""
        return True if v is None else v

    @validator("additional_events", pre=True)
    def validate_additional_events(cls, v):
        """Only a list of names is honoured; blank names are dropped, the rest kept as configured."""
        if not isinstance(v, (list, tuple)):
            return []
        names = []
        for name in v:
            if name is None:
                continue
            name = str(name)
            if name.strip():
                names.append(name)
        return names

    @property
    def address(self) -> Optional[str]:
        """Resolved destination address, the unicast override winning."""
        return self.ipaddress or self.broadcast_address

    @property
    def is_active(self) -> bool:
        """A destination is active iff it has an address that is not the unset sentinel."""
        return bool(self.address) and self.address != UNSET_ADDRESS

    @property
    def delimiter(self) -> str:
        return self.line_delimiter.suffix

    def get_summary(self) -> dict:
        """Get destination summary for logging."""
        return {
            "address": self.address,
            "port": self.port,
            "line_delimiter": self.line_delimiter.value,
            "nmea0183": self.nmea0183,
            "nmea0183out": self.nmea0183out,
            "additional_events": list(self.additional_events),
        }


class DestinationConfigs(BaseModel):
    """
    Canonical multi-destination plugin options.

    Entries are kept raw and validated one at a time at start, so a broken
    entry cannot take its siblings down with it.
    """

    model_config = ConfigDict(extra='ignore')

    destinations: List[Any] = Field(default_factory=list)

    @validator("destinations", pre=True)
    def validate_destinations(cls, v):
        if v is None:
            return []
        if isinstance(v, Mapping):
            return [v]
        return v

    def to_options(self) -> dict:
        """Options in the shape the host persists."""
        return {"destinations": [dict(d) if isinstance(d, Mapping) else d
                                 for d in self.destinations]}


def normalize_options(options: Optional[Mapping[str, Any]]) -> Tuple[DestinationConfigs, bool]:
    """
    Resolve plugin options into the canonical multi-destination form.

    Args:
        options: Either ``{"destinations": [...]}`` or a single legacy
            flat destination (an empty mapping is a legacy
            destination without an address)

    Returns:
        Tuple of the canonical options and whether the input was the
        legacy flat shape (and therefore needs to be written back)
    """
    if options is None:
        return DestinationConfigs(), False

    if "destinations" in options:
        return DestinationConfigs(destinations=options["destinations"]), False

    return DestinationConfigs(destinations=[dict(options)]), True
