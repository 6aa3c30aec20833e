from __future__ import annotations

import ipaddress
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from registrygraph.adapters.dns_entry import DEFAULT_SERVERS, DNS_CACHE_TTL
from registrygraph.cache.base import DEFAULT_CACHE_TTL
from registrygraph.rdap.bootstrap import DEFAULT_BOOTSTRAP_TTL, DEFAULT_BOOTSTRAP_URL
from registrygraph.rdap.client import DEFAULT_USER_AGENT


class LoggingSettings(BaseModel):
    """Brief: Options passed to init_logging().

    Inputs:
      - level: debug, info, warn, error or crit.
      - stderr: Log to stderr.
      - file: Optional log file path.
      - syslog: False, True, or a mapping with address/facility.

    Outputs:
      - LoggingSettings instance.
    """

    level: str = Field(default="info")
    stderr: bool = Field(default=True)
    file: Optional[str] = None
    syslog: Union[bool, Dict[str, Any]] = False

    class Config:
        extra = "forbid"


class CacheSettings(BaseModel):
    """Brief: Result cache selection and sizing.

    Inputs:
      - module: Cache alias or dotted path; None disables caching.
      - ttl_seconds: Lifetime of positive and negative entries.
      - shards: Lock shards in the in-memory store.
      - config: Extra keyword arguments for a custom cache class.

    Outputs:
      - CacheSettings instance.
    """

    module: Optional[str] = Field(default="in_memory_ttl")
    ttl_seconds: float = Field(default=DEFAULT_CACHE_TTL, ge=0)
    shards: int = Field(default=16, ge=1)
    config: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        extra = "forbid"

    def plugin_config(self) -> Dict[str, Any]:
        """Brief: Shape the section the way load_result_cache() expects it."""

        sub = {"ttl_seconds": self.ttl_seconds, "shards": self.shards}
        sub.update(self.config)
        return {"module": self.module, "config": sub}


class RDAPSettings(BaseModel):
    timeout_seconds: float = Field(default=10.0, gt=0)
    bootstrap_url: str = Field(default=DEFAULT_BOOTSTRAP_URL)
    bootstrap_ttl_seconds: float = Field(default=DEFAULT_BOOTSTRAP_TTL, gt=0)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)

    class Config:
        extra = "forbid"


class DNSSettings(BaseModel):
    """Brief: DNS adapter options.

    Inputs:
      - servers: Nameserver IP addresses.
      - reverse_lookup: Follow PTR records when SEARCH is given an IP.
      - ttl_seconds: Cache window for DNS answers.
      - timeout_seconds: Lifetime of one resolution.

    Outputs:
      - DNSSettings instance.
    """

    servers: List[str] = Field(default_factory=lambda: list(DEFAULT_SERVERS))
    reverse_lookup: bool = False
    ttl_seconds: float = Field(default=DNS_CACHE_TTL, ge=0)
    timeout_seconds: float = Field(default=5.0, gt=0)

    class Config:
        extra = "forbid"

    @field_validator("servers")
    @classmethod
    def _servers_are_ips(cls, value: List[str]) -> List[str]:
        for server in value:
            ipaddress.ip_address(str(server).strip())
        return [str(s).strip() for s in value]


class Settings(BaseModel):
    """Top-level configuration.

    Example config.yaml:
      logging:
        level: debug
      cache:
        module: memory
        ttl_seconds: 1800
      dns:
        servers: [1.1.1.1]
        reverse_lookup: true
    """

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    rdap: RDAPSettings = Field(default_factory=RDAPSettings)
    dns: DNSSettings = Field(default_factory=DNSSettings)

    class Config:
        extra = "forbid"


def settings_from_dict(data: Optional[Dict[str, Any]]) -> Settings:
    """Brief: Validate a config mapping.

    Inputs:
      - data: Mapping as loaded from YAML (None means defaults).

    Outputs:
      - Settings; raises ValueError describing every invalid field.
    """

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping")
    try:
        return Settings(**data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValueError(f"Invalid configuration: {problems}") from exc


def load_settings(path: Optional[str] = None) -> Settings:
    """Brief: Read and validate a YAML configuration file.

    Inputs:
      - path: Path to config.yaml; None returns the defaults.

    Outputs:
      - Settings; raises ValueError for unreadable YAML or invalid values.
    """

    if path is None:
        return Settings()
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    return settings_from_dict(data)
