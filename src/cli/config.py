"""Configuration management for the Suite API toolkit.

Supports YAML-based configuration; command-line flags override it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..client.pagination import DEFAULT_PAGE_SIZE
from ..cluster.bootstrap import DEFAULT_INTERVAL, DEFAULT_READY_STATUS, DEFAULT_TIMEOUT


@dataclass
class AuthConfig:
    """Who to authenticate as."""

    username: Optional[str] = None
    auth_source: Optional[str] = None  # derived from user@domain when unset


@dataclass
class TLSConfig:
    """Certificate verification for every session."""

    trust_all: bool = False
    ca_bundle: Optional[str] = None


@dataclass
class HTTPConfig:
    timeout: int = 60  # seconds, per request


@dataclass
class PaginationConfig:
    page_size: int = DEFAULT_PAGE_SIZE
    alert_page_size: int = 10000


@dataclass
class BootstrapConfig:
    """Cluster bootstrap polling."""

    timeout: int = DEFAULT_TIMEOUT  # seconds
    interval: int = DEFAULT_INTERVAL  # seconds
    ready_status: int = DEFAULT_READY_STATUS


@dataclass
class Config:
    """Main configuration container."""

    nodes: List[str] = field(default_factory=list)

    auth: AuthConfig = field(default_factory=AuthConfig)
    tls: TLSConfig = field(default_factory=TLSConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    bootstrap: BootstrapConfig = field(default_factory=BootstrapConfig)

    # Directory exported policy files are written to
    export_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        nodes = data.get("nodes", [])
        if isinstance(nodes, str):
            nodes = [n.strip() for n in nodes.split(",") if n.strip()]

        auth_data = data.get("auth", {})
        auth = AuthConfig(
            username=auth_data.get("username"),
            auth_source=auth_data.get("auth_source"),
        )

        tls_data = data.get("tls", {})
        tls = TLSConfig(
            trust_all=bool(tls_data.get("trust_all", False)),
            ca_bundle=tls_data.get("ca_bundle"),
        )

        http = HTTPConfig(timeout=data.get("http", {}).get("timeout", 60))

        page_data = data.get("pagination", {})
        pagination = PaginationConfig(
            page_size=page_data.get("page_size", DEFAULT_PAGE_SIZE),
            alert_page_size=page_data.get("alert_page_size", 10000),
        )

        boot_data = data.get("bootstrap", {})
        bootstrap = BootstrapConfig(
            timeout=boot_data.get("timeout", DEFAULT_TIMEOUT),
            interval=boot_data.get("interval", DEFAULT_INTERVAL),
            ready_status=boot_data.get("ready_status", DEFAULT_READY_STATUS),
        )

        return cls(
            nodes=list(nodes),
            auth=auth,
            tls=tls,
            http=http,
            pagination=pagination,
            bootstrap=bootstrap,
            export_dir=data.get("export", {}).get("directory"),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load config from YAML file."""
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load config from path or defaults.

        Checks in order:
        1. Provided path
        2. SUITEAPI_CONFIG env var
        3. ./configs/config.yaml
        4. ./config.yaml
        5. ~/.suiteapi/config.yaml
        6. Default config
        """
        paths_to_try = []

        if config_path:
            paths_to_try.append(Path(config_path))

        if env_path := os.environ.get("SUITEAPI_CONFIG"):
            paths_to_try.append(Path(env_path))

        paths_to_try.extend([
            Path("./configs/config.yaml"),
            Path("./config.yaml"),
            Path.home() / ".suiteapi" / "config.yaml",
        ])

        for path in paths_to_try:
            if path.exists():
                return cls.from_yaml(path)

        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "nodes": list(self.nodes),
            "auth": {
                "username": self.auth.username,
                "auth_source": self.auth.auth_source,
            },
            "tls": {
                "trust_all": self.tls.trust_all,
                "ca_bundle": self.tls.ca_bundle,
            },
            "http": {"timeout": self.http.timeout},
            "pagination": {
                "page_size": self.pagination.page_size,
                "alert_page_size": self.pagination.alert_page_size,
            },
            "bootstrap": {
                "timeout": self.bootstrap.timeout,
                "interval": self.bootstrap.interval,
                "ready_status": self.bootstrap.ready_status,
            },
            "export": {"directory": self.export_dir},
        }
