"""Configuration helpers for running the render service.

The settings default to values that work in local development but can be
overridden via environment variables. The listening port also honours the
plain ``PORT`` variable most hosting platforms inject.
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass
from typing import List

logger = logging.getLogger("modgraph_services.config")

DEFAULT_PORT = 8080


@dataclass
class ServiceSettings:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    reload: bool = False
    log_level: str = "info"
    request_id_header: str = "x-request-id"
    normalize_command: str = "modgraphviz"
    render_command: str = "dot -Tsvg"
    stage_timeout_seconds: float | None = 60.0
    max_input_bytes: int = 32 << 20
    cache_max_age: int = 3600
    public_scheme: str | None = None

    @property
    def normalize_argv(self) -> List[str]:
        return shlex.split(self.normalize_command)

    @property
    def render_argv(self) -> List[str]:
        return shlex.split(self.render_command)

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        """Load settings from environment variables with safe defaults."""

        def as_bool(value: str, default: bool) -> bool:
            truthy = {"1", "true", "t", "yes", "y"}
            falsy = {"0", "false", "f", "no", "n"}
            if value.lower() in truthy:
                return True
            if value.lower() in falsy:
                return False
            return default

        def as_float(value: str | None, default: float | None) -> float | None:
            if value is None:
                return default
            if value.lower() in {"none", "", "-1"}:
                return None
            return float(value)

        def as_port() -> int:
            value = os.getenv("MODGRAPH_PORT") or os.getenv("PORT")
            if not value:
                logger.warning("MODGRAPH_PORT/PORT not specified; using default %s", cls.port)
                return cls.port
            return int(value)

        return cls(
            host=os.getenv("MODGRAPH_HOST", cls.host),
            port=as_port(),
            reload=as_bool(os.getenv("MODGRAPH_RELOAD", str(cls.reload)), cls.reload),
            log_level=os.getenv("MODGRAPH_LOG_LEVEL", cls.log_level),
            request_id_header=os.getenv("MODGRAPH_REQUEST_ID_HEADER", cls.request_id_header),
            normalize_command=os.getenv("MODGRAPH_NORMALIZE_COMMAND", cls.normalize_command),
            render_command=os.getenv("MODGRAPH_RENDER_COMMAND", cls.render_command),
            stage_timeout_seconds=as_float(
                os.getenv("MODGRAPH_STAGE_TIMEOUT_SECONDS"), cls.stage_timeout_seconds
            ),
            max_input_bytes=int(os.getenv("MODGRAPH_MAX_INPUT_BYTES", cls.max_input_bytes)),
            cache_max_age=int(os.getenv("MODGRAPH_CACHE_MAX_AGE", cls.cache_max_age)),
            public_scheme=os.getenv("MODGRAPH_PUBLIC_SCHEME") or None,
        )


def configure_logging(level: str) -> None:
    """Apply a simple logging configuration for the service."""

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
