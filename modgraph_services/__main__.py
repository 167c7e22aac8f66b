"""Module entrypoint to run the render service with uvicorn.

Example:
    PORT=8080 python -m modgraph_services
"""

from __future__ import annotations

import logging

import uvicorn
from uvicorn.config import Config

from modgraph_services.config import ServiceSettings, configure_logging

logger = logging.getLogger("modgraph_services")


def main() -> None:
    settings = ServiceSettings.from_env()
    configure_logging(settings.log_level)
    logger.info("listen addr %s:%s (http://localhost:%s/)", settings.host, settings.port, settings.port)
    config = Config(
        app="modgraph_services.api.server:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )
    server = uvicorn.Server(config)
    server.run()


if __name__ == "__main__":
    main()
