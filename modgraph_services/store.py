"""In-memory artifact store shared by every request handler.

Rendered SVGs live here for the lifetime of the process. Entries are only
ever inserted; there is no expiry and nothing survives a restart.
"""
from __future__ import annotations

import logging
import secrets
import threading
from typing import Callable, Dict

from modgraph_services.errors import ArtifactNotFoundError

logger = logging.getLogger("modgraph_services.store")

IDENTIFIER_BYTES = 16


def random_identifier() -> str:
    """Return 128 random bits as 32 lowercase hex characters."""

    return secrets.token_hex(IDENTIFIER_BYTES)


class ArtifactStore:
    def __init__(self, new_identifier: Callable[[], str] | None = None):
        self._new_identifier = new_identifier or random_identifier
        self._artifacts: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, data: bytes) -> str:
        """Store ``data`` under a fresh identifier and return the identifier.

        A generated identifier that is already taken is discarded and a new
        one drawn, so an existing artifact is never replaced.
        """

        payload = bytes(data)
        while True:
            identifier = self._new_identifier()
            with self._lock:
                if identifier not in self._artifacts:
                    self._artifacts[identifier] = payload
                    break
            logger.warning("identifier collision on %s; drawing a new one", identifier)

        logger.info("stored %d bytes of svg with name %s", len(payload), identifier)
        return identifier

    def get(self, identifier: str) -> bytes:
        with self._lock:
            payload = self._artifacts.get(identifier)
        if payload is None:
            raise ArtifactNotFoundError(identifier)
        return payload

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._artifacts

    def __len__(self) -> int:
        with self._lock:
            return len(self._artifacts)
