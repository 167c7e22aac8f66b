"""External transformation stages used by the render pipeline.

Each stage reads bytes on stdin and writes bytes on stdout. Anything the
process writes to stderr is kept for the operator log and never forwarded to
the next stage.
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from typing import List, Protocol

from modgraph_services.config import ServiceSettings
from modgraph_services.errors import StageError

logger = logging.getLogger("modgraph_services.pipeline")

NORMALIZE_STAGE = "normalize"
RENDER_STAGE = "render"


class Stage(Protocol):
    name: str

    def run(self, data: bytes) -> bytes:
        ...


@dataclass
class CommandStage:
    name: str
    argv: List[str] = field(default_factory=list)
    timeout: float | None = None

    def run(self, data: bytes) -> bytes:
        if not self.argv:
            raise self._fail("no command configured")

        logger.info("executing %s on %d bytes for the %s stage", self.argv[0], len(data), self.name)
        try:
            proc = subprocess.run(
                self.argv,
                input=data,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise self._fail(f"timed out after {exc.timeout} seconds", exc.stderr) from exc
        except (OSError, ValueError) as exc:
            raise self._fail(str(exc)) from exc

        if proc.returncode != 0:
            raise self._fail(f"exited with status {proc.returncode}", proc.stderr)

        if proc.stderr:
            logger.debug("%s stderr: %s", self.name, proc.stderr.decode("utf-8", errors="replace").strip())
        return proc.stdout

    def _fail(self, reason: str, stderr: bytes | None = None) -> StageError:
        output = (stderr or b"").decode("utf-8", errors="replace").strip()
        diagnostics = f"{reason}: {output}" if output else reason
        return StageError(self.name, diagnostics)


def default_stages(settings: ServiceSettings) -> List[Stage]:
    """Return the ``modgraphviz`` then ``dot -Tsvg`` stage pair."""

    return [
        CommandStage(NORMALIZE_STAGE, settings.normalize_argv, timeout=settings.stage_timeout_seconds),
        CommandStage(RENDER_STAGE, settings.render_argv, timeout=settings.stage_timeout_seconds),
    ]
