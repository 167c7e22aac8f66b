"""Render pipeline: graph description in, stored artifact identifier out."""
from __future__ import annotations

import logging
from typing import Sequence

from modgraph_services.errors import EmptyInputError, StageError
from modgraph_services.pipeline.stages import Stage
from modgraph_services.store import ArtifactStore

logger = logging.getLogger("modgraph_services.pipeline")


class RenderPipeline:
    """Run ``stages`` in order and hand the final output to ``store``.

    The pipeline holds no per-call state, so a single instance can serve
    concurrent requests. A failing stage stops the run and its ``StageError``
    propagates to the caller; nothing is stored in that case.
    """

    def __init__(self, stages: Sequence[Stage], store: ArtifactStore):
        if not stages:
            raise ValueError("at least one stage is required")
        self.stages = list(stages)
        self.store = store

    def render(self, data: bytes | None) -> str:
        if not data:
            raise EmptyInputError()

        output = bytes(data)
        for stage in self.stages:
            try:
                output = stage.run(output)
            except StageError as exc:
                logger.error("%s stage failed on %d bytes of input: %s", exc.stage, len(data), exc.diagnostics)
                raise

        return self.store.put(output)
