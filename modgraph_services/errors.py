"""Exceptions raised by the render pipeline and artifact store."""
from __future__ import annotations


class RenderError(Exception):
    """Base class for failures while turning a graph into an artifact."""


class EmptyInputError(RenderError, ValueError):
    """Raised when no graph description was supplied."""

    def __init__(self, message: str = "no graph contents"):
        super().__init__(message)


class StageError(RenderError):
    """Raised when an external stage could not run or exited with failure.

    ``diagnostics`` holds whatever the process wrote to stderr (or the OS
    error when it never started). It is meant for the operator log, not for
    the HTTP response.
    """

    def __init__(self, stage: str, diagnostics: str = ""):
        super().__init__(f"{stage} stage failed")
        self.stage = stage
        self.diagnostics = diagnostics


class ArtifactNotFoundError(KeyError):
    """Raised when an identifier has no stored artifact."""

    def __init__(self, identifier: str):
        super().__init__(f"Unknown artifact {identifier}")
        self.identifier = identifier
