"""Pipeline error kinds."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator


class PipelineError(Exception):
    """Base class for every failure the CLI reports."""

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage:
            return f"[{self.stage}] {message}"
        return message


class SourceUnavailable(PipelineError):
    """Input table or file is missing or unreadable."""


class WriteFailure(PipelineError):
    """Output artifact could not be written."""


class SchemaMismatch(PipelineError):
    """An expected column is absent from a source."""


@contextmanager
def stage(name: str) -> Iterator[None]:
    """Tag any pipeline error raised inside the block with a stage name."""
    try:
        yield
    except PipelineError as exc:
        if exc.stage is None:
            exc.stage = name
        raise
