"""Error taxonomy for the modeling pipeline.

Fatal conditions:
    InsufficientDataError - A stratification bucket, fold or split is too small
    SchemaMismatchError - Missing field, null target, or fit/apply out of order

Internal conditions (never reach the caller):
    DegenerateColumnError - Zero-variance numeric column, absorbed by the recipe
"""

from __future__ import annotations

from typing import Iterable, Optional


class PipelineError(Exception):
    """Base class for all preptime errors."""


class InsufficientDataError(PipelineError):
    """Not enough rows to build a split, a fold or a stratification bucket."""


class SchemaMismatchError(PipelineError):
    """A partition does not match the schema the pipeline expects.

    Also raised when stages are called out of order (e.g. apply before fit).
    """

    def __init__(
        self,
        message: str,
        partition: Optional[str] = None,
        fields: Optional[Iterable[str]] = None,
    ):
        self.partition = partition
        self.fields = list(fields) if fields is not None else []
        context = []
        if partition is not None:
            context.append(f"partition={partition!r}")
        if self.fields:
            context.append(f"fields={self.fields}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class DegenerateColumnError(PipelineError):
    """A numeric column has zero variance on the fit partition."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Column '{column}' has zero variance on the fit partition")


__all__ = [
    "PipelineError",
    "InsufficientDataError",
    "SchemaMismatchError",
    "DegenerateColumnError",
]
