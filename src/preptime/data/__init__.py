"""Data layer - record schema and dataset validation.

Ingestion and joining live upstream; this package only checks that a joined
dataset has the shape the pipeline expects.
"""

from preptime.data.schemas import OrderRecord, validate_dataset

__all__ = ["OrderRecord", "validate_dataset"]
