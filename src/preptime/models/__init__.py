"""Models module - splits, model specifications and workflows.

This module contains:
- splits: Stratified train/holdout Splitter and k-fold FoldAssigner
- specs: LinearSpec and EnsembleSpec model specifications
- workflow: Workflow binding a Recipe to a ModelSpec
"""

from preptime.models.specs import EnsembleSpec, LinearSpec, ModelSpec, default_specs
from preptime.models.splits import FoldAssigner, FoldPlan, Split, Splitter, quantile_strata
from preptime.models.workflow import ModelArtifact, Workflow

__all__ = [
    # Splitting
    "Splitter",
    "FoldAssigner",
    "Split",
    "FoldPlan",
    "quantile_strata",
    # Specs
    "ModelSpec",
    "LinearSpec",
    "EnsembleSpec",
    "default_specs",
    # Workflow
    "Workflow",
    "ModelArtifact",
]
