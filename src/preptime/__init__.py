"""
Preptime - Preparation-Time Modeling for Restaurant Orders

Two model families, one rule: pick the simplest model the data cannot tell apart
from the best one.

Structure:
    data/      - Record schema and dataset validation
    features/  - Order wrangling, variant filters, fit/apply feature recipe
    models/    - Stratified splits, model specs, workflows
    pipeline/  - Evaluator, comparison report, end-to-end runner
    analysis/  - Error metrics

Usage:
    from preptime.pipeline import Pipeline
    from preptime.config import PipelineConfig

    result = Pipeline.run(orders_df, PipelineConfig(variant="asap"))
    result.report.print_summary()
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
