"""Workflow entry points for generating and saving trips."""

from .trip_pipeline import PipelineResult, run_trip_pipeline, save_generated_trip

__all__ = [
    "PipelineResult",
    "run_trip_pipeline",
    "save_generated_trip",
]
