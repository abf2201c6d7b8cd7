"""Session-level frame processing pipeline."""

from gd_analyzer.pipeline.session import AnalysisSession

__all__ = ["AnalysisSession"]
