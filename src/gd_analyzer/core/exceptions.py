"""Custom exceptions for GD Analyzer.

Missing, invalid or degenerate landmark data is never an exception: it is
reported as a null metric with a reason string. Only the cases below raise.
"""


class GDAnalyzerError(Exception):
    """Base exception for all GD Analyzer errors."""

    pass


class PayloadError(GDAnalyzerError):
    """Request payload could not be decoded into a frame request."""

    def __init__(self, message: str = "Invalid payload") -> None:
        self.message = message
        super().__init__(self.message)


class LandmarkExtractionError(GDAnalyzerError):
    """Landmark detector failed to load or returned unusable results."""

    def __init__(self, message: str = "Landmark extraction failed") -> None:
        self.message = message
        super().__init__(self.message)
