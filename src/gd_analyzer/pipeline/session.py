"""Per-session frame analysis pipeline.

Each practice session owns one AnalysisSession. The session is the only
place a PreviousState is kept between frames, so frames from different
sessions never share a state slot.
"""

from __future__ import annotations

from gd_analyzer.analysis.analyzer import FrameAnalyzer
from gd_analyzer.analysis.metrics import MetricsAccumulator, SessionSummary
from gd_analyzer.core.config import Settings, get_settings
from gd_analyzer.core.logging import get_logger
from gd_analyzer.core.types import FrameInput, FrameResponse, PreviousState

logger = get_logger(__name__)

THROTTLED = "throttled"


class AnalysisSession:
    """Orchestrates analysis for one session's frame sequence.

    Coordinates:
    - Throttling by caller timestamp
    - PreviousState handoff between frames
    - Session score aggregation
    """

    def __init__(
        self,
        settings: Settings | None = None,
        analyzer: FrameAnalyzer | None = None,
    ) -> None:
        """Initialize session with settings.

        Args:
            settings: Application settings (uses defaults if None)
            analyzer: Shared analyzer (one is created if None)
        """
        self.settings = settings or get_settings()
        self._analyzer = analyzer or FrameAnalyzer(self.settings)
        self._metrics = MetricsAccumulator(max_tips=self.settings.session.max_tips)

        # State
        self._previous_state: PreviousState | None = None
        self._last_timestamp: float | None = None
        self._last_valid: FrameResponse | None = None

    @property
    def previous_state(self) -> PreviousState | None:
        """State that will be replayed with the next frame."""
        return self._previous_state

    @property
    def last_valid_response(self) -> FrameResponse | None:
        """Most recent response that carried metrics."""
        return self._last_valid

    def process(self, frame: FrameInput, timestamp: float) -> FrameResponse:
        """Analyze a frame and advance the session state.

        Args:
            frame: Detector output for this frame
            timestamp: Frame timestamp in milliseconds

        Returns:
            FrameResponse for the frame; a throttled frame gets an empty
            response and leaves the session state untouched
        """
        if self._is_throttled(timestamp):
            return FrameResponse.empty(
                timestamp,
                explanations={"reason": THROTTLED},
                warnings=[],
                next_state=self._previous_state,
            )
        self._last_timestamp = timestamp

        response = self._analyzer.analyze(frame, self._previous_state, timestamp)
        self._previous_state = response.next_state

        if response.metrics is not None:
            self._metrics.add(response.metrics)
            self._last_valid = response

        return response

    def summary(self) -> SessionSummary:
        """Get session-averaged metrics and tips."""
        return self._metrics.summary()

    def reset(self) -> None:
        """Reset state for a new session."""
        self._previous_state = None
        self._last_timestamp = None
        self._last_valid = None
        self._metrics.reset()
        logger.info("Session reset")

    def _is_throttled(self, timestamp: float) -> bool:
        if self._last_timestamp is None:
            return False
        elapsed = timestamp - self._last_timestamp
        return 0 <= elapsed < self.settings.session.min_interval_ms
