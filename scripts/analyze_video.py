#!/usr/bin/env python3
"""Run a recorded practice video through landmark extraction and analysis.

Writes one JSON line per analyzed frame and prints the session summary.
Useful for checking metric behaviour offline without the browser client.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import TextIO

import cv2
from gd_analyzer.core.config import get_settings
from gd_analyzer.core.exceptions import GDAnalyzerError
from gd_analyzer.core.logging import get_logger, setup_logging
from gd_analyzer.pipeline.session import AnalysisSession
from gd_analyzer.vision.landmarks import LandmarkExtractor

logger = get_logger(__name__)


def process_video(
    video_path: Path,
    session: AnalysisSession,
    extractor: LandmarkExtractor,
    output: TextIO | None = None,
    fps: float | None = None,
) -> int:
    """Analyze every frame of a video file.

    Args:
        video_path: Path to video file
        session: Session receiving the frames
        extractor: Initialized landmark extractor
        output: Stream for per-frame JSON lines (None = no output)
        fps: Frame rate override (default: read from the file)

    Returns:
        Number of frames read
    """
    cap = cv2.VideoCapture(str(video_path))
    if not cap.isOpened():
        raise GDAnalyzerError(f"Could not open video: {video_path}")

    fps = fps or cap.get(cv2.CAP_PROP_FPS) or 30.0
    frame_idx = 0

    logger.info("Processing video: %s (%.1f fps)", video_path, fps)

    try:
        while True:
            ret, image = cap.read()
            if not ret:
                break

            timestamp_ms = int(frame_idx * 1000 / fps)
            frame = extractor.extract(image, timestamp_ms)
            response = session.process(frame, float(timestamp_ms))

            if output is not None and response.explanations.get("reason") != "throttled":
                record = {"frame": frame_idx, "timestamp": timestamp_ms, **response.to_dict()}
                # Landmark rows are bulky and only needed between frames
                record.pop("next_state")
                output.write(json.dumps(record) + "\n")

            frame_idx += 1
            if frame_idx % 100 == 0:
                logger.info("Processed %d frames...", frame_idx)

    finally:
        cap.release()

    logger.info("Processed %d frames", frame_idx)
    return frame_idx


def main() -> int:
    """Run analysis script."""
    parser = argparse.ArgumentParser(description="Analyze a recorded group-discussion video")
    parser.add_argument(
        "video",
        type=Path,
        help="Path to recorded video file",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output JSON-lines file for per-frame results",
    )
    parser.add_argument(
        "--fps",
        type=float,
        help="Video frame rate override",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.file)

    if not args.video.exists():
        logger.error("Video not found: %s", args.video)
        return 1

    session = AnalysisSession(settings)
    output = open(args.output, "w") if args.output else None

    try:
        with LandmarkExtractor(settings.detector) as extractor:
            frames = process_video(args.video, session, extractor, output, args.fps)
    except GDAnalyzerError as e:
        logger.error("Analysis failed: %s", e)
        return 2
    finally:
        if output is not None:
            output.close()

    if frames == 0:
        logger.warning("No frames read from video")
        return 1

    print(json.dumps(asdict(session.summary()), indent=2))
    if args.output:
        logger.info("Per-frame results saved to %s", args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
