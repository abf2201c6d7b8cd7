"""FastAPI service exposing the frame analyzer and the fallback analyzer."""

from __future__ import annotations

import time
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gd_analyzer import __version__
from gd_analyzer.analysis.analyzer import FrameAnalyzer, analyze_frame
from gd_analyzer.analysis.fallback import FallbackAnalyzer
from gd_analyzer.api.schemas import parse_fallback_payload, parse_frame_request
from gd_analyzer.core.config import Settings, get_settings
from gd_analyzer.core.exceptions import PayloadError
from gd_analyzer.core.logging import get_logger
from gd_analyzer.core.types import FrameResponse

logger = get_logger(__name__)

INVALID_PAYLOAD = "invalid_payload"


def _invalid_payload_response(timestamp: float) -> JSONResponse:
    envelope = FrameResponse.empty(
        timestamp,
        explanations={"error": INVALID_PAYLOAD},
        warnings=["Processing error occurred"],
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=envelope.to_dict())


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as e:
        raise PayloadError(f"Body is not valid JSON: {e}") from e


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the HTTP application.

    Args:
        settings: Application settings (cached defaults if None)

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    analyzer = FrameAnalyzer(settings)
    fallback = FallbackAnalyzer(settings.fallback)

    app = FastAPI(title="GD Frame Analyzer", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def verify_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
        expected = settings.api.api_key
        if expected and x_api_key != expected:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/analyze-frame", dependencies=[Depends(verify_api_key)])
    async def analyze_frame_endpoint(request: Request) -> JSONResponse:
        # Client timestamps are epoch milliseconds; arrival time stands in when absent
        received_ms = time.time() * 1000
        try:
            frame_request = parse_frame_request(
                await _read_json(request), default_timestamp=received_ms
            )
        except PayloadError as e:
            logger.warning("Rejected frame request: %s", e.message)
            return _invalid_payload_response(received_ms)

        response = analyze_frame(frame_request, analyzer)
        logger.info(
            "Frame %s analyzed: metrics=%s warnings=%d",
            frame_request.timestamp,
            response.metrics is not None,
            len(response.warnings),
        )
        return JSONResponse(content=response.to_dict())

    @app.post("/analyze-frame/fallback", dependencies=[Depends(verify_api_key)])
    async def analyze_fallback_endpoint(request: Request) -> JSONResponse:
        try:
            payload = parse_fallback_payload(
                await _read_json(request), default_timestamp=time.time()
            )
        except PayloadError as e:
            logger.warning("Rejected fallback payload: %s", e.message)
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"success": False, "error": e.message, "fallback": True},
            )

        result = fallback.analyze(payload)
        logger.info(
            "Fallback analysis: posture=%s hands=%s",
            result.metrics.posture_score,
            result.metrics.hands_detected_count,
        )
        return JSONResponse(content=result.to_dict())

    logger.info("GD Frame Analyzer API ready")
    return app
