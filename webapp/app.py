"""Darkroom web API: admin preflight (JSON) and batch run (SSE)."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional, Set

from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from auth import Identity, clamp_limit, require_configured
from core import TERMINAL_EVENT_TYPES, ProgressEvent, event_payload
from orchestrator import ProgressChannel
from utils.exceptions import AdmissionError, ConfigurationError
from utils.logger import new_run_id, setup_logging

from .runtime import BrandingServices, get_services


logger = logging.getLogger(__name__)

KEEPALIVE_SEC = 15.0

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _requested_limit(request: Request) -> Any:
    # Read after admission; an unparseable body means "no limit given".
    try:
        body = await request.json()
    except ValueError:
        return None
    return body.get("limit") if isinstance(body, dict) else None


def _sse(event: ProgressEvent) -> str:
    return f"data: {json.dumps(event_payload(event), ensure_ascii=False)}\n\n"


def create_app(services: Optional[BrandingServices] = None, *, keepalive_sec: float = KEEPALIVE_SEC) -> FastAPI:
    setup_logging()
    app = FastAPI(title="Darkroom Branding Pipeline", version="1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    running: Set["asyncio.Task[None]"] = set()

    def _services() -> BrandingServices:
        return services or get_services()

    async def _admit(
        authorization: Optional[str] = Header(default=None),
        svc: BrandingServices = Depends(_services),
    ) -> Identity:
        identity = await svc.gate.authorize(authorization)
        require_configured(svc.settings)
        return identity

    @app.exception_handler(AdmissionError)
    async def _admission_error(request: Request, exc: AdmissionError) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(ConfigurationError)
    async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error(f"[Darkroom] Configuration error: {exc.message}")
        return JSONResponse({"error": exc.message}, status_code=500)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/darkroom/preflight")
    async def darkroom_preflight(
        request: Request,
        identity: Identity = Depends(_admit),
        svc: BrandingServices = Depends(_services),
    ) -> JSONResponse:
        limit = clamp_limit(await _requested_limit(request), svc.settings.darkroom)
        logger.info(f"[Darkroom] Preflight by {identity.email}, limit={limit}")
        try:
            payload = await svc.service.preflight(limit)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.exception("Preflight failed")
            return JSONResponse({"error": str(exc) or "Preflight failed"}, status_code=500)
        return JSONResponse(payload)

    @app.post("/api/darkroom/run")
    async def darkroom_run(
        request: Request,
        identity: Identity = Depends(_admit),
        svc: BrandingServices = Depends(_services),
    ) -> StreamingResponse:
        limit = clamp_limit(await _requested_limit(request), svc.settings.darkroom)
        channel = ProgressChannel(new_run_id())
        logger.info(f"[Darkroom] Run {channel.run_id} by {identity.email}, limit={limit}")

        async def _event_stream() -> AsyncIterator[str]:
            task = asyncio.ensure_future(svc.service.run_pipeline(channel, limit))
            running.add(task)
            task.add_done_callback(running.discard)
            try:
                while True:
                    try:
                        event = await channel.next_event(timeout=keepalive_sec)
                    except asyncio.TimeoutError:
                        yield ": keep-alive\n\n"
                        continue
                    if event is None:
                        break
                    yield _sse(event)
                    if event.type in TERMINAL_EVENT_TYPES:
                        break
            finally:
                # consumer gone: the run stops at its next write
                channel.close()

        return StreamingResponse(_event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)

    return app


app = create_app()
