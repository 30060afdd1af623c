"""First-party analytics ingestion and real-user monitoring."""

from __future__ import annotations

import json
import time

import structlog
from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import ValidationError

from blogkit_service.db.deps import AnalyticsRepoDep, SessionDep
from blogkit_service.rest.deps import CacheDep
from blogkit_service.rest.schemas import AnalyticsEventRequest, RumMetric

logger = structlog.get_logger()

router = APIRouter(tags=["analytics"])


async def _read_json(request: Request):
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from exc


@router.post("/analytics", status_code=204)
async def ingest_event(
    request: Request,
    analytics: AnalyticsRepoDep,
    session: SessionDep,
    cache: CacheDep,
) -> None:
    """Persist an event, then mirror it onto the Redis stream if one is configured."""
    try:
        event = AnalyticsEventRequest.model_validate(await _read_json(request))
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid analytics event") from exc

    await analytics.record(
        name=event.name,
        path=event.path,
        referrer=event.referrer,
        user_id=event.user_id,
        session_id=event.session_id,
        properties=event.properties,
    )
    await session.commit()

    await cache.publish_event(
        {
            "name": event.name,
            "path": event.path,
            "referrer": event.referrer or "",
            "user_id": event.user_id or "",
            "session_id": event.session_id or "",
            "properties": json.dumps(event.properties or {}),
        }
    )


@router.post("/rum")
async def ingest_rum(request: Request) -> Response:
    started = time.perf_counter()
    try:
        metric = RumMetric.model_validate(await _read_json(request))
    except (HTTPException, ValidationError) as exc:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.warning("rum_rejected", error=str(exc))
        return Response(
            content=json.dumps({"ok": False, "error": "Invalid metric"}),
            status_code=400,
            media_type="application/json",
            headers={"Server-Timing": f"rum;dur={elapsed_ms}"},
        )

    logger.info("web_vitals", metric=metric.model_dump(exclude_none=True))
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    return Response(status_code=204, headers={"Server-Timing": f"rum;dur={elapsed_ms}"})
