import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from signal_scout.errors import InvalidQueryError
from signal_scout.models import SearchQuery
from signal_scout.pipeline.runner import run_trending_collection
from signal_scout.services import Services

logger = logging.getLogger(__name__)

router = APIRouter()


def get_services(request: Request) -> Services:
    return request.app.state.services


def _bad_request(detail: str) -> JSONResponse:
    return JSONResponse({"error": "invalid request", "detail": detail}, status_code=400)


def _server_error(error: str) -> JSONResponse:
    return JSONResponse({"error": error}, status_code=500)


def _validation_detail(e: ValidationError) -> str:
    return "; ".join(err["msg"] for err in e.errors())


@router.post("/api/search")
async def search(
    payload: dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
):
    """Hybrid search over indexed signals. The query is also queued for background collection."""
    try:
        request = SearchQuery.model_validate(payload)
    except ValidationError as e:
        return _bad_request(_validation_detail(e))

    try:
        response = await services.retriever.search(request)
    except Exception as e:
        logger.error("Search failed for '%s': %s", request.query, e)
        return _server_error("search failed")

    services.orchestrator.queue(request.query)
    return response.to_dict()


@router.post("/api/collect")
async def collect(
    payload: dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
):
    """Immediate collection for one query."""
    query = payload.get("query")
    if not isinstance(query, str):
        return _bad_request("query is required and must be a non-empty string")
    force = bool(payload.get("force", False))

    try:
        signals = await services.orchestrator.collect_for_query(query, force=force)
    except InvalidQueryError as e:
        return _bad_request(str(e))
    except Exception as e:
        logger.error("Collection failed for '%s': %s", query, e)
        return _server_error("collection failed")

    return {
        "status": "ok",
        "query": query.strip(),
        "collected": len(signals),
        "signals": [{"id": s.id, "title": s.title, "url": s.url} for s in signals],
    }


@router.get("/api/collect")
async def queue_status(services: Services = Depends(get_services)):
    return services.orchestrator.get_queue_status()


@router.put("/api/collect/platforms")
async def set_platforms(
    payload: dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
):
    platforms = payload.get("platforms")
    if not isinstance(platforms, list):
        return _bad_request("platforms must be a list")
    try:
        enabled = services.orchestrator.set_platforms(platforms)
    except ValueError as e:
        return _bad_request(str(e))
    return {"enabled_platforms": [p.value for p in enabled]}


@router.delete("/api/collect/cache")
async def clear_cache(services: Services = Depends(get_services)):
    cleared = services.orchestrator.clear_processed_cache()
    return {"status": "ok", "cleared": cleared}


@router.post("/api/collect/trending")
async def trigger_trending(services: Services = Depends(get_services)):
    """Manually trigger a trending collection run."""
    try:
        result = await run_trending_collection(services.orchestrator)
        return {"status": "ok", **result}
    except Exception as e:
        logger.error("Manual trending collection failed: %s", e)
        return _server_error("trending collection failed")


@router.get("/api/stats")
async def stats(services: Services = Depends(get_services)):
    try:
        return await services.gateway.stats()
    except Exception as e:
        logger.error("Stats failed: %s", e)
        return _server_error("failed to load index stats")


@router.get("/api/health")
async def health(services: Services = Depends(get_services)):
    """Health check: search engine connectivity + document count."""
    try:
        count = await services.gateway.count()
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        return JSONResponse({"status": "degraded", "detail": str(e)}, status_code=503)
    return {"status": "ok", "document_count": count}
