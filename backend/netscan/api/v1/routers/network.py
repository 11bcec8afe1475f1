import logging
from fastapi import APIRouter, Depends, Query, status
from netscan.api.v1.deps import get_current_user, services_dep
from netscan.core.bootstrap import Services
from netscan.schemas.history import SaveResultIn
from netscan.services.stats import HistoryStats
from netscan.storage.base import HistoryRecord, Identity

router = APIRouter(prefix="/network", tags=["network"])
logger = logging.getLogger("uvicorn.error")


def _record_to_dict(r: HistoryRecord) -> dict:
    return {
        "id": r.id,
        "userId": r.owner_id,
        "downloadSpeed": r.download_speed,
        "uploadSpeed": r.upload_speed,
        "ping": r.ping,
        "jitter": r.jitter,
        "packetLoss": r.packet_loss,
        "networkScore": r.network_score,
        "networkType": r.network_type,
        "isp": r.isp,
        "ip": r.ip,
        "location": r.location,
        "timestamp": r.timestamp.isoformat(),
    }


def _stats_to_dict(s: HistoryStats) -> dict:
    return {
        "totalTests": s.total_tests,
        "avgDownload": s.avg_download,
        "avgUpload": s.avg_upload,
        "avgPing": s.avg_ping,
        "avgJitter": s.avg_jitter,
        "avgPacketLoss": s.avg_packet_loss,
        "avgScore": s.avg_score,
        "maxDownload": s.max_download,
        "maxUpload": s.max_upload,
        "minPing": s.min_ping,
        "bestScore": s.best_score,
        "worstScore": s.worst_score,
        "testsLast7Days": s.tests_last_7_days,
        "lastTestedAt": s.last_tested_at.isoformat(),
        "firstTestedAt": s.first_tested_at.isoformat(),
    }


@router.post("/save-result", status_code=status.HTTP_201_CREATED)
async def save_result(
    body: SaveResultIn,
    user: Identity = Depends(get_current_user),
    services: Services = Depends(services_dep),
):
    """
    Save one speed-test result for the authenticated user.
    Only the newest MAX_HISTORY_PER_USER results are kept; older ones are dropped.
    """
    entry = await services.history.append(user.id, body.model_dump())
    logger.info("[network] saved test for %s score=%s", user.email, entry.network_score)
    return {"success": True, "data": _record_to_dict(entry)}


@router.get("/history")
async def get_history(
    page: int = Query(1),
    limit: int = Query(20),
    user: Identity = Depends(get_current_user),
    services: Services = Depends(services_dep),
):
    """
    Paginated history, newest first.
    ``limit`` is clamped to 1-100 and ``page`` to >= 1 rather than rejected.
    """
    result = await services.history.list(user.id, page=page, page_size=limit)
    return {
        "success": True,
        "data": {
            "items": [_record_to_dict(r) for r in result.items],
            "total": result.total,
            "page": result.page,
            "limit": result.page_size,
            "totalPages": result.total_pages,
        },
    }


@router.get("/history/{rid}")
async def get_entry(
    rid: str,
    user: Identity = Depends(get_current_user),
    services: Services = Depends(services_dep),
):
    """
    One history entry by id.

    Error codes:
        - NOT_FOUND (404): no such entry
        - FORBIDDEN (403): entry belongs to another user
    """
    record = services.gate.authorize_record(user, await services.history.get_by_id(rid))
    return {"success": True, "data": _record_to_dict(record)}


@router.delete("/history")
async def clear_history(
    user: Identity = Depends(get_current_user),
    services: Services = Depends(services_dep),
):
    """Delete all of the caller's history; returns how many entries went"""
    deleted = await services.history.clear(user.id)
    logger.info("[network] cleared %d record(s) for %s", deleted, user.email)
    return {"success": True, "data": {"deleted": deleted}}


@router.get("/stats")
async def get_stats(
    user: Identity = Depends(get_current_user),
    services: Services = Depends(services_dep),
):
    """Summary statistics over the caller's history; ``null`` when there is none"""
    stats = await services.stats.compute_stats(user.id)
    return {"success": True, "data": _stats_to_dict(stats) if stats else None}
