"""
App reloads: trigger, status with log, cancel and history.
"""

from src.logging import get_logger

from .client import QlikClient
from .lookups import get_item_id_for_app
from .pagination import RELOADS_CEILING
from .results import ToolPayload, payload

logger = get_logger('TOOLS')


async def trigger_reload(client: QlikClient, app_id: str, partial: bool = False) -> ToolPayload:
    result = await client.request("/reloads", method="POST", json_data={"appId": app_id, "partial": partial})
    logger.info(f"reload triggered | app:{app_id} | reload:{result.get('id')} | partial:{partial}")
    return payload("Reload started", "reload-triggered", reloadId=result.get("id"), appId=app_id, status=result.get("status"))


async def get_reload_log(client: QlikClient, reload_id: str) -> str:
    """Reload log text; failures are reported inline rather than raised."""
    try:
        return await client.request_text(f"/reloads/{reload_id}/logs")
    except Exception as e:
        logger.warning(f"reload log unavailable | reload:{reload_id} | error:{e}")
        status_code = getattr(e, "status_code", None)
        if status_code:
            return f"Unable to fetch log: {status_code}"
        return f"Error fetching log: {e}"


async def reload_status(client: QlikClient, reload_id: str) -> ToolPayload:
    reload = await client.request(f"/reloads/{reload_id}")
    log = await get_reload_log(client, reload_id)
    item_id = await get_item_id_for_app(client, reload.get("appId"))
    history_link = f"{client.config.base_url}/item/{item_id}/history" if item_id else None

    return payload(
        f"Status: {reload.get('status')}",
        "reload-detail",
        id=reload.get("id"),
        appId=reload.get("appId"),
        status=reload.get("status"),
        reloadType=reload.get("type"),
        startTime=reload.get("startTime"),
        endTime=reload.get("endTime"),
        duration=reload.get("duration"),
        log=log,
        errorCode=reload.get("errorCode"),
        errorMessage=reload.get("errorMessage"),
        historyLink=history_link,
    )


async def cancel_reload(client: QlikClient, reload_id: str) -> ToolPayload:
    await client.request(f"/reloads/{reload_id}/actions/cancel", method="POST")
    return payload("Reload cancelled", "reload-cancelled", reloadId=reload_id)


async def reload_history(client: QlikClient, app_id: str) -> ToolPayload:
    reloads = await client.paginate(
        "/reloads",
        {"appId": app_id, "sort": "-startTime"},
        hard_ceiling=RELOADS_CEILING,
    )
    mapped = [
        {
            "id": r.get("id"),
            "appId": r.get("appId"),
            "status": r.get("status"),
            "startTime": r.get("startTime"),
            "endTime": r.get("endTime"),
            "duration": r.get("duration"),
            "type": r.get("type"),
        }
        for r in reloads
    ]
    return payload(f"Found {len(mapped)} reloads", "reloads", reloads=mapped)
