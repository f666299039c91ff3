"""
Data alerts.
"""

from typing import Optional

from .client import QlikClient
from .pagination import ALERTS_CEILING
from .results import ToolPayload, payload


async def list_alerts(client: QlikClient, space_id: Optional[str] = None, enabled: Optional[bool] = None) -> ToolPayload:
    params = {"spaceId": space_id, "enabled": None if enabled is None else str(enabled).lower()}
    alerts = await client.paginate("/data-alerts", params, hard_ceiling=ALERTS_CEILING, items_keys=("tasks", "data"))
    mapped = [
        {
            "id": a.get("id"),
            "name": a.get("name"),
            "enabled": a.get("enabled"),
            "lastTriggered": a.get("lastTriggered"),
            "condition": a.get("condition"),
            "ownerId": a.get("ownerId"),
        }
        for a in alerts
    ]
    return payload(f"Found {len(mapped)} alerts", "alerts", alerts=mapped)


async def alert_details(client: QlikClient, alert_id: str) -> ToolPayload:
    alert = await client.request(f"/data-alerts/{alert_id}")
    return payload(f"Alert: {alert.get('name')}", "alert-detail", **alert)


async def trigger_alert(client: QlikClient, alert_id: str) -> ToolPayload:
    await client.request(f"/data-alerts/{alert_id}/actions/trigger", method="POST")
    return payload("Alert triggered", "alert-triggered", alertId=alert_id)


async def delete_alert(client: QlikClient, alert_id: str) -> ToolPayload:
    await client.request(f"/data-alerts/{alert_id}", method="DELETE")
    return payload("Alert deleted", "alert-deleted", alertId=alert_id)
