"""
Tenant, license, health and tenant-level data connections.
"""

import asyncio
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.logging import get_logger

from .client import QlikAPIError, QlikClient
from .results import ToolPayload, payload

logger = get_logger('TOOLS')

# License parameter name -> capacity key
CAPACITY_PARAMETERS = {
    "fullUser": "users",
    "concurrent_reloads": "concurrentReloads",
    "dataAnalyticsCapacity": "dataCapacityGB",
    "maxAppSizeInMemory": "maxAppSizeGB",
    "amlDepModel": "mlModels",
    "standardAutomationRuns": "automationRuns",
    "reportingService": "reports",
    "numQuestionsPerMonth": "aiQuestions",
    "qcs_tenants": "tenants",
}

FEATURE_PARAMETERS = {
    "geoanalytics": "Geo Analytics",
    "sapconnector": "SAP Connector",
    "qlikSenseMobile": "Mobile",
    "qlikSenseDesktop": "Desktop",
    "qlikSenseOfficeAddIn": "Office Add-in",
    "byoidp": "BYOIDP",
    "jwtAuth": "JWT Auth",
    "dataIntegrationServices": "Data Integration",
    "amlAdvFeatures": "AutoML",
}

BYTES_PER_GB = 1073741824


def summarize_license_parameters(parameters: List[Dict[str, Any]]):
    """Split license parameters into tenant capacities and enabled features."""
    capacities: Dict[str, Any] = {}
    features: List[str] = []

    for param in parameters or []:
        name = param.get("name")
        values = param.get("values") or {}
        if name in CAPACITY_PARAMETERS:
            key = CAPACITY_PARAMETERS[name]
            if name == "fullUser" and values.get("unlimited"):
                capacities[key] = "Unlimited"
            elif name == "dataAnalyticsCapacity":
                capacities[key] = round((values.get("quantity") or 0) / BYTES_PER_GB)
            else:
                capacities[key] = values.get("quantity")
        elif name in FEATURE_PARAMETERS and values.get("toggle"):
            features.append(FEATURE_PARAMETERS[name])

    return capacities, features


async def _optional(client: QlikClient, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    try:
        return await client.request(endpoint, params=params)
    except QlikAPIError as e:
        logger.debug(f"optional fetch failed | endpoint:{endpoint} | status:{e.status_code}")
        return {}


async def tenant_info(client: QlikClient) -> ToolPayload:
    tenant = await client.request("/tenants/me")
    license_info = await _optional(client, "/licenses/overview")

    apps, spaces = await asyncio.gather(
        _optional(client, "/items", {"resourceType": "app", "limit": 1}),
        _optional(client, "/spaces", {"limit": 1}),
    )
    users, automations = await asyncio.gather(
        _optional(client, "/users", {"limit": 1}),
        _optional(client, "/automations", {"limit": 1}),
    )
    counts = {
        "apps": apps.get("totalResults") or 0,
        "spaces": (spaces.get("meta") or {}).get("count") or 0,
        "users": users.get("totalResults") or 0,
        "automations": len(automations.get("data") or []),
    }

    capacities, features = summarize_license_parameters(license_info.get("parameters"))
    edition = next(
        ((p.get("values") or {}).get("value") for p in license_info.get("parameters") or [] if p.get("name") == "edition"),
        None,
    )
    users_used = next(
        (a.get("unitsUsed") for a in license_info.get("allotments") or [] if a.get("name") == "fullUser"),
        0,
    ) or 0

    return payload(
        f"Tenant: {tenant.get('name')}",
        "tenant",
        id=tenant.get("id"),
        name=tenant.get("name"),
        hostnames=tenant.get("hostnames"),
        region=tenant.get("region"),
        datacenter=tenant.get("datacenter"),
        status=tenant.get("status"),
        created=tenant.get("created"),
        lastUpdated=tenant.get("lastUpdated"),
        licenseNumber=license_info.get("licenseNumber"),
        licenseValid=license_info.get("valid"),
        licenseStatus=license_info.get("status"),
        product=license_info.get("product"),
        edition=edition,
        trial=license_info.get("trial"),
        counts=counts,
        capacities=capacities,
        features=features,
        usersUsed=users_used,
    )


def days_remaining(valid_to: Optional[str], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days (rounded up) until an ISO date, or None when absent or unparseable."""
    if not valid_to:
        return None
    try:
        end = datetime.fromisoformat(valid_to.replace("Z", "+00:00"))
    except ValueError:
        return None
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return math.ceil((end - now).total_seconds() / 86400)


async def license_info(client: QlikClient) -> ToolPayload:
    lic = await client.request("/licenses/overview")

    allotments = [
        {
            "name": a.get("name"),
            "displayName": {"fullUser": "Full Users", "byoidp": "BYOIDP"}.get(a.get("name"), a.get("name")),
            "usageClass": a.get("usageClass"),
            "total": "Unlimited" if a.get("units") == -1 else a.get("units"),
            "used": a.get("unitsUsed"),
            "overage": a.get("overage"),
        }
        for a in lic.get("allotments") or []
    ]

    capacities, features, limits = [], [], []
    for param in lic.get("parameters") or []:
        values = param.get("values") or {}
        item = {
            "name": param.get("name"),
            "title": values.get("title") or param.get("name"),
            "value": values.get("quantity") or values.get("value"),
            "unit": values.get("unit"),
            "scope": values.get("scope"),
            "toggle": values.get("toggle"),
            "unlimited": values.get("unlimited"),
            "periodType": values.get("periodType"),
            "visible": values.get("visible"),
        }
        if values.get("toggle") is True:
            features.append({"name": item["title"], "enabled": True})
        elif values.get("visible") is True or values.get("periodType"):
            capacities.append(item)
        elif values.get("quantity"):
            limits.append(item)

    valid_range = (lic.get("valid") or "").split("/")
    valid_from = valid_range[0] or None
    valid_to = valid_range[1] if len(valid_range) > 1 else None

    return payload(
        "License info retrieved",
        "license",
        licenseNumber=lic.get("licenseNumber"),
        product=lic.get("product"),
        status=lic.get("status"),
        trial=lic.get("trial"),
        valid=lic.get("valid"),
        validFrom=valid_from,
        validTo=valid_to,
        daysRemaining=days_remaining(valid_to),
        changeTime=lic.get("changeTime"),
        allotments=allotments,
        capacities=capacities,
        features=features,
        limits=limits,
    )


async def health_check(client: QlikClient) -> ToolPayload:
    """Report whether the tenant answers with the configured key; never raises for API errors."""
    try:
        user = await client.request("/users/me")
    except Exception as e:
        logger.warning(f"health check failed | error:{e}")
        return payload("Connection Error", "health", status="unhealthy", error=str(e))

    return payload(
        "Connected",
        "health",
        status="healthy",
        tenant=client.config.base_url,
        user=user.get("name") or user.get("email"),
    )


async def list_data_connections(client: QlikClient) -> ToolPayload:
    """First page (100) of tenant-level data connections."""
    result = await client.request("/data-connections", params={"limit": 100})
    connections = [
        {
            "id": c.get("id"),
            "name": c.get("name") or c.get("qName"),
            "type": c.get("type") or c.get("qType"),
            "spaceId": c.get("spaceId"),
            "createdAt": c.get("createdAt"),
            "updatedAt": c.get("updatedAt"),
        }
        for c in result.get("data") or []
    ]
    summary = f"Found {len(connections)} data connections" if connections else "No data connections found"
    return payload(summary, "data-connections", connections=connections)


async def data_connection_details(client: QlikClient, connection_id: str) -> ToolPayload:
    connection = await client.request(f"/data-connections/{connection_id}")
    name = connection.get("name") or connection.get("qName")
    return payload(f"Data connection: {name}", "data-connection-detail", **connection)
