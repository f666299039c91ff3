"""
Datasets, dataset profiles and data products.
"""

from typing import Any, Dict, List, Optional

from src.logging import get_logger

from .client import QlikAPIError, QlikClient
from .items import search_items
from .lookups import get_space_name, get_user_name
from .pagination import DATASETS_CEILING
from .results import ToolPayload, error_payload, payload

logger = get_logger('TOOLS')

# Locations of the column list, in order of preference
_COLUMN_SOURCES = (
    ("schema", "dataFields"),
    ("schema", "fields"),
    (None, "dataFields"),
    (None, "fields"),
    ("operational", "dataFields"),
    ("operational", "fields"),
)


def _first(*values: Any) -> Any:
    return next((v for v in values if v), None)


def dataset_columns(raw: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Pick the first non-empty field list a dataset response carries."""
    for parent, key in _COLUMN_SOURCES:
        container = (raw.get(parent) or {}) if parent else raw
        columns = container.get(key)
        if columns:
            return list(columns)
    return []


async def get_dataset(client: QlikClient, dataset_id: str) -> Dict[str, Any]:
    return await client.request(f"/data-sets/{dataset_id}")


async def dataset_details(client: QlikClient, dataset_id: str) -> ToolPayload:
    raw = await get_dataset(client, dataset_id)
    op = raw.get("operational") or {}
    tech = raw.get("technicalMetadata") or raw.get("technical") or {}
    classification = (raw.get("securityClassification") or {}).get("classification")

    owner_name = await get_user_name(client, raw.get("ownerId"))
    space_name = await get_space_name(client, raw.get("spaceId"))

    return payload(
        f"Dataset: {raw.get('name')}",
        "dataset-detail",
        id=raw.get("id"),
        name=raw.get("name"),
        description=raw.get("description"),
        datasetType=_first(raw.get("type"), raw.get("datasetType"), raw.get("resourceType"), op.get("logicalType")),
        size=_first(raw.get("size"), op.get("size"), op.get("sizeBytes"), tech.get("size")),
        rowCount=_first(raw.get("rowCount"), op.get("rowCount"), op.get("recordCount"), tech.get("rowCount"),
                        op.get("noOfRows"), raw.get("recordCount")),
        columnCount=_first(raw.get("columnCount"), op.get("columnCount"), op.get("fieldCount"),
                           tech.get("columnCount"), op.get("noOfFields"), raw.get("fieldCount")),
        createdAt=_first(raw.get("createdAt"), raw.get("createdTime"), raw.get("createTime")),
        modifiedAt=_first(raw.get("modifiedAt"), raw.get("updatedAt"), raw.get("modifiedTime"),
                          raw.get("lastModifiedTime"), op.get("lastModified")),
        lastReloadTime=_first(raw.get("lastReloadTime"), op.get("lastReloadTime")),
        ownerId=raw.get("ownerId"),
        ownerName=owner_name,
        spaceId=raw.get("spaceId"),
        spaceName=space_name,
        technicalName=_first(raw.get("technicalName"), tech.get("technicalName")),
        qri=raw.get("qri"),
        secureQri=raw.get("secureQri"),
        dataStoreInfo=raw.get("dataStoreInfo"),
        connectionInfo=_first(op.get("connectionInfo"), tech.get("connectionInfo")),
        sourceInfo=op.get("sourceInfo"),
        classification=classification,
        tags=raw.get("tags") or [],
        columns=dataset_columns(raw),
    )


async def list_datasets(client: QlikClient, space_id: Optional[str] = None) -> ToolPayload:
    items = await client.paginate(
        "/items",
        {"resourceType": "dataset", "spaceId": space_id},
        hard_ceiling=DATASETS_CEILING,
    )
    mapped = [
        {
            "id": item.get("id"),
            "resourceId": item.get("resourceId"),
            "name": item.get("name"),
            "description": item.get("description") or "",
            "spaceId": item.get("spaceId"),
            "ownerId": item.get("ownerId"),
            "updatedAt": item.get("updatedAt"),
        }
        for item in items
    ]
    return payload(f"Found {len(mapped)} datasets", "datasets", datasets=mapped)


async def resolve_dataset_resource_id(client: QlikClient, id_or_item_id: str) -> str:
    """Accept either a dataset resource id or its catalog item id."""
    try:
        await get_dataset(client, id_or_item_id)
        return id_or_item_id
    except QlikAPIError:
        pass
    try:
        item = await client.request(f"/items/{id_or_item_id}")
    except QlikAPIError:
        return id_or_item_id
    return item.get("resourceId") or id_or_item_id


async def dataset_profile(client: QlikClient, dataset_id: str) -> ToolPayload:
    try:
        resource_id = await resolve_dataset_resource_id(client, dataset_id)
        logger.debug(f"dataset profile | {dataset_id} -> {resource_id}")
        profile = await client.request(f"/data-sets/{resource_id}/profiles")
    except QlikAPIError as e:
        logger.warning(f"dataset profile unavailable | dataset:{dataset_id} | status:{e.status_code}")
        return error_payload("Dataset profile not available", summary="Profile not available for this dataset")

    return payload("Dataset profile retrieved", "dataset-profile", datasetId=dataset_id, profile=profile)


async def list_data_products(client: QlikClient) -> ToolPayload:
    products = await search_items(client, types=["dataproduct"])
    mapped = [
        {
            "id": p.get("resourceId") or p.get("id"),
            "name": p.get("name"),
            "description": p.get("description"),
            "updatedAt": p.get("updatedAt"),
            "ownerId": p.get("ownerId"),
            "spaceId": p.get("spaceId"),
        }
        for p in products
    ]
    summary = f"Found {len(mapped)} data products" if mapped else "No data products found"
    return payload(summary, "data-products", products=mapped)


async def data_product_details(client: QlikClient, product_id: str) -> ToolPayload:
    try:
        product = await client.request(f"/data-products/{product_id}")
    except QlikAPIError:
        products = await search_items(client, types=["dataproduct"])
        product = next((p for p in products if product_id in (p.get("resourceId"), p.get("id"))), None)

    if not product:
        return error_payload("Data product not found", summary="Data product not found")
    return payload(f"Data product: {product.get('name')}", "data-product-detail", **product)
