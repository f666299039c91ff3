#!/usr/bin/env python3
"""
Tests for the REST-backed tools: search, governance, app generation, lineage
and Insight Advisor.
"""

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from conftest import BASE_URL, FakeEngine, make_client

from src.qlik import apps_builder, governance, insights, items, reloads
from src.qlik import lineage as lineage_tools


APP_ID = "3b1c1e8a-8f1e-4c4e-9a55-0f5a1c2b3d4e"


async def test_search_filters_types_and_summarizes():
    client, router = make_client({"GET /items": {"data": [
        {"resourceId": "a1", "name": "Sales", "resourceType": "app"},
        {"resourceId": "a2", "name": "Finance", "resourceType": "app"},
        {"id": "d1", "name": "orders.qvd", "resourceType": "dataset"},
    ]}})

    result = await items.search(client, "sales", ["app", "dataset"])

    params = router.requests[0].url.params
    assert params["resourceType"] == "app,dataset"
    assert params["query"] == "sales"
    assert "spaceId" not in params
    assert result.type == "apps"
    assert result.summary == "Found 3 items: 2 apps, 1 dataset"
    assert [a["id"] for a in result.structured["apps"]] == ["a1", "a2", "d1"]


async def test_search_all_types_sends_no_filter():
    client, router = make_client({"GET /items": {"data": []}})

    result = await items.search(client, None, ["all"])

    assert "resourceType" not in router.requests[0].url.params
    assert result.summary == "No results found"


async def test_app_details_tolerates_failed_lookups():
    client, _ = make_client({
        "GET /apps/a1": {"attributes": {"id": "a1", "name": "Sales", "ownerId": "u1", "spaceId": "s1"}},
        "GET /users/u1": {"name": "Ada"},
        "GET /spaces/s1": httpx.Response(403, text="forbidden"),
    })

    result = await items.app_details(client, "a1")

    assert result.structured["ownerName"] == "Ada"
    assert result.structured["spaceName"] is None


async def test_tenant_info_counts():
    client, _ = make_client({
        "GET /tenants/me": {"id": "t1", "name": "Acme"},
        "GET /licenses/overview": {"parameters": [
            {"name": "fullUser", "values": {"unlimited": True}},
            {"name": "dataAnalyticsCapacity", "values": {"quantity": 2 * 1073741824}},
            {"name": "geoanalytics", "values": {"toggle": True}},
            {"name": "edition", "values": {"value": "Premium"}},
        ]},
        "GET /items": {"totalResults": 12, "data": []},
        "GET /spaces": {"meta": {"count": 4}},
        "GET /users": {"totalResults": 30},
        "GET /automations": httpx.Response(403, text="no access"),
    })

    result = await governance.tenant_info(client)

    assert result.summary == "Tenant: Acme"
    assert result.structured["counts"] == {"apps": 12, "spaces": 4, "users": 30, "automations": 0}
    assert result.structured["capacities"] == {"users": "Unlimited", "dataCapacityGB": 2}
    assert result.structured["features"] == ["Geo Analytics"]
    assert result.structured["edition"] == "Premium"


def test_days_remaining_rounds_up():
    now = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    assert governance.days_remaining("2024-01-03", now) == 2
    assert governance.days_remaining("2024-01-03T13:00:00Z", now) == 3
    assert governance.days_remaining(None, now) is None
    assert governance.days_remaining("soon", now) is None


async def test_health_check_reports_unhealthy():
    client, _ = make_client({"GET /users/me": httpx.Response(401, text="bad key")})

    result = await governance.health_check(client)

    assert result.structured["status"] == "unhealthy"
    assert "401" in result.structured["error"]


async def test_reload_status_links_app():
    client, _ = make_client({
        "GET /reloads/r1": {"id": "r1", "appId": APP_ID, "status": "SUCCEEDED", "log": "done"},
        "GET /reloads/r1/logs": httpx.Response(200, text="Reload finished"),
        "GET /items": {"data": [{"id": "item-9"}]},
    })

    result = await reloads.reload_status(client, "r1")

    assert result.summary == "Status: SUCCEEDED"
    assert result.structured["log"] == "Reload finished"
    assert result.structured["historyLink"] == f"{BASE_URL}/item/item-9/history"


async def test_reload_log_failure_is_inline():
    client, _ = make_client({"GET /reloads/r2": {"id": "r2", "status": "FAILED"}})

    result = await reloads.reload_status(client, "r2")

    assert result.structured["log"] == "Unable to fetch log: 404"
    assert result.structured["historyLink"] is None


async def test_generate_app_creates_scripts_and_reloads():
    client, router = make_client({
        "POST /apps": {"attributes": {"id": APP_ID}},
        f"POST /apps/{APP_ID}/scripts": httpx.Response(200),
        "POST /reloads": {"id": "r1", "status": "QUEUED"},
        "GET /reloads/r1": [{"status": "RELOADING"}, {"status": "SUCCEEDED"}],
    })

    result = await apps_builder.generate_app(
        client, app_name="Demo", space_id="s1", load_script="LOAD 1 AS x AUTOGENERATE 1;", poll_interval=0,
    )

    assert result.type == "app-generated"
    assert result.structured["status"] == "completed"
    assert result.structured["appLink"] == f"{BASE_URL}/sense/app/{APP_ID}"
    assert [s["status"] for s in result.structured["steps"]] == ["success", "success", "success"]
    assert [s["detail"] for s in result.structured["steps"]] == ["Created", "Applied", "Loaded"]
    assert router.paths().count("GET /reloads/r1") == 2

    created = json.loads(router.requests[0].content)
    assert created == {"attributes": {"name": "Demo", "spaceId": "s1"}}


async def test_generate_app_reports_failed_reload():
    client, _ = make_client({
        f"POST /apps/{APP_ID}/scripts": httpx.Response(200),
        "POST /reloads": {"id": "r1", "status": "FAILED"},
    })

    result = await apps_builder.generate_app(client, app_id=APP_ID, load_script="LOAD x;", poll_interval=0)

    assert result.structured["status"] == "completed_with_errors"
    assert result.structured["steps"][0]["detail"] == "Using existing"
    load_step = result.structured["steps"][2]
    assert (load_step["name"], load_step["status"], load_step["detail"]) == ("Load Data", "error", "FAILED")


async def test_generate_app_marks_failing_step():
    client, _ = make_client({
        "POST /apps": {"attributes": {"id": APP_ID}},
        f"POST /apps/{APP_ID}/scripts": httpx.Response(400, text="syntax error"),
    })

    result = await apps_builder.generate_app(client, app_name="Demo", load_script="LOAD", poll_interval=0)

    steps = result.structured["steps"]
    assert result.structured["status"] == "failed"
    assert [s["status"] for s in steps] == ["success", "error", "pending"]
    assert "400" in result.structured["error"]


async def test_generate_app_requires_name_or_id():
    client, router = make_client({})

    result = await apps_builder.generate_app(client)

    assert result.type == "error"
    assert result.structured["message"] == "appName or appId required"
    assert router.requests == []


async def test_generate_app_skips_reload_without_script():
    client, router = make_client({})

    result = await apps_builder.generate_app(client, app_id=APP_ID, poll_interval=0)

    assert result.structured["status"] == "completed"
    assert [s["detail"] for s in result.structured["steps"]] == ["Using existing", "Skipped", "Skipped"]
    assert router.requests == []


def test_lineage_params():
    assert lineage_tools.lineage_params("upstream", 3) == {"up": 3, "down": 0, "level": "resource", "collapse": "false"}
    assert lineage_tools.lineage_params("both", -1)["down"] == -1
    with pytest.raises(ValueError):
        lineage_tools.lineage_params("sideways")


async def test_dataset_lineage_groups_graph():
    qri = "qri:qdf:space://abc#orders.qvd"
    graph = {"graph": {
        "nodes": {
            "qri:db:src": {"label": "Postgres orders", "metadata": {"type": "DATASET", "subtype": "TABLE"}},
            qri: {"label": "orders.qvd", "metadata": {"type": "DATASET", "subtype": "FILE"}},
            "qri:app:sales": {"label": "Sales", "metadata": {"type": "APP"}},
        },
        "edges": [{"source": "qri:db:src", "target": qri}, {"source": qri, "target": "qri:app:sales"}],
    }}
    client, router = make_client({
        "GET /data-sets/ds1": {"id": "ds1", "secureQri": qri},
        f"GET /lineage-graphs/nodes/{qri}": graph,
    })

    result = await lineage_tools.lineage(client, "ds1", direction="upstream", levels=2)

    assert result.type == "lineage"
    assert result.summary == "Lineage: 1 sources, 1 processors, 1 outputs"
    assert result.structured["processors"][0]["kind"] == "QVD"
    assert result.structured["nodeCount"] == 3
    lineage_request = router.requests[1]
    assert "%23orders.qvd" in str(lineage_request.url.raw_path, "ascii")
    assert lineage_request.url.params["up"] == "2"
    assert lineage_request.url.params["down"] == "0"


async def test_lineage_standalone_node():
    qri = "qri:app:lonely"
    client, _ = make_client({
        f"GET /lineage-graphs/nodes/{qri}": {"graph": {"nodes": {qri: {"label": "Lonely"}}, "edges": []}},
    })

    result = await lineage_tools.lineage(client, qri)

    assert result.structured["standalone"] is True
    assert result.structured["standaloneNode"]["label"] == "Lonely"


async def test_lineage_dataset_without_secure_qri():
    client, _ = make_client({"GET /data-sets/ds1": {"id": "ds1"}})

    result = await lineage_tools.lineage(client, "ds1")

    assert result.type == "error"
    assert result.structured["message"] == "Dataset missing secureQri"


async def test_lineage_dataset_lookup_error():
    client, _ = make_client({"GET /data-sets/ds1": httpx.Response(404, text="not found")})

    result = await lineage_tools.lineage(client, "ds1")

    assert result.type == "error"
    assert "404" in result.summary


async def test_app_lineage_uses_engine():
    client, router = make_client({})
    engine = FakeEngine({
        "GetTablesAndKeys": {"qtr": [{"qName": "Orders", "qNoOfRows": 10, "qFields": [{}, {}]}]},
        "GetConnections": {"error": {"code": 5, "message": "No access"}},
    })

    result = await lineage_tools.lineage(client, APP_ID, connector=engine.connect)

    assert result.type == "app-lineage"
    assert result.structured["tables"][0]["fields"] == 2
    assert result.structured["sources"] == []
    assert router.requests == []


def recommendation(chart_type="barchart"):
    return {"recAnalyses": [{
        "chartType": chart_type,
        "options": {
            "title": "Sales by Region",
            "qHyperCubeDef": {
                "qDimensions": [{"qDef": {"qFieldDefs": ["Region"]}}],
                "qMeasures": [{"qDef": {"qDef": "Sum(Sales)"}}],
            },
        },
    }]}


def insight_engine(labels_values):
    matrix = [[{"qText": label}, {"qText": str(value), "qNum": value}] for label, value in labels_values]

    def layout(handle, params):
        return {"qLayout": {"qHyperCube": {
            "qSize": {"qcx": 2, "qcy": len(matrix)},
            "qMeasureInfo": [{"qFallbackTitle": "Sales"}],
            "qDimensionInfo": [{"qFallbackTitle": "Region"}],
        }}}

    return FakeEngine({"GetLayout": layout, "GetHyperCubeData": {"qDataPages": [{"qMatrix": matrix}]}})


async def test_insight_returns_chart_series():
    client, router = make_client({f"POST /apps/{APP_ID}/insight-analyses/actions/recommend": recommendation()})
    engine = insight_engine([("North", 600), ("South", 300), ("East", 100)])

    result = await insights.insight(client, APP_ID, "sales by region", connector=engine.connect)

    assert json.loads(router.requests[0].content) == {"text": "sales by region"}
    assert result.type == "chart"
    assert result.structured["chartType"] == "barchart"
    assert result.structured["labels"] == ["North", "South", "East"]
    assert result.structured["values"] == [600.0, 300.0, 100.0]
    assert result.structured["geometry"] == "bar"
    assert result.structured["insight"].startswith("North leads with 600")
    assert result.image is None


async def test_insight_explicit_chart_type_and_image():
    client, _ = make_client({f"POST /apps/{APP_ID}/insight-analyses/actions/recommend": recommendation()})
    engine = insight_engine([("North", 600), ("South", 300)])

    result = await insights.insight(client, APP_ID, "sales by region", "pie", render_image=True, connector=engine.connect)

    assert result.structured["chartType"] == "piechart"
    assert result.image[:2] == b"\xff\xd8"


async def test_insight_falls_back_when_engine_fails():
    client, _ = make_client({f"POST /apps/{APP_ID}/insight-analyses/actions/recommend": recommendation()})

    async def refuse(url, **kwargs):
        raise OSError("connection refused")

    result = await insights.insight(client, APP_ID, "sales by region", connector=refuse)

    assert result.type == "chart"
    assert result.structured["labels"] == [] and result.structured["values"] == []
    assert result.structured["error"] == "connection refused"
    assert result.structured["title"] == "Sales by Region"


async def test_insight_falls_back_on_handshake_timeout():
    client, _ = make_client({f"POST /apps/{APP_ID}/insight-analyses/actions/recommend": recommendation()})

    async def hang(url, **kwargs):
        raise asyncio.TimeoutError("opening handshake timed out")

    result = await insights.insight(client, APP_ID, "sales by region", connector=hang)

    assert result.type == "chart"
    assert result.structured["labels"] == [] and result.structured["values"] == []
    assert result.structured["error"] == "opening handshake timed out"


async def test_insight_without_recommendations():
    client, _ = make_client({f"POST /apps/{APP_ID}/insight-analyses/actions/recommend": {"recAnalyses": []}})

    result = await insights.insight(client, APP_ID, "what is the meaning of life")

    assert result.type == "error"
    assert result.structured["message"] == "No insights found for this question"


async def test_insight_table_request():
    client, _ = make_client({f"POST /apps/{APP_ID}/insight-analyses/actions/recommend": recommendation()})
    engine = insight_engine([("North", 600)])

    result = await insights.insight(client, APP_ID, "sales by region as a table", connector=engine.connect)

    assert result.structured["chartType"] == "table"
    assert result.structured["tableData"] == {"headers": ["Region", "Sales"], "rows": [["North", "600"]]}


def test_tool_result_carries_image():
    from src.qlik.results import ToolPayload

    tool_result = ToolPayload("Chart", {"type": "chart"}, image=b"\xff\xd8jpeg").to_tool_result()

    assert [c.type for c in tool_result.content] == ["text", "image"]
    assert tool_result.structured_content == {"type": "chart"}
