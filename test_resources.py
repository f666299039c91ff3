#!/usr/bin/env python3
"""
Tests for the catalog resource tools: spaces, users, automations, alerts,
assistants, AutoML, datasets and glossaries.
"""

import json

import httpx

from conftest import make_client
from src.qlik import alerts, answers, automations, automl, datasets, glossary, spaces, users


async def test_list_spaces_ignores_all_type():
    client, router = make_client({"GET /spaces": {"data": [{"id": "s1", "name": "Finance", "type": "shared"}]}})

    result = await spaces.list_spaces(client, "fin", "all")

    params = router.requests[0].url.params
    assert params["name"] == "fin"
    assert "type" not in params
    assert result.structured["spaces"][0]["name"] == "Finance"


async def test_space_details_breakdown():
    client, _ = make_client({
        "GET /spaces/s1": {"id": "s1", "name": "Finance", "type": "managed"},
        "GET /items": {"data": [
            {"id": "i1", "resourceType": "app"},
            {"id": "i2", "resourceType": "app"},
            {"id": "i3"},
        ]},
    })

    result = await spaces.space_details(client, "s1")

    assert result.summary == 'managed "Finance" contains 3 items: 2 apps, 1 item'


async def test_list_users_filters_name_and_email():
    client, router = make_client({"GET /users": {"data": [{"id": "u1", "name": "Ada", "email": "ada@example.com"}]}})

    result = await users.list_users(client, "ada")

    assert router.requests[0].url.params["filter"] == 'name co "ada" or email co "ada"'
    assert result.summary == "Found 1 users"


async def test_automation_run_and_runs():
    client, router = make_client({
        "POST /automations/a1/actions/run": {"id": "run-7"},
        "GET /automations/a1/runs": {"data": [{"id": "run-7"}, {"id": "run-6"}]},
    })

    started = await automations.run_automation(client, "a1")
    runs = await automations.automation_runs(client, "a1")

    assert started.structured == {"runId": "run-7", "automationId": "a1", "type": "automation-run"}
    assert runs.summary == "Found 2 runs"
    assert router.requests[1].url.params["sort"] == "-startTime"


async def test_list_alerts_reads_tasks_key():
    client, router = make_client({"GET /data-alerts": {"tasks": [{"id": "al1", "name": "Low stock", "enabled": True}]}})

    result = await alerts.list_alerts(client, enabled=False)

    assert router.requests[0].url.params["enabled"] == "false"
    assert result.structured["alerts"][0]["name"] == "Low stock"


async def test_delete_alert():
    client, router = make_client({"DELETE /data-alerts/al1": httpx.Response(204)})

    result = await alerts.delete_alert(client, "al1")

    assert result.type == "alert-deleted"
    assert router.paths() == ["DELETE /data-alerts/al1"]


async def test_ask_assistant_opens_thread():
    client, router = make_client({
        "POST /assistants/as1/threads": {"id": "th1"},
        "POST /assistants/as1/threads/th1/actions/invoke": {
            "output": "Revenue grew 12%.",
            "sources": [{"name": "Q3 report.pdf"}, "notes.txt"],
        },
    })

    result = await answers.ask_assistant(client, "as1", "How did revenue develop?")

    assert result.structured["threadId"] == "th1"
    assert result.summary == "Revenue grew 12%.\n\nSources:\n- Q3 report.pdf\n- notes.txt"
    invoke_body = json.loads(router.requests[1].content)
    assert invoke_body["input"]["prompt"] == "How did revenue develop?"


async def test_ask_assistant_reuses_thread():
    client, router = make_client({"POST /assistants/as1/threads/th9/actions/invoke": {}})

    result = await answers.ask_assistant(client, "as1", "And costs?", "th9")

    assert len(router.requests) == 1
    assert result.summary == "No answer received"


async def test_experiments_read_attributes():
    client, _ = make_client({"GET /ml/experiments": {"data": [
        {"id": "e1", "attributes": {"name": "Churn", "status": "ready"}},
        {"id": "e2"},
    ]}})

    result = await automl.list_experiments(client)

    assert [e["name"] for e in result.structured["experiments"]] == ["Churn", "Unnamed"]


async def test_dataset_details_picks_columns():
    client, _ = make_client({"GET /data-sets/ds1": {
        "id": "ds1",
        "name": "orders.qvd",
        "operational": {"rowCount": 1200, "fieldCount": 3},
        "schema": {"dataFields": [{"name": "OrderID"}, {"name": "Amount"}]},
        "secureQri": "qri:qdf:space://s#orders.qvd",
    }})

    result = await datasets.dataset_details(client, "ds1")

    assert result.structured["rowCount"] == 1200
    assert result.structured["columnCount"] == 3
    assert [c["name"] for c in result.structured["columns"]] == ["OrderID", "Amount"]


async def test_dataset_profile_resolves_item_id():
    client, router = make_client({
        "GET /data-sets/item-1": httpx.Response(404, text="nope"),
        "GET /items/item-1": {"resourceId": "ds1"},
        "GET /data-sets/ds1/profiles": {"fields": []},
    })

    result = await datasets.dataset_profile(client, "item-1")

    assert result.type == "dataset-profile"
    assert router.paths()[-1] == "GET /data-sets/ds1/profiles"


async def test_data_product_falls_back_to_search():
    client, _ = make_client({
        "GET /data-products/dp1": httpx.Response(404, text="missing"),
        "GET /items": {"data": [{"resourceId": "dp1", "name": "Sales 360"}]},
    })

    result = await datasets.data_product_details(client, "dp1")

    assert result.summary == "Data product: Sales 360"


async def test_glossary_details_and_term_creation():
    client, router = make_client({
        "GET /glossaries/g1": {"id": "g1", "name": "Finance terms"},
        "GET /glossaries/g1/terms": {"data": [{"id": "t1"}, {"id": "t2"}]},
        "GET /glossaries/g1/categories": {"data": [{"id": "c1"}]},
        "POST /glossaries/g1/terms": {"id": "t3", "name": "ARR"},
    })

    details = await glossary.glossary_details(client, "g1")
    created = await glossary.create_glossary_term(client, "g1", "ARR", description="Annual recurring revenue")

    assert details.summary == 'Glossary "Finance terms" has 2 terms in 1 categories'
    assert created.summary == "Created term: ARR"
    body = json.loads(router.requests[-1].content)
    assert body == {"name": "ARR", "description": "Annual recurring revenue"}
