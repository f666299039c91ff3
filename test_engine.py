#!/usr/bin/env python3
"""
Tests for the engine JSON-RPC session and the tools built on it.
"""

import pytest

from conftest import FakeEngine
from src.qlik import EngineError, EngineSession, QlikConfig, QlikNotConfiguredError, fetch_chart_data, open_app
from src.qlik import app_objects, selections


APP_ID = "3b1c1e8a-8f1e-4c4e-9a55-0f5a1c2b3d4e"


async def test_session_connects_with_bearer_and_closes(qlik_config, engine):
    async with open_app(qlik_config, APP_ID, connector=engine.connect) as doc:
        assert doc.handle == 1
        assert doc.type == "Doc"

    url, kwargs = engine.connections[0]
    assert url == f"wss://tenant.example.qlikcloud.com/app/{APP_ID}"
    assert kwargs["additional_headers"] == {"Authorization": "Bearer test-key"}
    assert engine.calls == [("OpenDoc", -1, [APP_ID])]
    assert engine.closed == 1


async def test_rpc_error_raises_engine_error(qlik_config):
    engine = FakeEngine({"GetScript": {"error": {"code": 1001, "message": "Access denied", "parameter": "script"}}})

    async with open_app(qlik_config, APP_ID, connector=engine.connect) as doc:
        with pytest.raises(EngineError) as excinfo:
            await doc.call("GetScript")

    assert excinfo.value.code == 1001
    assert excinfo.value.method == "GetScript"
    assert str(excinfo.value) == "Access denied: script"
    assert engine.closed == 1


async def test_missing_object_handle_raises(qlik_config):
    engine = FakeEngine({"GetObject": {"qReturn": {"qType": "GenericObject", "qHandle": None}}})

    async with open_app(qlik_config, APP_ID, connector=engine.connect) as doc:
        with pytest.raises(EngineError, match="GetObject returned no object"):
            await doc.get_object_handle("GetObject", "nope")


async def test_unconfigured_session_does_not_connect(engine):
    with pytest.raises(QlikNotConfiguredError):
        async with EngineSession(QlikConfig("", ""), APP_ID, connector=engine.connect):
            pass
    assert engine.connections == []


async def test_call_on_closed_session_raises(qlik_config, engine):
    session = EngineSession(qlik_config, APP_ID, connector=engine.connect)

    with pytest.raises(EngineError, match="not open"):
        await session.call(-1, "EngineVersion")


def hypercube_engine(rows, measures=("Sales",), size=None):
    matrix = [[{"qText": f"r{i}"}, {"qText": str(i), "qNum": i}] for i in range(rows)]

    def layout(handle, params):
        if handle == 2:
            return {"qLayout": {"qHyperCube": {
                "qSize": size or {"qcx": 2, "qcy": rows},
                "qMeasureInfo": [{"qFallbackTitle": m} for m in measures],
                "qDimensionInfo": [{"qFallbackTitle": "Region"}],
            }}}
        return {"qLayout": {}}

    return FakeEngine({
        "GetLayout": layout,
        "GetHyperCubeData": {"qDataPages": [{"qMatrix": matrix}]},
        "DestroySessionObject": {"qSuccess": True},
    })


async def test_fetch_chart_data(qlik_config):
    engine = hypercube_engine(3)
    definition = {
        "qDimensions": [{"qDef": {"qFieldDefs": ["Region"]}}, {"qDef": {"qFieldDefs": ["Country"]}}],
        "qMeasures": [{"qDef": {"qDef": "Sum(Sales)"}}],
    }

    data = await fetch_chart_data(qlik_config, APP_ID, definition, "barchart", connector=engine.connect)

    assert len(data.matrix) == 3
    assert data.measure_names == ["Sales"]
    assert data.headers == ["Region", "Sales"]
    assert data.total_rows == 3
    assert not data.is_table

    created = next(params[0] for method, _, params in engine.calls if method == "CreateSessionObject")
    assert created["qInfo"]["qType"] == "temp-hypercube"
    assert len(created["qHyperCubeDef"]["qDimensions"]) == 1

    page_request = next(params for method, _, params in engine.calls if method == "GetHyperCubeData")
    assert page_request == ["/qHyperCubeDef", [{"qTop": 0, "qLeft": 0, "qWidth": 2, "qHeight": 3}]]
    assert ("DestroySessionObject", 1, ["temp-hypercube-2"]) in engine.calls


async def test_fetch_chart_data_caps_rows(qlik_config):
    engine = hypercube_engine(2, size={"qcx": 2, "qcy": 5000})

    data = await fetch_chart_data(qlik_config, APP_ID, {"qMeasures": [{}]}, "table", connector=engine.connect)

    page_request = next(params for method, _, params in engine.calls if method == "GetHyperCubeData")
    assert page_request[1][0]["qHeight"] == 1000
    assert data.total_rows == 5000
    assert data.is_table


async def test_fetch_chart_data_without_definition(qlik_config, engine):
    with pytest.raises(ValueError):
        await fetch_chart_data(qlik_config, APP_ID, {}, connector=engine.connect)
    assert engine.connections == []


async def test_fields_summarizes_data_model(qlik_config):
    engine = FakeEngine({"GetTablesAndKeys": {"qtr": [
        {"qName": "Orders", "qNoOfRows": 100, "qFields": [
            {"qName": "OrderID", "qKeyType": "PRIMARY_KEY"}, {"qName": "Amount"}, {"qName": "CustomerID"},
        ]},
        {"qName": "Customers", "qFields": [{"qName": "CustomerID"}]},
    ]}})

    result = await selections.fields(qlik_config, APP_ID, connector=engine.connect)

    assert result.type == "app-fields"
    assert result.structured["totalFields"] == 4
    assert result.summary == "Data model: 2 tables, 4 total fields, largest table: Orders (3 fields)"


async def test_select_matches_values_case_insensitively(qlik_config):
    def layout(handle, params):
        return {"qLayout": {"qListObject": {"qDataPages": [{"qMatrix": [
            [{"qText": "Sweden", "qElemNumber": 0}],
            [{"qText": "Norway", "qElemNumber": 1}],
            [{"qText": "Denmark", "qElemNumber": 2}],
        ]}]}}}

    engine = FakeEngine({"GetLayout": layout})
    requested = [
        {"field": "Country", "values": ["sweden", "DENMARK", "Finland"]},
        {"field": "Year", "values": []},
    ]

    result = await selections.select(qlik_config, APP_ID, requested, connector=engine.connect)

    assert result.type == "action-success"
    country = result.structured["selections"][0]
    assert country["selectedCount"] == 2
    assert country["foundValues"] == ["Sweden", "Denmark"]
    assert len(result.structured["selections"]) == 1

    methods = engine.methods()
    assert methods.index("Clear") < methods.index("SelectListObjectValues")
    select_call = next(c for c in engine.calls if c[0] == "SelectListObjectValues")
    assert select_call[2] == ["/qListObjectDef", [0, 2], False]
    # One session for all fields
    assert len(engine.connections) == 1


async def test_field_values_with_search(qlik_config):
    engine = FakeEngine({"GetLayout": {"qLayout": {"qListObject": {
        "qDimensionInfo": {"qCardinal": 42},
        "qDataPages": [{"qMatrix": [[{"qText": "North", "qNum": "NaN", "qState": "O", "qElemNumber": 3}]]}],
    }}}})

    result = await selections.field_values(qlik_config, APP_ID, "Region", "nor", 10, connector=engine.connect)

    assert ("SearchListObjectFor", 2, ["/qListObjectDef", "nor"]) in engine.calls
    assert result.structured["totalCount"] == 42
    assert result.structured["values"][0]["text"] == "North"
    assert result.summary == 'Field "Region" has 42 unique values (filtered by "nor"). Sample: North'


async def test_sheet_details_falls_back_to_object_name(qlik_config):
    def get_object(handle, params):
        if params[0] == "broken":
            return {"error": {"code": 2, "message": "Object not found"}}
        handle = {"sheet-1": 10, "chart-a": 11}[params[0]]
        return {"qReturn": {"qHandle": handle, "qType": "GenericObject", "qGenericId": params[0]}}

    def layout(handle, params):
        if handle == 10:
            return {"qLayout": {"qMeta": {"title": "Overview"}, "cells": [
                {"name": "chart-a", "type": "barchart", "col": 0, "row": 0},
                {"name": "broken", "type": "kpi", "col": 12, "row": 0},
            ]}}
        return {"qLayout": {"title": "Sales by region"}}

    engine = FakeEngine({"GetObject": get_object, "GetLayout": layout})

    result = await app_objects.sheet_details(qlik_config, APP_ID, "sheet-1", connector=engine.connect)

    objects = result.structured["objects"]
    assert [o["title"] for o in objects] == ["Sales by region", "broken"]
    assert result.summary == 'Sheet "Overview" has 2 objects: 1 barchart, 1 kpi'


async def test_list_sheets(qlik_config):
    engine = FakeEngine({"GetLayout": {"qLayout": {"qAppObjectList": {"qItems": [
        {"qInfo": {"qId": "s1"}, "qData": {"title": "Overview", "rank": 1}},
        {"qInfo": {"qId": "s2"}, "qMeta": {"title": "Details"}, "qData": {}},
    ]}}}})

    result = await app_objects.list_sheets(qlik_config, APP_ID, connector=engine.connect)

    assert [s["id"] for s in result.structured["sheets"]] == ["s1", "s2"]
    assert result.summary == "Found 2 sheets: Overview, Details"
    created = next(params[0] for method, _, params in engine.calls if method == "CreateSessionObject")
    assert created["qAppObjectListDef"]["qType"] == "sheet"


async def test_set_variable(qlik_config, engine):
    result = await app_objects.set_variable(qlik_config, APP_ID, "vYear", "2024", connector=engine.connect)

    assert engine.methods() == ["OpenDoc", "GetVariableByName", "SetStringValue"]
    assert engine.calls[-1][2] == ["2024"]
    assert result.structured["variableName"] == "vYear"


async def test_app_script_counts_lines(qlik_config):
    engine = FakeEngine({"GetScript": {"qScript": "LOAD *\nFROM [lib://x.qvd] (qvd);"}})

    result = await app_objects.app_script(qlik_config, APP_ID, connector=engine.connect)

    assert result.type == "app-script"
    assert result.structured["lineCount"] == 2
