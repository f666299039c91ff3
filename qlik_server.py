#!/usr/bin/env python3
"""
Qlik MCP Server
A Model Context Protocol server that exposes Qlik Cloud apps, spaces, data,
automations, alerts, assistants and lineage, using organized modules for
better maintainability and reusability.
"""

import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

# Initialize OpenTelemetry instrumentation early
from src.telemetry import initialize_telemetry, initialize_metrics
from src.telemetry.decorators import trace_mcp_tool
telemetry_enabled = initialize_telemetry()

# Initialize metrics if telemetry is enabled
if telemetry_enabled:
    metrics_enabled = initialize_metrics()
else:
    metrics_enabled = False

from fastmcp.tools.tool import ToolResult

# Import organized Qlik modules
from src.qlik import QlikClient, load_qlik_config
from src.qlik import (
    alerts,
    answers,
    app_objects,
    apps_builder,
    automations,
    automl,
    datasets,
    glossary,
    governance,
    insights,
    items,
    lineage as lineage_tools,
    reloads,
    selections as selection_tools,
    spaces,
    users,
)

from src.auth import READ_SCOPES, WRITE_SCOPES, create_authenticated_mcp, requires_scopes, validate_auth_configuration

# Import standardized logging
from src.logging import log_tool_call, session_logger

# Create FastMCP instance with authentication
mcp = create_authenticated_mcp(server_name="qlik-mcp")

config = load_qlik_config()
qlik = QlikClient(config)

config_error = config.validate()
if config_error:
    session_logger.warning(f"qlik not configured | {config_error}")
else:
    session_logger.info(f"qlik configured | tenant:{config.base_url}")


# ==================== CATALOG ====================

@mcp.tool(name="search")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="search")
async def search(query: Optional[str] = None, types: Optional[List[str]] = None,
                 space_id: Optional[str] = None, sort: str = "-updatedAt") -> ToolResult:
    """
    Search Qlik Cloud content: apps, datasets, automations and other items.

    Args:
        query: Free text matched against name, description and tags
        types: Resource types to include, e.g. ["app", "dataset"]; omit or use ["all"] for everything
        space_id: Only search this space
        sort: Sort expression, "-updatedAt" by default

    Use the exact "id"/"resourceId" from the results in follow-up calls.
    """
    log_tool_call("search", query=query, types=types, space_id=space_id)
    return (await items.search(qlik, query, types, space_id, sort)).to_tool_result()


@mcp.tool(name="app_details")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="app_details")
async def app_details(app_id: str) -> ToolResult:
    """
    Get details of an app: owner, space, reload time and usage.

    Args:
        app_id: App id (resourceId from search results)
    """
    log_tool_call("app_details", app_id=app_id)
    return (await items.app_details(qlik, app_id)).to_tool_result()


@mcp.tool(name="spaces")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="spaces")
async def list_spaces(query: Optional[str] = None, space_type: Optional[str] = None) -> ToolResult:
    """
    List spaces in the tenant.

    Args:
        query: Filter spaces by name
        space_type: "shared", "managed" or "data"
    """
    log_tool_call("spaces", query=query, space_type=space_type)
    return (await spaces.list_spaces(qlik, query, space_type)).to_tool_result()


@mcp.tool(name="space_details")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="space_details")
async def space_details(space_id: str) -> ToolResult:
    """
    Get a space and the items it contains.

    Args:
        space_id: Space id from the spaces tool
    """
    log_tool_call("space_details", space_id=space_id)
    return (await spaces.space_details(qlik, space_id)).to_tool_result()


# ==================== USERS & GOVERNANCE ====================

@mcp.tool(name="users")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="users")
async def list_users(query: Optional[str] = None) -> ToolResult:
    """
    List users, optionally filtered by name or email.

    Args:
        query: Text contained in the user's name or email
    """
    log_tool_call("users", query=query)
    return (await users.list_users(qlik, query)).to_tool_result()


@mcp.tool(name="user")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="user")
async def user(user_id: str) -> ToolResult:
    """
    Get a user's profile, roles and status.

    Args:
        user_id: User id from the users tool
    """
    log_tool_call("user", user_id=user_id)
    return (await users.user_details(qlik, user_id)).to_tool_result()


@mcp.tool(name="tenant")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="tenant")
async def tenant() -> ToolResult:
    """Get tenant information with counts of users, spaces, apps and automations."""
    log_tool_call("tenant")
    return (await governance.tenant_info(qlik)).to_tool_result()


@mcp.tool(name="license")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="license")
async def license_info() -> ToolResult:
    """Get license type, expiry, capacity usage and enabled features."""
    log_tool_call("license")
    return (await governance.license_info(qlik)).to_tool_result()


@mcp.tool(name="health")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="health")
async def health() -> ToolResult:
    """Check that the tenant is reachable and the API key is valid."""
    log_tool_call("health")
    return (await governance.health_check(qlik)).to_tool_result()


@mcp.tool(name="data_connections")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="data_connections")
async def data_connections() -> ToolResult:
    """List data connections defined in the tenant."""
    log_tool_call("data_connections")
    return (await governance.list_data_connections(qlik)).to_tool_result()


@mcp.tool(name="data_connection_details")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="data_connection_details")
async def data_connection_details(connection_id: str) -> ToolResult:
    """
    Get one data connection.

    Args:
        connection_id: Connection id from data_connections
    """
    log_tool_call("data_connection_details", connection_id=connection_id)
    return (await governance.data_connection_details(qlik, connection_id)).to_tool_result()


# ==================== RELOADS ====================

@mcp.tool(name="reload")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="reload")
async def reload(app_id: str, partial: bool = False) -> ToolResult:
    """
    Start a reload of an app.

    Args:
        app_id: App to reload
        partial: Run a partial reload
    """
    log_tool_call("reload", app_id=app_id, partial=partial)
    return (await reloads.trigger_reload(qlik, app_id, partial)).to_tool_result()


@mcp.tool(name="reload_status")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="reload_status")
async def reload_status(reload_id: str) -> ToolResult:
    """
    Get the status and log of a reload.

    Args:
        reload_id: Reload id returned by the reload tool
    """
    log_tool_call("reload_status", reload_id=reload_id)
    return (await reloads.reload_status(qlik, reload_id)).to_tool_result()


@mcp.tool(name="reload_cancel")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="reload_cancel")
async def reload_cancel(reload_id: str) -> ToolResult:
    """
    Cancel a running reload.

    Args:
        reload_id: Reload to cancel
    """
    log_tool_call("reload_cancel", reload_id=reload_id)
    return (await reloads.cancel_reload(qlik, reload_id)).to_tool_result()


@mcp.tool(name="reload_info")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="reload_info")
async def reload_info(app_id: str) -> ToolResult:
    """
    Get the reload history of an app.

    Args:
        app_id: App whose reloads to list
    """
    log_tool_call("reload_info", app_id=app_id)
    return (await reloads.reload_history(qlik, app_id)).to_tool_result()


# ==================== AUTOMATIONS ====================

@mcp.tool(name="automations")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="automations")
async def list_automations(filter: Optional[str] = None) -> ToolResult:
    """
    List automations.

    Args:
        filter: Filter expression, e.g. 'enabled eq true'
    """
    log_tool_call("automations", filter=filter)
    return (await automations.list_automations(qlik, filter)).to_tool_result()


@mcp.tool(name="automation")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="automation")
async def automation(automation_id: str) -> ToolResult:
    """
    Get an automation's details.

    Args:
        automation_id: Exact id from the automations results
    """
    log_tool_call("automation", automation_id=automation_id)
    return (await automations.automation_details(qlik, automation_id)).to_tool_result()


@mcp.tool(name="automation_run")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="automation_run")
async def automation_run(automation_id: str) -> ToolResult:
    """
    Run an automation now.

    Args:
        automation_id: Automation to run
    """
    log_tool_call("automation_run", automation_id=automation_id)
    return (await automations.run_automation(qlik, automation_id)).to_tool_result()


@mcp.tool(name="automation_runs")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="automation_runs")
async def automation_runs(automation_id: str) -> ToolResult:
    """
    List past runs of an automation.

    Args:
        automation_id: Automation whose runs to list
    """
    log_tool_call("automation_runs", automation_id=automation_id)
    return (await automations.automation_runs(qlik, automation_id)).to_tool_result()


# ==================== DATA ALERTS ====================

@mcp.tool(name="alerts")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="alerts")
async def list_alerts(space_id: Optional[str] = None, enabled: Optional[bool] = None) -> ToolResult:
    """
    List data alerts.

    Args:
        space_id: Only alerts in this space
        enabled: Only enabled (true) or disabled (false) alerts
    """
    log_tool_call("alerts", space_id=space_id, enabled=enabled)
    return (await alerts.list_alerts(qlik, space_id, enabled)).to_tool_result()


@mcp.tool(name="alert")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="alert")
async def alert(alert_id: str) -> ToolResult:
    """
    Get a data alert's condition, schedule and recipients.

    Args:
        alert_id: Exact id from the alerts results
    """
    log_tool_call("alert", alert_id=alert_id)
    return (await alerts.alert_details(qlik, alert_id)).to_tool_result()


@mcp.tool(name="alert_trigger")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="alert_trigger")
async def alert_trigger(alert_id: str) -> ToolResult:
    """
    Evaluate a data alert now.

    Args:
        alert_id: Alert to trigger
    """
    log_tool_call("alert_trigger", alert_id=alert_id)
    return (await alerts.trigger_alert(qlik, alert_id)).to_tool_result()


@mcp.tool(name="alert_delete")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="alert_delete")
async def alert_delete(alert_id: str) -> ToolResult:
    """
    Delete a data alert.

    Args:
        alert_id: Alert to delete
    """
    log_tool_call("alert_delete", alert_id=alert_id)
    return (await alerts.delete_alert(qlik, alert_id)).to_tool_result()


# ==================== ANSWERS ====================

@mcp.tool(name="assistants")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="assistants")
async def list_assistants(search: Optional[str] = None, space_id: Optional[str] = None) -> ToolResult:
    """
    List Qlik Answers assistants.

    Args:
        search: Filter assistants by name
        space_id: Only assistants in this space
    """
    log_tool_call("assistants", search=search, space_id=space_id)
    return (await answers.list_assistants(qlik, search, space_id)).to_tool_result()


@mcp.tool(name="assistant")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="assistant")
async def assistant(assistant_id: str) -> ToolResult:
    """
    Get an assistant's details.

    Args:
        assistant_id: Exact id from the assistants results
    """
    log_tool_call("assistant", assistant_id=assistant_id)
    return (await answers.assistant_details(qlik, assistant_id)).to_tool_result()


@mcp.tool(name="ask_assistant")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="ask_assistant")
async def ask_assistant(assistant_id: str, question: str, thread_id: Optional[str] = None) -> ToolResult:
    """
    Ask a Qlik Answers assistant a question about its knowledge base.

    Args:
        assistant_id: Assistant to ask
        question: The question
        thread_id: Continue an existing conversation thread
    """
    log_tool_call("ask_assistant", assistant_id=assistant_id, thread_id=thread_id)
    return (await answers.ask_assistant(qlik, assistant_id, question, thread_id)).to_tool_result()


# ==================== INSIGHT ADVISOR ====================

@mcp.tool(name="insight")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="insight")
async def insight(text: str, app_id: str, chart_type: Optional[str] = None, render_image: bool = False) -> ToolResult:
    """
    Ask a natural language question about an app's data and get a chart with real data.

    Examples: "show me sales trend", "revenue by region", "top 10 customers as pie chart".

    Args:
        text: Natural language question
        app_id: App to analyze
        chart_type: Chart type the user explicitly asked for (pie, bar, line, donut, area, treemap, scatter, table)
        render_image: Also return the chart as a JPEG image

    After showing the chart, give a brief insight (1-2 sentences) about what the
    data reveals: top performers, trends, outliers.
    """
    log_tool_call("insight", app_id=app_id, text=text, chart_type=chart_type)
    return (await insights.insight(qlik, app_id, text, chart_type, render_image)).to_tool_result()


# ==================== AUTOML ====================

@mcp.tool(name="experiments")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="experiments")
async def experiments(space_id: Optional[str] = None) -> ToolResult:
    """
    List AutoML experiments.

    Args:
        space_id: Only experiments in this space
    """
    log_tool_call("experiments", space_id=space_id)
    return (await automl.list_experiments(qlik, space_id)).to_tool_result()


@mcp.tool(name="experiment")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="experiment")
async def experiment(experiment_id: str) -> ToolResult:
    """
    Get an AutoML experiment.

    Args:
        experiment_id: Exact id from the experiments results
    """
    log_tool_call("experiment", experiment_id=experiment_id)
    return (await automl.experiment_details(qlik, experiment_id)).to_tool_result()


@mcp.tool(name="deployments")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="deployments")
async def deployments(space_id: Optional[str] = None) -> ToolResult:
    """
    List AutoML deployments.

    Args:
        space_id: Only deployments in this space
    """
    log_tool_call("deployments", space_id=space_id)
    return (await automl.list_deployments(qlik, space_id)).to_tool_result()


@mcp.tool(name="deployment")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="deployment")
async def deployment(deployment_id: str) -> ToolResult:
    """
    Get an AutoML deployment.

    Args:
        deployment_id: Exact id from the deployments results
    """
    log_tool_call("deployment", deployment_id=deployment_id)
    return (await automl.deployment_details(qlik, deployment_id)).to_tool_result()


# ==================== LINEAGE ====================

@mcp.tool(name="lineage")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="lineage")
async def lineage(node_id: str, app_id: Optional[str] = None, direction: str = "both", levels: int = 5) -> ToolResult:
    """
    Get data lineage of an app or dataset.

    For apps pass the app id (UUID); the app's tables and data connections are returned.
    For datasets pass the dataset item id or its secureQri (starts with "qri:");
    the lineage graph is grouped into sources, processors and outputs.

    Args:
        node_id: App id, dataset item id, or dataset secureQri
        app_id: App id when viewing app lineage
        direction: "upstream", "downstream" or "both"
        levels: Number of levels to traverse
    """
    log_tool_call("lineage", app_id=app_id, node_id=node_id, direction=direction)
    return (await lineage_tools.lineage(qlik, node_id, app_id, direction, levels)).to_tool_result()


# ==================== DATASETS & DATA PRODUCTS ====================

@mcp.tool(name="dataset")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="dataset")
async def dataset(dataset_id: str) -> ToolResult:
    """
    Get a dataset's schema, size, owner and location.

    Args:
        dataset_id: Dataset id
    """
    log_tool_call("dataset", dataset_id=dataset_id)
    return (await datasets.dataset_details(qlik, dataset_id)).to_tool_result()


@mcp.tool(name="datasets")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="datasets")
async def list_datasets(space_id: Optional[str] = None) -> ToolResult:
    """
    List datasets in the catalog.

    Args:
        space_id: Only datasets in this space
    """
    log_tool_call("datasets", space_id=space_id)
    return (await datasets.list_datasets(qlik, space_id)).to_tool_result()


@mcp.tool(name="dataset_profile")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="dataset_profile")
async def dataset_profile(dataset_id: str) -> ToolResult:
    """
    Get column statistics of a dataset.

    Args:
        dataset_id: Dataset id or its catalog item id
    """
    log_tool_call("dataset_profile", dataset_id=dataset_id)
    return (await datasets.dataset_profile(qlik, dataset_id)).to_tool_result()


@mcp.tool(name="data_products")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="data_products")
async def data_products() -> ToolResult:
    """List data products."""
    log_tool_call("data_products")
    return (await datasets.list_data_products(qlik)).to_tool_result()


@mcp.tool(name="data_product_details")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="data_product_details")
async def data_product_details(product_id: str) -> ToolResult:
    """
    Get a data product and its datasets.

    Args:
        product_id: Data product id
    """
    log_tool_call("data_product_details", product_id=product_id)
    return (await datasets.data_product_details(qlik, product_id)).to_tool_result()


# ==================== SELECTIONS & DATA MODEL ====================

@mcp.tool(name="select")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="select")
async def select(app_id: str, selections: List[Dict[str, Any]]) -> ToolResult:
    """
    Apply selections to fields of an app.

    Args:
        app_id: App to apply selections to
        selections: List of {"field": name, "values": [values to select]}
    """
    log_tool_call("select", app_id=app_id, fields=[s.get("field") for s in selections])
    return (await selection_tools.select(config, app_id, selections)).to_tool_result()


@mcp.tool(name="clear_selections")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="clear_selections")
async def clear_selections(app_id: str) -> ToolResult:
    """
    Clear all selections in an app.

    Args:
        app_id: App to clear
    """
    log_tool_call("clear_selections", app_id=app_id)
    return (await selection_tools.clear_selections(config, app_id)).to_tool_result()


@mcp.tool(name="selections")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="selections")
async def current_selections(app_id: str) -> ToolResult:
    """
    Get the selections currently active in an app.

    Args:
        app_id: App to inspect
    """
    log_tool_call("selections", app_id=app_id)
    return (await selection_tools.current_selections(config, app_id)).to_tool_result()


@mcp.tool(name="fields")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="fields")
async def fields(app_id: str) -> ToolResult:
    """
    Get the tables and fields of an app's data model.

    After showing the data model, give a brief summary, e.g.
    "Data model has 5 tables, largest is Sales with 12 fields".

    Args:
        app_id: App to inspect
    """
    log_tool_call("fields", app_id=app_id)
    return (await selection_tools.fields(config, app_id)).to_tool_result()


@mcp.tool(name="field_values")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="field_values")
async def field_values(app_id: str, field_name: str, search_text: Optional[str] = None, limit: int = 100) -> ToolResult:
    """
    Get the distinct values of a field, useful before making selections.

    Args:
        app_id: App holding the field
        field_name: Field to read
        search_text: Only values matching this search
        limit: Maximum values to return
    """
    log_tool_call("field_values", app_id=app_id, field_name=field_name, search_text=search_text)
    return (await selection_tools.field_values(config, app_id, field_name, search_text, limit)).to_tool_result()


# ==================== APP OBJECTS ====================

@mcp.tool(name="list_sheets")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="list_sheets")
async def list_sheets(app_id: str) -> ToolResult:
    """
    List the sheets of an app.

    Args:
        app_id: App to inspect
    """
    log_tool_call("list_sheets", app_id=app_id)
    return (await app_objects.list_sheets(config, app_id)).to_tool_result()


@mcp.tool(name="sheet_details")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="sheet_details")
async def sheet_details(app_id: str, sheet_id: str) -> ToolResult:
    """
    Get the visualizations placed on a sheet.

    Args:
        app_id: App holding the sheet
        sheet_id: Sheet id from list_sheets
    """
    log_tool_call("sheet_details", app_id=app_id, sheet_id=sheet_id)
    return (await app_objects.sheet_details(config, app_id, sheet_id)).to_tool_result()


@mcp.tool(name="master_dimensions")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="master_dimensions")
async def master_dimensions(app_id: str) -> ToolResult:
    """
    List the master dimensions of an app.

    Args:
        app_id: App to inspect
    """
    log_tool_call("master_dimensions", app_id=app_id)
    return (await app_objects.master_dimensions(config, app_id)).to_tool_result()


@mcp.tool(name="master_measures")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="master_measures")
async def master_measures(app_id: str) -> ToolResult:
    """
    List the master measures of an app with their expressions.

    Args:
        app_id: App to inspect
    """
    log_tool_call("master_measures", app_id=app_id)
    return (await app_objects.master_measures(config, app_id)).to_tool_result()


@mcp.tool(name="bookmarks")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="bookmarks")
async def bookmarks(app_id: str) -> ToolResult:
    """
    List the bookmarks of an app.

    Args:
        app_id: App to inspect
    """
    log_tool_call("bookmarks", app_id=app_id)
    return (await app_objects.bookmarks(config, app_id)).to_tool_result()


@mcp.tool(name="apply_bookmark")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="apply_bookmark")
async def apply_bookmark(app_id: str, bookmark_id: str) -> ToolResult:
    """
    Apply a bookmark's selections.

    Args:
        app_id: App holding the bookmark
        bookmark_id: Bookmark id from bookmarks
    """
    log_tool_call("apply_bookmark", app_id=app_id, bookmark_id=bookmark_id)
    return (await app_objects.apply_bookmark(config, app_id, bookmark_id)).to_tool_result()


@mcp.tool(name="variables")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="variables")
async def variables(app_id: str) -> ToolResult:
    """
    List the variables of an app.

    Args:
        app_id: App to inspect
    """
    log_tool_call("variables", app_id=app_id)
    return (await app_objects.variables(config, app_id)).to_tool_result()


@mcp.tool(name="set_variable")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="set_variable")
async def set_variable(app_id: str, variable_name: str, value: str) -> ToolResult:
    """
    Set a variable's value.

    Args:
        app_id: App holding the variable
        variable_name: Variable name
        value: New string value
    """
    log_tool_call("set_variable", app_id=app_id, variable_name=variable_name)
    return (await app_objects.set_variable(config, app_id, variable_name, value)).to_tool_result()


@mcp.tool(name="stories")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="stories")
async def stories(app_id: str) -> ToolResult:
    """
    List the data stories of an app.

    Args:
        app_id: App to inspect
    """
    log_tool_call("stories", app_id=app_id)
    return (await app_objects.stories(config, app_id)).to_tool_result()


@mcp.tool(name="app_script")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="app_script")
async def app_script(app_id: str) -> ToolResult:
    """
    Get an app's load script.

    Args:
        app_id: App to inspect
    """
    log_tool_call("app_script", app_id=app_id)
    return (await app_objects.app_script(config, app_id)).to_tool_result()


@mcp.tool(name="app_connections")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="app_connections")
async def app_connections(app_id: str) -> ToolResult:
    """
    List the data connections an app can load from.

    Args:
        app_id: App to inspect
    """
    log_tool_call("app_connections", app_id=app_id)
    return (await app_objects.app_connections(config, app_id)).to_tool_result()


# ==================== GLOSSARIES ====================

@mcp.tool(name="glossaries")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="glossaries")
async def glossaries() -> ToolResult:
    """List business glossaries."""
    log_tool_call("glossaries")
    return (await glossary.list_glossaries(qlik)).to_tool_result()


@mcp.tool(name="glossary_details")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="glossary_details")
async def glossary_details(glossary_id: str) -> ToolResult:
    """
    Get a glossary with its terms and categories.

    Args:
        glossary_id: Glossary id from glossaries
    """
    log_tool_call("glossary_details", glossary_id=glossary_id)
    return (await glossary.glossary_details(qlik, glossary_id)).to_tool_result()


@mcp.tool(name="glossary_term")
@requires_scopes(READ_SCOPES)
@trace_mcp_tool(tool_name="glossary_term")
async def glossary_term(glossary_id: str, term_id: str) -> ToolResult:
    """
    Get one glossary term.

    Args:
        glossary_id: Glossary holding the term
        term_id: Term id
    """
    log_tool_call("glossary_term", glossary_id=glossary_id, term_id=term_id)
    return (await glossary.glossary_term(qlik, glossary_id, term_id)).to_tool_result()


@mcp.tool(name="create_glossary_term")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="create_glossary_term")
async def create_glossary_term(glossary_id: str, name: str, description: Optional[str] = None,
                               category_id: Optional[str] = None) -> ToolResult:
    """
    Add a term to a glossary.

    Args:
        glossary_id: Glossary to add to
        name: Term name
        description: Term definition
        category_id: Category to file the term under
    """
    log_tool_call("create_glossary_term", glossary_id=glossary_id, name=name)
    return (await glossary.create_glossary_term(qlik, glossary_id, name, description, category_id)).to_tool_result()


@mcp.tool(name="delete_glossary_term")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="delete_glossary_term")
async def delete_glossary_term(glossary_id: str, term_id: str) -> ToolResult:
    """
    Delete a glossary term.

    Args:
        glossary_id: Glossary holding the term
        term_id: Term to delete
    """
    log_tool_call("delete_glossary_term", glossary_id=glossary_id, term_id=term_id)
    return (await glossary.delete_glossary_term(qlik, glossary_id, term_id)).to_tool_result()


# ==================== APP GENERATION ====================

@mcp.tool(name="generate_app")
@requires_scopes(WRITE_SCOPES)
@trace_mcp_tool(tool_name="generate_app")
async def generate_app(app_name: Optional[str] = None, app_id: Optional[str] = None,
                       space_id: Optional[str] = None, load_script: Optional[str] = None,
                       reload: bool = True) -> ToolResult:
    """
    Create or update an app with a load script and reload its data. Waits for the reload to finish.

    Cloud load script format:
        FROM [lib://SPACE_NAME:DataFiles/filename.qvd] (qvd);

    Args:
        app_name: Name for a new app
        app_id: Existing app to update instead
        space_id: Space for a new app
        load_script: Load script to apply
        reload: Reload after setting the script
    """
    log_tool_call("generate_app", app_id=app_id, app_name=app_name, space_id=space_id)
    return (await apps_builder.generate_app(qlik, app_name, app_id, space_id, load_script, reload)).to_tool_result()


if __name__ == "__main__":
    import signal
    import atexit

    # Register shutdown handler for telemetry
    def shutdown_handler():
        if telemetry_enabled:
            from src.telemetry.config import shutdown_telemetry
            shutdown_telemetry()

    # Register shutdown on exit and signal
    atexit.register(shutdown_handler)
    signal.signal(signal.SIGTERM, lambda signum, frame: shutdown_handler())
    signal.signal(signal.SIGINT, lambda signum, frame: shutdown_handler())

    # Run the MCP server; stdio by default, streamable HTTP for remote clients
    transport = os.getenv("MCP_TRANSPORT", "stdio")
    if transport == "stdio":
        mcp.run(transport="stdio")
    else:
        auth_status = validate_auth_configuration()
        for warning in auth_status["warnings"]:
            session_logger.warning(f"auth | {warning}")
        mcp.run(transport=transport, host=os.getenv("MCP_HOST", "0.0.0.0"), port=int(os.getenv("MCP_PORT", "8000")))
