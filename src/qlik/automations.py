"""
Automations and their runs.
"""

from typing import Optional

from .client import QlikClient
from .pagination import AUTOMATION_RUNS_CEILING, AUTOMATIONS_CEILING
from .results import ToolPayload, payload


async def list_automations(client: QlikClient, filter_expression: Optional[str] = None) -> ToolPayload:
    automations = await client.paginate("/automations", {"filter": filter_expression}, hard_ceiling=AUTOMATIONS_CEILING)
    mapped = [
        {
            "id": a.get("id"),
            "name": a.get("name"),
            "state": a.get("state"),
            "lastRunStatus": a.get("lastRunStatus"),
            "lastRunTime": a.get("lastRunTime"),
            "runMode": a.get("runMode"),
            "ownerId": a.get("ownerId"),
        }
        for a in automations
    ]
    return payload(f"Found {len(mapped)} automations", "automations", automations=mapped)


async def automation_details(client: QlikClient, automation_id: str) -> ToolPayload:
    automation = await client.request(f"/automations/{automation_id}")
    return payload(f"Automation: {automation.get('name')}", "automation-detail", **automation)


async def run_automation(client: QlikClient, automation_id: str) -> ToolPayload:
    result = await client.request(f"/automations/{automation_id}/actions/run", method="POST")
    return payload("Automation started", "automation-run", runId=result.get("id"), automationId=automation_id)


async def automation_runs(client: QlikClient, automation_id: str) -> ToolPayload:
    runs = await client.paginate(
        f"/automations/{automation_id}/runs",
        {"sort": "-startTime"},
        hard_ceiling=AUTOMATION_RUNS_CEILING,
    )
    return payload(f"Found {len(runs)} runs", "automation-runs", runs=runs, automationId=automation_id)
