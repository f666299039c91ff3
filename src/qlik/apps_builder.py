"""
App generation: create an app, set its load script and reload it.
"""

import asyncio
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from src.logging import get_logger

from .client import QlikAPIError, QlikClient
from .results import ToolPayload, error_payload, payload

logger = get_logger('TOOLS')

RELOAD_POLL_INTERVAL = 2.0
RELOAD_POLL_ATTEMPTS = 90
TERMINAL_RELOAD_STATUSES = ("SUCCEEDED", "FAILED", "CANCELED")


@dataclass
class Step:
    name: str
    status: str = "pending"
    duration: Optional[int] = None
    detail: Optional[str] = None


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


async def wait_for_reload(client: QlikClient, reload_id: str, status: Optional[str],
                          poll_interval: float = RELOAD_POLL_INTERVAL,
                          max_attempts: int = RELOAD_POLL_ATTEMPTS) -> Optional[str]:
    """Poll a reload until it reaches a terminal status, the attempts run out or a status check fails."""
    attempts = 0
    while status not in TERMINAL_RELOAD_STATUSES and attempts < max_attempts:
        await asyncio.sleep(poll_interval)
        try:
            status = (await client.request(f"/reloads/{reload_id}")).get("status")
        except (QlikAPIError, httpx.HTTPError) as e:
            logger.warning(f"reload status check failed | reload:{reload_id} | {e}")
            break
        attempts += 1
        logger.debug(f"reload polled | reload:{reload_id} | status:{status} | attempt:{attempts}")
    return status


async def generate_app(
    client: QlikClient,
    app_name: Optional[str] = None,
    app_id: Optional[str] = None,
    space_id: Optional[str] = None,
    load_script: Optional[str] = None,
    reload: bool = True,
    poll_interval: float = RELOAD_POLL_INTERVAL,
) -> ToolPayload:
    """
    Create (or reuse) an app, apply a load script and reload it.

    The result lists the three steps with their status, duration in
    milliseconds and a short detail. Overall status is "completed",
    "completed_with_errors" when the reload did not succeed, or "failed" when
    a request raised; the step that was pending at that point is marked as
    the error.
    """
    if not app_id and not app_name:
        return error_payload("appName or appId required", summary="Error: Provide appName or appId")

    start = time.monotonic()
    steps: List[Step] = [Step("Create App"), Step("Set Script"), Step("Load Data")]
    app_link = ""
    overall = "completed"
    error_message = ""

    try:
        step_start = time.monotonic()
        if not app_id:
            attributes: Dict[str, Any] = {"name": app_name}
            if space_id:
                attributes["spaceId"] = space_id
            logger.info(f"creating app | name:{app_name} | space:{space_id or 'personal'}")
            created = await client.request("/apps", method="POST", json_data={"attributes": attributes})
            app_id = (created.get("attributes") or {}).get("id") or created.get("id")
            steps[0].detail = "Created"
        else:
            steps[0].detail = "Using existing"
        steps[0].status = "success"
        steps[0].duration = _elapsed_ms(step_start)
        app_link = f"{client.config.base_url}/sense/app/{app_id}"

        step_start = time.monotonic()
        if load_script:
            await client.request(
                f"/apps/{app_id}/scripts",
                method="POST",
                json_data={
                    "script": load_script,
                    "versionMessage": f"Updated via MCP at {datetime.now(timezone.utc).isoformat()}",
                },
            )
            steps[1].detail = "Applied"
        else:
            steps[1].detail = "Skipped"
        steps[1].status = "success"
        steps[1].duration = _elapsed_ms(step_start)

        step_start = time.monotonic()
        if reload and load_script:
            started = await client.request("/reloads", method="POST", json_data={"appId": app_id})
            final_status = await wait_for_reload(client, started.get("id"), started.get("status"), poll_interval)
            steps[2].duration = _elapsed_ms(step_start)
            if final_status == "SUCCEEDED":
                steps[2].status = "success"
                steps[2].detail = "Loaded"
            else:
                steps[2].status = "error"
                steps[2].detail = final_status or "Failed"
                overall = "completed_with_errors"
        else:
            steps[2].status = "success"
            steps[2].detail = "Skipped"
            steps[2].duration = 0

    except (QlikAPIError, httpx.HTTPError) as e:
        logger.error(f"app generation failed | app:{app_id or app_name} | {e}")
        pending = next((s for s in steps if s.status == "pending"), None)
        if pending is not None:
            pending.status = "error"
            pending.detail = str(e)[:50] or "Error"
        overall = "failed"
        error_message = str(e)

    logger.info(f"app generation finished | app:{app_id} | status:{overall}")
    summary = f"App generated: {app_link}" if overall == "completed" else f"App generation {overall}"
    return payload(
        summary,
        "app-generated",
        status=overall,
        appId=app_id,
        appName=app_name or app_id,
        appLink=app_link,
        steps=[asdict(s) for s in steps],
        totalDuration=_elapsed_ms(start),
        error=error_message or None,
    )
