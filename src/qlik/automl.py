"""
AutoML experiments and deployments.
"""

from typing import Any, Dict, Optional

from .client import QlikClient
from .pagination import DEPLOYMENTS_CEILING, EXPERIMENTS_CEILING
from .results import ToolPayload, payload


def _attributes(entry: Dict[str, Any]) -> Dict[str, Any]:
    return entry.get("attributes") or entry


async def list_experiments(client: QlikClient, space_id: Optional[str] = None) -> ToolPayload:
    experiments = await client.paginate("/ml/experiments", {"spaceId": space_id}, hard_ceiling=EXPERIMENTS_CEILING)
    mapped = []
    for e in experiments:
        attrs = _attributes(e)
        mapped.append({
            "id": e.get("id") or attrs.get("id"),
            "name": attrs.get("name") or e.get("name") or "Unnamed",
            "status": attrs.get("status") or e.get("status"),
            "targetFeature": attrs.get("targetFeature") or e.get("targetFeature"),
            "createdAt": attrs.get("createdAt") or e.get("createdAt"),
            "algorithm": attrs.get("algorithm") or e.get("algorithm"),
        })
    return payload(f"Found {len(mapped)} experiments", "experiments", experiments=mapped)


async def experiment_details(client: QlikClient, experiment_id: str) -> ToolPayload:
    experiment = await client.request(f"/ml/experiments/{experiment_id}")
    name = experiment.get("name") or _attributes(experiment).get("name")
    return payload(f"Experiment: {name}", "experiment-detail", **experiment)


async def list_deployments(client: QlikClient, space_id: Optional[str] = None) -> ToolPayload:
    deployments = await client.paginate("/ml/deployments", {"spaceId": space_id}, hard_ceiling=DEPLOYMENTS_CEILING)
    mapped = []
    for d in deployments:
        attrs = _attributes(d)
        mapped.append({
            "id": d.get("id") or attrs.get("id"),
            "name": attrs.get("name") or d.get("name") or "Unnamed",
            "status": attrs.get("status") or d.get("status"),
            "createdAt": attrs.get("createdAt") or d.get("createdAt"),
        })
    return payload(f"Found {len(mapped)} deployments", "deployments", deployments=mapped)


async def deployment_details(client: QlikClient, deployment_id: str) -> ToolPayload:
    deployment = await client.request(f"/ml/deployments/{deployment_id}")
    name = deployment.get("name") or _attributes(deployment).get("name")
    return payload(f"Deployment: {name}", "deployment-detail", **deployment)
