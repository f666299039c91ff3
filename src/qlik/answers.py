"""
Qlik Answers assistants.
"""

from datetime import datetime, timezone
from typing import Optional

from src.logging import get_logger

from .client import QlikClient
from .lookups import get_space_name, get_user_name
from .pagination import ASSISTANTS_CEILING
from .results import ToolPayload, payload

logger = get_logger('TOOLS')


async def list_assistants(client: QlikClient, search: Optional[str] = None, space_id: Optional[str] = None) -> ToolPayload:
    assistants = await client.paginate(
        "/assistants",
        {"search": search, "spaceId": space_id},
        hard_ceiling=ASSISTANTS_CEILING,
    )
    mapped = [
        {
            "id": a.get("id"),
            "name": a.get("name"),
            "description": a.get("description"),
            "createdAt": a.get("createdAt"),
        }
        for a in assistants
    ]
    return payload(f"Found {len(mapped)} AI assistants", "assistants", assistants=mapped)


async def assistant_details(client: QlikClient, assistant_id: str) -> ToolPayload:
    assistant = await client.request(f"/assistants/{assistant_id}")
    owner_name = await get_user_name(client, assistant.get("ownerId"))
    space_name = await get_space_name(client, assistant.get("spaceId"))

    return payload(
        f"Assistant: {assistant.get('name')}",
        "assistant-detail",
        **{
            **assistant,
            "ownerName": owner_name or assistant.get("ownerId"),
            "spaceName": space_name or assistant.get("spaceId"),
        },
    )


async def ask_assistant(
    client: QlikClient,
    assistant_id: str,
    question: str,
    thread_id: Optional[str] = None,
) -> ToolPayload:
    """
    Ask an assistant a question, opening a new thread when none is given.

    Returns:
        Payload of type "assistant-answer"; the summary carries the answer and
        its sources as plain text
    """
    if not thread_id:
        thread_name = f"Conversation: {datetime.now(timezone.utc).isoformat()}"
        thread = await client.request(
            f"/assistants/{assistant_id}/threads",
            method="POST",
            json_data={"name": thread_name},
        )
        thread_id = thread.get("id")
        logger.info(f"assistant thread created | assistant:{assistant_id} | thread:{thread_id}")

    response = await client.request(
        f"/assistants/{assistant_id}/threads/{thread_id}/actions/invoke",
        method="POST",
        json_data={"input": {"prompt": question, "promptType": "thread", "includeText": True}},
    )

    answer = response.get("output")
    sources = response.get("sources") or []
    text = answer or "No answer received"
    if sources:
        source_lines = "\n".join(
            f"- {s.get('name') or s}" if isinstance(s, dict) else f"- {s}" for s in sources
        )
        text = f"{text}\n\nSources:\n{source_lines}"

    return payload(
        text,
        "assistant-answer",
        answer=answer,
        threadId=thread_id,
        sources=sources,
        question=question,
    )
