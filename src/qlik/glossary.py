"""
Business glossaries, terms and categories.
"""

import asyncio
from typing import Optional

from .client import QlikClient
from .pagination import GLOSSARIES_CEILING, GLOSSARY_TERMS_CEILING
from .results import ToolPayload, payload


def _preview(names, limit: int) -> str:
    names = list(names)
    return ", ".join(str(n) for n in names[:limit]) + ("..." if len(names) > limit else "")


async def list_glossaries(client: QlikClient) -> ToolPayload:
    glossaries = await client.paginate("/glossaries", hard_ceiling=GLOSSARIES_CEILING)
    summary = (
        f"Found {len(glossaries)} glossaries: {_preview((g.get('name') for g in glossaries), 3)}"
        if glossaries else "No glossaries found"
    )
    return payload(summary, "glossaries", glossaries=glossaries, summary=summary)


async def glossary_details(client: QlikClient, glossary_id: str) -> ToolPayload:
    glossary = await client.request(f"/glossaries/{glossary_id}")
    terms, categories = await asyncio.gather(
        client.paginate(f"/glossaries/{glossary_id}/terms", hard_ceiling=GLOSSARY_TERMS_CEILING),
        client.request(f"/glossaries/{glossary_id}/categories"),
    )
    categories = categories.get("data") or []

    summary = f"Glossary \"{glossary.get('name')}\" has {len(terms)} terms in {len(categories)} categories"
    return payload(summary, "glossary-detail",
                   **{**glossary, "terms": terms, "categories": categories, "summary": summary})


async def glossary_term(client: QlikClient, glossary_id: str, term_id: str) -> ToolPayload:
    term = await client.request(f"/glossaries/{glossary_id}/terms/{term_id}")
    return payload(f"Term: {term.get('name')}", "glossary-term", **{**term, "glossaryId": glossary_id})


async def create_glossary_term(
    client: QlikClient,
    glossary_id: str,
    name: str,
    description: Optional[str] = None,
    category_id: Optional[str] = None,
) -> ToolPayload:
    body = {"name": name, "description": description, "categoryId": category_id}
    term = await client.request(
        f"/glossaries/{glossary_id}/terms",
        method="POST",
        json_data={k: v for k, v in body.items() if v is not None},
    )
    return payload(f"Created term: {term.get('name') or name}", "glossary-term-created", **{**term, "glossaryId": glossary_id})


async def delete_glossary_term(client: QlikClient, glossary_id: str, term_id: str) -> ToolPayload:
    await client.request(f"/glossaries/{glossary_id}/terms/{term_id}", method="DELETE")
    return payload(
        "Term deleted successfully",
        "action-success",
        action="delete_glossary_term",
        glossaryId=glossary_id,
        termId=term_id,
    )
