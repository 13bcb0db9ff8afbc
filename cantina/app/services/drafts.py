"""Short-lived booking drafts kept in Redis.

A draft carries the checkout state (table, night, bottles, customer details)
between steps. It lives under ``draft:<token>`` and expires on its own; every
update refreshes the TTL.
"""
import json
import logging
import secrets
from datetime import datetime, timezone

import redis.asyncio as redis

from cantina.app.core.config import settings
from cantina.app.services.errors import DraftNotFoundError


logger = logging.getLogger(__name__)

DRAFT_PREFIX = "draft:"


def _draft_key(token: str) -> str:
    return f"{DRAFT_PREFIX}{token}"


def new_token() -> str:
    return secrets.token_urlsafe(16)


async def create_draft(client: redis.Redis, data: dict) -> tuple[str, dict]:
    token = new_token()
    draft = {**data, "updatedAt": datetime.now(timezone.utc).isoformat()}
    await client.set(_draft_key(token), json.dumps(draft), ex=settings.DRAFT_TTL_SECONDS, nx=True)
    logger.debug(f"Booking draft {token} created")
    return token, draft


async def load_draft(client: redis.Redis, token: str) -> dict:
    raw = await client.get(_draft_key(token))
    if raw is None:
        raise DraftNotFoundError(token)
    return json.loads(raw)


async def update_draft(client: redis.Redis, token: str, changes: dict) -> dict:
    """Merge ``changes`` into the stored draft; keys absent from ``changes`` are kept."""
    draft = await load_draft(client, token)
    draft.update(changes)
    draft["updatedAt"] = datetime.now(timezone.utc).isoformat()
    stored = await client.set(_draft_key(token), json.dumps(draft), ex=settings.DRAFT_TTL_SECONDS, xx=True)
    if not stored:
        raise DraftNotFoundError(token)
    return draft


async def delete_draft(client: redis.Redis, token: str) -> bool:
    return bool(await client.delete(_draft_key(token)))


async def draft_ttl(client: redis.Redis, token: str) -> int:
    return max(0, await client.ttl(_draft_key(token)))
