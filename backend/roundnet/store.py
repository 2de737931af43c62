from __future__ import annotations

from collections import defaultdict
import json
import logging
from typing import Any, Dict, Mapping

import redis.asyncio as redis

from .config import REDIS_URL

logger = logging.getLogger(__name__)


def channel_key(channel: int) -> str:
    return f"match-{channel}"


def _unflatten(fields: Mapping[str, str]) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for field, raw in fields.items():
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring field %s: stored value is not JSON: %r", field, raw)
            continue
        parts = [p for p in field.split("/") if p]
        if not parts:
            continue
        node = data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = value
    return data


class MatchStore:
    """Channel snapshots kept in one redis hash per channel.

    Hash fields are slash paths below the channel (``score/set_1/team_a/score``)
    holding JSON values.
    """

    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    async def read(self, channel: int) -> Dict[str, Any]:
        fields = await self.client.hgetall(channel_key(channel))
        return _unflatten(fields)

    async def write(self, path_values: Mapping[str, Any]) -> None:
        """Persist ``{"/match-{channel}/a/b": value}``; one HSET per channel."""
        by_key: Dict[str, Dict[str, str]] = defaultdict(dict)
        for path, value in path_values.items():
            key, _, field = path.lstrip("/").partition("/")
            if not key.startswith("match-") or not field:
                raise ValueError(f"invalid store path: {path!r}")
            by_key[key][field] = json.dumps(value)
        for key, mapping in by_key.items():
            await self.client.hset(key, mapping=mapping)


redis_client = redis.from_url(REDIS_URL, decode_responses=True)
match_store = MatchStore(redis_client)


def get_store() -> MatchStore:
    return match_store
