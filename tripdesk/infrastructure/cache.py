"""
Redis read-through cache for the status catalog.

The catalog is read on every trip form and every status change but only
mutated by administrators, so it is cached as one JSON document.

Invalidation is generational: the document lives under
``tripdesk:catalog:<generation>`` and every committed taxonomy mutation
increments ``tripdesk:catalog:generation``.  A reader captures the
generation before it reads the database and writes under that generation,
so a fill that raced a rename lands under a key nobody reads any more.
Superseded documents simply expire with the TTL.

Redis is an optimisation, never a dependency: a failed call is logged and
the registry falls through to the database.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from tripdesk.domain.entities import (
    StatusCatalog,
    TripStatusInfo,
    TripSubStatusInfo,
)

logger = logging.getLogger(__name__)

CATALOG_KEY = "tripdesk:catalog"
GENERATION_KEY = "tripdesk:catalog:generation"


def catalog_key(generation: int) -> str:
    return f"{CATALOG_KEY}:{generation}"


class CatalogCache:
    def __init__(self, client: aioredis.Redis, ttl_seconds: int = 300):
        self.redis = client
        self.ttl = ttl_seconds

    async def generation(self) -> Optional[int]:
        """Current catalog generation, or None when Redis is unreachable."""
        try:
            raw = await self.redis.get(GENERATION_KEY)
        except RedisError as e:
            logger.warning("Catalog cache generation read failed: %s", e)
            return None
        return int(raw or 0)

    async def get(self) -> Optional[StatusCatalog]:
        generation = await self.generation()
        if generation is None:
            return None
        try:
            raw = await self.redis.get(catalog_key(generation))
        except RedisError as e:
            logger.warning("Catalog cache read failed: %s", e)
            return None
        if raw is None:
            logger.debug("Catalog cache miss (generation %d)", generation)
            return None
        data = json.loads(raw)
        return StatusCatalog(
            statuses=[TripStatusInfo(**s) for s in data["statuses"]],
            sub_statuses=[TripSubStatusInfo(**s) for s in data["sub_statuses"]],
        )

    async def set(self, catalog: StatusCatalog, generation: int) -> None:
        try:
            await self.redis.set(
                catalog_key(generation), json.dumps(asdict(catalog)), ex=self.ttl
            )
        except RedisError as e:
            logger.warning("Catalog cache write failed: %s", e)

    async def invalidate(self) -> None:
        try:
            generation = await self.redis.incr(GENERATION_KEY)
        except RedisError as e:
            logger.error("Catalog cache invalidation failed: %s", e)
            return
        logger.debug("Status catalog cache invalidated (generation %d)", generation)
