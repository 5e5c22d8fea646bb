"""MongoDB index creation."""

from __future__ import annotations

import logging

import pymongo

logger = logging.getLogger(__name__)


async def run_migrations(db, coordination_collection: str = "coordination") -> None:
    """Create indexes on startup."""
    logger.info("Running MongoDB migrations...")

    # Coordination keys expire through a TTL index; expireAfterSeconds=0
    # means "at the stored expires_at". Documents without it never expire.
    coordination = db[coordination_collection]
    await coordination.create_index(
        [("expires_at", pymongo.ASCENDING)], expireAfterSeconds=0,
    )

    # Memories indexes
    memories = db["memories"]
    await memories.create_index(
        [
            ("context_id", pymongo.ASCENDING),
            ("kind", pymongo.ASCENDING),
            ("created_at", pymongo.DESCENDING),
        ]
    )
    await memories.create_index([("created_at", pymongo.ASCENDING)])

    logger.info("MongoDB migrations complete")
