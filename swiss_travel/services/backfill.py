"""
One-shot embedding backfill for catalog rows whose description_embedding
is still NULL (fresh seed, or a previous run that failed half-way).

Safe to re-run: rows that already have a vector are never selected, so a
second pass over a complete catalog makes no writes.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from swiss_travel.core.errors import EmbeddingError
from swiss_travel.services.catalog import (
    ActivityRepository,
    DestinationRepository,
    HotelRepository,
    activity_repository,
    destination_repository,
    hotel_repository,
)
from swiss_travel.services.embeddings import (
    TASK_DOCUMENT,
    EmbeddingProvider,
    load_embedding_provider,
)

logger = logging.getLogger(__name__)


@dataclass
class BackfillStats:
    destinations: int = 0
    hotels: int = 0
    activities: int = 0
    failed: int = 0

    @property
    def embedded(self) -> int:
        return self.destinations + self.hotels + self.activities

    def as_dict(self) -> dict:
        return {**asdict(self), "embedded": self.embedded}


async def backfill_embeddings(
    destinations: DestinationRepository = destination_repository,
    hotels: HotelRepository = hotel_repository,
    activities: ActivityRepository = activity_repository,
    provider: Optional[EmbeddingProvider] = None,
) -> BackfillStats:
    provider = provider or await load_embedding_provider()
    stats = BackfillStats()

    logger.info("Checking for missing embeddings...")

    for kind, repo in (
        ("destinations", destinations),
        ("hotels", hotels),
        ("activities", activities),
    ):
        for row in await repo.find_without_embedding():
            try:
                vector = await provider.embed(row.embedding_text(), TASK_DOCUMENT)
            except EmbeddingError as exc:
                logger.error("Embedding failed for %s id=%d: %s", kind, row.id, exc)
                stats.failed += 1
                continue

            if await repo.update_embedding(row.id, vector):
                setattr(stats, kind, getattr(stats, kind) + 1)
            else:
                stats.failed += 1

    if stats.embedded or stats.failed:
        logger.info(
            "Generated embeddings: %d destinations, %d hotels, %d activities (%d failed)",
            stats.destinations, stats.hotels, stats.activities, stats.failed,
        )
    else:
        logger.info("All embeddings up to date")
    return stats


_startup_done = False


async def run_startup_backfill() -> Optional[BackfillStats]:
    """Runs the backfill at most once per process; later calls are no-ops."""
    global _startup_done
    if _startup_done:
        return None
    _startup_done = True
    try:
        return await backfill_embeddings()
    except Exception:
        logger.exception("Error generating embeddings")
        return None
