"""
Admin endpoints.

DELETE /api/admin/wishlist              clear every wishlist row
POST   /api/admin/embeddings/backfill   embed catalog rows still missing a vector

No auth: this service is meant to sit behind a private network.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from swiss_travel.api.v1.wishlist import get_wishlist_repository
from swiss_travel.schemas.wishlist import BackfillResponse, ClearWishlistResponse
from swiss_travel.services.backfill import backfill_embeddings
from swiss_travel.services.wishlist import WishlistRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.delete("/wishlist", response_model=ClearWishlistResponse)
async def clear_wishlist(repo: WishlistRepository = Depends(get_wishlist_repository)):
    deleted = await repo.delete_all()
    logger.info("Admin cleared wishlist (%d rows)", deleted)
    return ClearWishlistResponse(deleted=deleted)


@router.post("/embeddings/backfill", response_model=BackfillResponse)
async def run_backfill():
    """Safe to re-run: rows that already have an embedding are skipped."""
    stats = await backfill_embeddings()
    return BackfillResponse(**stats.as_dict())
