"""
Wishlist store. Process-global, append-only list of catalog references.

Same failure policy as the catalog store: DB errors surface as StoreError
and degrade to None / [] / 0 here.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swiss_travel.core.errors import StoreError
from swiss_travel.db.session import async_session_maker, store_session
from swiss_travel.models.wishlist import WishlistItem

logger = logging.getLogger(__name__)


class WishlistRepository:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession] = async_session_maker):
        self._session_maker = session_maker

    def _session(self):
        return store_session(self._session_maker, WishlistItem.__tablename__)

    async def save(self, item_type: str, item_id: int) -> Optional[WishlistItem]:
        """Append one row and return it with its server-assigned id, or None on failure."""
        item = WishlistItem(item_type=item_type, item_id=item_id)
        try:
            async with self._session() as db:
                db.add(item)
                await db.commit()
                await db.refresh(item)
        except StoreError:
            logger.exception("Error saving wishlist item %s id=%s", item_type, item_id)
            return None
        logger.info("Wishlist += %s id=%s (row %d)", item_type, item_id, item.id)
        return item

    async def find_all(self) -> List[WishlistItem]:
        try:
            async with self._session() as db:
                result = await db.execute(select(WishlistItem).order_by(WishlistItem.id))
                return list(result.scalars().all())
        except StoreError:
            logger.exception("Error finding all wishlist items")
            return []

    async def delete_all(self) -> int:
        try:
            async with self._session() as db:
                result = await db.execute(delete(WishlistItem))
                await db.commit()
        except StoreError:
            logger.exception("Error deleting all wishlist items")
            return 0
        logger.info("Deleted %d wishlist items", result.rowcount)
        return result.rowcount


wishlist_repository = WishlistRepository()
