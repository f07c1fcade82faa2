"""
Catalog store: destinations, hotels and activities plus their pgvector
embedding column.

Every operation opens its own session (released on every exit path). DB
failures surface as StoreError inside this module and are degraded here:
reads log and return [] / None, writes log and report False. Callers never
see a driver exception.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swiss_travel.core.errors import StoreError
from swiss_travel.db.session import async_session_maker, store_session
from swiss_travel.models.activity import Activity
from swiss_travel.models.destination import Destination
from swiss_travel.models.hotel import Hotel

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 5

T = TypeVar("T", Destination, Hotel, Activity)


# ── Query builder ─────────────────────────────────────────────────────────────

class VectorSearch(Generic[T]):
    """
    Builds a similarity query in one pass, in a fixed clause order:

        WHERE description_embedding IS NOT NULL
          [AND <optional filter> ...]          -- in the order they are added
        ORDER BY description_embedding <=> :vector
        LIMIT :limit

    An absent (None) filter adds neither a clause nor a bound parameter, so
    the vector and limit parameters never shift position. Placeholders and
    their values come out of the SQLAlchemy compiler together.
    """

    def __init__(self, model: type[T]) -> None:
        self.model = model
        self._stmt: Select = select(model).where(
            model.description_embedding.is_not(None)
        )

    def where_equal(self, column, value) -> "VectorSearch[T]":
        if value is not None:
            self._stmt = self._stmt.where(column == value)
        return self

    def where_at_most(self, column, value) -> "VectorSearch[T]":
        if value is not None:
            self._stmt = self._stmt.where(column <= value)
        return self

    def nearest(self, query_vector: Sequence[float], limit: int) -> Select:
        return self._stmt.order_by(
            self.model.description_embedding.cosine_distance(list(query_vector))
        ).limit(max(1, int(limit)))


# ── Repositories ──────────────────────────────────────────────────────────────

class CatalogRepository(Generic[T]):
    model: type[T]

    def __init__(self, session_maker: async_sessionmaker[AsyncSession] = async_session_maker):
        self._session_maker = session_maker

    @property
    def table(self) -> str:
        return self.model.__tablename__

    def _session(self):
        return store_session(self._session_maker, self.table)

    async def _fetch_all(self, stmt: Select, action: str) -> List[T]:
        try:
            async with self._session() as db:
                result = await db.execute(stmt)
                return list(result.scalars().all())
        except StoreError:
            logger.exception("Error %s %s", action, self.table)
            return []

    async def find_all(self) -> List[T]:
        return await self._fetch_all(
            select(self.model).order_by(self.model.id), "finding all"
        )

    async def find_without_embedding(self) -> List[T]:
        return await self._fetch_all(
            select(self.model)
            .where(self.model.description_embedding.is_(None))
            .order_by(self.model.id),
            "finding rows without embedding in",
        )

    async def find_by_id(self, item_id: int) -> Optional[T]:
        try:
            async with self._session() as db:
                result = await db.execute(
                    select(self.model).where(self.model.id == item_id)
                )
                return result.scalar_one_or_none()
        except StoreError:
            logger.exception("Error finding %s by id=%s", self.table, item_id)
            return None

    async def update_embedding(self, item_id: int, vector: Sequence[float]) -> bool:
        try:
            async with self._session() as db:
                await db.execute(
                    update(self.model)
                    .where(self.model.id == item_id)
                    .values(description_embedding=list(vector))
                )
                await db.commit()
        except StoreError:
            logger.exception("Error updating embedding for %s id=%s", self.table, item_id)
            return False
        logger.debug("Updated embedding for %s id=%s", self.table, item_id)
        return True


class DestinationRepository(CatalogRepository[Destination]):
    model = Destination

    def build_search(self, query_vector: Sequence[float], limit: int = SEARCH_LIMIT) -> Select:
        return VectorSearch(Destination).nearest(query_vector, limit)

    async def search_by_vector(
        self,
        query_vector: Sequence[float],
        limit: int = SEARCH_LIMIT,
    ) -> List[Destination]:
        return await self._fetch_all(
            self.build_search(query_vector, limit), "searching by vector in"
        )


class HotelRepository(CatalogRepository[Hotel]):
    model = Hotel

    def build_search(
        self,
        query_vector: Sequence[float],
        destination_id: Optional[int] = None,
        max_price: Optional[float] = None,
        limit: int = SEARCH_LIMIT,
    ) -> Select:
        price = Decimal(str(max_price)) if max_price is not None else None
        return (
            VectorSearch(Hotel)
            .where_equal(Hotel.destination_id, destination_id)
            .where_at_most(Hotel.price_per_night, price)
            .nearest(query_vector, limit)
        )

    async def search_by_vector(
        self,
        query_vector: Sequence[float],
        destination_id: Optional[int] = None,
        max_price: Optional[float] = None,
        limit: int = SEARCH_LIMIT,
    ) -> List[Hotel]:
        return await self._fetch_all(
            self.build_search(query_vector, destination_id, max_price, limit),
            "searching by vector in",
        )


class ActivityRepository(CatalogRepository[Activity]):
    model = Activity

    def build_search(
        self,
        query_vector: Sequence[float],
        destination_id: Optional[int] = None,
        limit: int = SEARCH_LIMIT,
    ) -> Select:
        return (
            VectorSearch(Activity)
            .where_equal(Activity.destination_id, destination_id)
            .nearest(query_vector, limit)
        )

    async def search_by_vector(
        self,
        query_vector: Sequence[float],
        destination_id: Optional[int] = None,
        limit: int = SEARCH_LIMIT,
    ) -> List[Activity]:
        return await self._fetch_all(
            self.build_search(query_vector, destination_id, limit),
            "searching by vector in",
        )


# ── Shared instances ──────────────────────────────────────────────────────────

destination_repository = DestinationRepository()
hotel_repository = HotelRepository()
activity_repository = ActivityRepository()
