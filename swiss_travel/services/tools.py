"""
Tools the assistant can call mid-turn.

Each tool takes JSON arguments validated by a pydantic model and returns
plain text that is placed verbatim into the LLM transcript. dispatch() never
raises: unknown tools, bad arguments and embedding failures come back as
"Error: ..." strings so the model can recover.
"""
from __future__ import annotations

import json
import logging
from decimal import ROUND_HALF_UP, Decimal
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from swiss_travel.core.errors import EmbeddingError, ToolDispatchError
from swiss_travel.models.activity import Activity
from swiss_travel.models.destination import Destination
from swiss_travel.models.hotel import Hotel
from swiss_travel.models.wishlist import ItemType, WishlistItem
from swiss_travel.services.catalog import (
    SEARCH_LIMIT,
    ActivityRepository,
    CatalogRepository,
    DestinationRepository,
    HotelRepository,
)
from swiss_travel.services.embeddings import EmbeddingProvider
from swiss_travel.services.wishlist import WishlistRepository

logger = logging.getLogger(__name__)


def _chf(price) -> str:
    """Whole francs, halves rounded up: 250.50 → "251"."""
    return str(Decimal(str(price)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ── Argument schemas ──────────────────────────────────────────────────────────

class _Args(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchDestinationsArgs(_Args):
    query: str = Field(..., description="What the traveller is looking for, e.g. 'mountain views'")


class SearchHotelsArgs(_Args):
    query: str = Field(..., description="Desired hotel style or features, e.g. 'cozy chalet'")
    destination_id: Optional[int] = Field(
        None, alias="destinationId", description="Only hotels in this destination (ID from searchDestinations)"
    )
    max_price: Optional[float] = Field(
        None, alias="maxPrice", description="Maximum price per night in CHF"
    )


class SearchActivitiesArgs(_Args):
    query: str = Field(..., description="Kind of activity, e.g. 'glacier hike'")
    destination_id: Optional[int] = Field(
        None, alias="destinationId", description="Only activities in this destination"
    )


class AddToWishlistArgs(_Args):
    item_type: str = Field(..., alias="itemType", description="'destination', 'hotel' or 'activity'")
    item_id: int = Field(..., alias="itemId", description="ID taken from search results")


class GetWishlistArgs(_Args):
    pass


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_model: type[_Args]

    def schema(self) -> dict:
        parameters = self.args_model.model_json_schema(by_alias=True)
        parameters.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


TOOL_SPECS: List[ToolSpec] = [
    ToolSpec(
        "searchDestinations",
        "Search for Swiss destinations by preference "
        "(e.g., 'mountain views', 'lakeside', 'winter sports').",
        SearchDestinationsArgs,
    ),
    ToolSpec(
        "searchHotels",
        "Search for hotels. Optional filters: destinationId, maxPrice (CHF/night).",
        SearchHotelsArgs,
    ),
    ToolSpec(
        "searchActivities",
        "Search for activities. Optional filter: destinationId.",
        SearchActivitiesArgs,
    ),
    ToolSpec(
        "addToWishlist",
        "Add an item to the wishlist. itemType: 'destination', 'hotel', or 'activity'. "
        "itemId: from search results.",
        AddToWishlistArgs,
    ),
    ToolSpec(
        "getWishlist",
        "Get the user's wishlist with all saved destinations, hotels, and activities.",
        GetWishlistArgs,
    ),
]


# ── Registry ──────────────────────────────────────────────────────────────────

class TravelTools:
    def __init__(
        self,
        embeddings: EmbeddingProvider,
        destinations: DestinationRepository,
        hotels: HotelRepository,
        activities: ActivityRepository,
        wishlist: WishlistRepository,
    ) -> None:
        self.embeddings = embeddings
        self.destinations = destinations
        self.hotels = hotels
        self.activities = activities
        self.wishlist = wishlist

        self._specs: Dict[str, ToolSpec] = {s.name: s for s in TOOL_SPECS}
        self._handlers: Dict[str, Callable[[Any], Awaitable[str]]] = {
            "searchDestinations": lambda a: self.search_destinations(a.query),
            "searchHotels": lambda a: self.search_hotels(a.query, a.destination_id, a.max_price),
            "searchActivities": lambda a: self.search_activities(a.query, a.destination_id),
            "addToWishlist": lambda a: self.add_to_wishlist(a.item_type, a.item_id),
            "getWishlist": lambda a: self.get_wishlist(),
        }

    def schemas(self) -> List[dict]:
        return [spec.schema() for spec in TOOL_SPECS]

    def _repository_for(self, item_type: str) -> Optional[CatalogRepository]:
        return {
            ItemType.destination.value: self.destinations,
            ItemType.hotel.value: self.hotels,
            ItemType.activity.value: self.activities,
        }.get(item_type)

    # ── Dispatch ──────────────────────────────────────────────────────────────

    async def dispatch(self, name: str, arguments: Union[str, dict, None]) -> str:
        try:
            return await self._dispatch(name, arguments)
        except (ToolDispatchError, EmbeddingError) as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return f"Error: {exc}"

    async def _dispatch(self, name: str, arguments: Union[str, dict, None]) -> str:
        spec = self._specs.get(name)
        if spec is None:
            raise ToolDispatchError(f"unknown tool '{name}'")

        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError as exc:
                raise ToolDispatchError(f"arguments for {name} are not valid JSON ({exc.msg})") from exc
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolDispatchError(f"arguments for {name} must be a JSON object")

        try:
            args = spec.args_model.model_validate(arguments)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or name}: {err['msg']}"
                for err in exc.errors()
            )
            raise ToolDispatchError(f"invalid arguments for {name}: {problems}") from exc

        logger.info("Tool call %s(%s)", name, args.model_dump(by_alias=True, exclude_none=True))
        return await self._handlers[name](args)

    # ── Structured search ─────────────────────────────────────────────────────

    async def search_destination_items(self, query: str) -> List[Destination]:
        vector = await self.embeddings.embed(query)
        return await self.destinations.search_by_vector(vector, limit=SEARCH_LIMIT)

    async def search_hotel_items(
        self,
        query: str,
        destination_id: Optional[int] = None,
        max_price: Optional[float] = None,
    ) -> List[Hotel]:
        vector = await self.embeddings.embed(query)
        return await self.hotels.search_by_vector(
            vector, destination_id=destination_id, max_price=max_price, limit=SEARCH_LIMIT
        )

    async def search_activity_items(
        self,
        query: str,
        destination_id: Optional[int] = None,
    ) -> List[Activity]:
        vector = await self.embeddings.embed(query)
        return await self.activities.search_by_vector(
            vector, destination_id=destination_id, limit=SEARCH_LIMIT
        )

    # ── Text tools ────────────────────────────────────────────────────────────

    async def search_destinations(self, query: str) -> str:
        results = await self.search_destination_items(query)
        if not results:
            return f"No destinations found matching: {query}"
        lines = [f"- {d.name} (ID:{d.id}, {d.region}): {d.description}\n" for d in results]
        return "Found destinations:\n" + "".join(lines)

    async def search_hotels(
        self,
        query: str,
        destination_id: Optional[int] = None,
        max_price: Optional[float] = None,
    ) -> str:
        results = await self.search_hotel_items(query, destination_id, max_price)
        if not results:
            return f"No hotels found matching: {query}"
        lines = [
            f"- {h.name} (ID:{h.id}, CHF {_chf(h.price_per_night)}/night): {h.description}\n"
            for h in results
        ]
        return "Found hotels:\n" + "".join(lines)

    async def search_activities(self, query: str, destination_id: Optional[int] = None) -> str:
        results = await self.search_activity_items(query, destination_id)
        if not results:
            return f"No activities found matching: {query}"
        lines = [f"- {a.name} (ID:{a.id}, {a.season}): {a.description}\n" for a in results]
        return "Found activities:\n" + "".join(lines)

    async def add_to_wishlist(self, item_type: str, item_id: int) -> str:
        kind = item_type.lower()
        repo = self._repository_for(kind)
        entity = await repo.find_by_id(item_id) if repo is not None else None
        if entity is None:
            return f"Error: {item_type} with ID {item_id} not found."

        saved = await self.wishlist.save(kind, item_id)
        if saved is None:
            return f"Error: could not save {entity.name} to the wishlist."
        return f"Added to wishlist: {entity.name}"

    async def describe(self, item: WishlistItem) -> Optional[Union[Destination, Hotel, Activity]]:
        repo = self._repository_for(item.item_type)
        return await repo.find_by_id(item.item_id) if repo is not None else None

    async def get_wishlist(self) -> str:
        items = await self.wishlist.find_all()
        if not items:
            return "Your wishlist is empty."

        lines = []
        for item in items:
            entity = await self.describe(item)
            if item.item_type == ItemType.destination.value:
                detail = f"{entity.name} ({entity.region})" if entity else "Unknown destination"
            elif item.item_type == ItemType.hotel.value:
                detail = (
                    f"{entity.name} - CHF {_chf(entity.price_per_night)}/night"
                    if entity else "Unknown hotel"
                )
            elif item.item_type == ItemType.activity.value:
                detail = f"{entity.name} ({entity.season})" if entity else "Unknown activity"
            else:
                detail = "Unknown item"
            lines.append(f"- {detail}\n")
        return "Your wishlist:\n" + "".join(lines)
