from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WishlistItemRead(BaseModel):
    # Serialised with the persisted camelCase names: id, itemType, itemId
    model_config = ConfigDict(populate_by_name=True)

    id: int
    item_type: str = Field(..., alias="itemType")
    item_id: int = Field(..., alias="itemId")


class WishlistItemDetail(WishlistItemRead):
    name: Optional[str] = None
    description: Optional[str] = None


class BackfillResponse(BaseModel):
    destinations: int
    hotels: int
    activities: int
    failed: int
    embedded: int


class ClearWishlistResponse(BaseModel):
    deleted: int
