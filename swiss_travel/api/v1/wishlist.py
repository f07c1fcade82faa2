from fastapi import APIRouter, Depends

from swiss_travel.schemas.wishlist import WishlistItemDetail, WishlistItemRead
from swiss_travel.services.assistant import get_travel_tools
from swiss_travel.services.tools import TravelTools
from swiss_travel.services.wishlist import WishlistRepository, wishlist_repository

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def get_wishlist_repository() -> WishlistRepository:
    return wishlist_repository


@router.get("", response_model=list[WishlistItemRead])
async def list_wishlist(repo: WishlistRepository = Depends(get_wishlist_repository)):
    return [
        WishlistItemRead(id=item.id, item_type=item.item_type, item_id=item.item_id)
        for item in await repo.find_all()
    ]


@router.get("/details", response_model=list[WishlistItemDetail])
async def list_wishlist_details(
    repo: WishlistRepository = Depends(get_wishlist_repository),
    tools: TravelTools = Depends(get_travel_tools),
):
    """Same rows as GET /wishlist, with name and description looked up in the catalog."""
    out: list[WishlistItemDetail] = []
    for item in await repo.find_all():
        entity = await tools.describe(item)
        out.append(WishlistItemDetail(
            id=item.id,
            item_type=item.item_type,
            item_id=item.item_id,
            name=entity.name if entity else None,
            description=entity.description if entity else None,
        ))
    return out
