import enum

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from swiss_travel.db.session import Base


class ItemType(str, enum.Enum):
    destination = "destination"
    hotel = "hotel"
    activity = "activity"


class WishlistItem(Base):
    """
    A reference to a catalog row. No FK and no uniqueness: the same
    (item_type, item_id) may be saved repeatedly, referents are checked
    by the addToWishlist tool before insert.
    """
    __tablename__ = "wishlist_items"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    item_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
