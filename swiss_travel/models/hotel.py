from __future__ import annotations

from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from pgvector.sqlalchemy import Vector
from sqlalchemy import BigInteger, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from swiss_travel.core.config import settings
from swiss_travel.db.session import Base

if TYPE_CHECKING:
    from swiss_travel.models.destination import Destination


class Hotel(Base):
    __tablename__ = "hotels"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    destination_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("destinations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # CHF per night
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    description_embedding: Mapped[Optional[list[float]]] = mapped_column(
        Vector(settings.EMBEDDING_DIM), nullable=True, deferred=True
    )

    # Joined eagerly: async sessions cannot lazy-load after the query returns
    destination: Mapped[Destination] = relationship("Destination", lazy="joined")

    @property
    def destination_name(self) -> str:
        return self.destination.name if self.destination else ""

    def embedding_text(self) -> str:
        return f"{self.name} in {self.destination_name}. {self.description}"
