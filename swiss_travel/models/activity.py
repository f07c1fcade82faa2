from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from pgvector.sqlalchemy import Vector
from sqlalchemy import BigInteger, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from swiss_travel.core.config import settings
from swiss_travel.db.session import Base

if TYPE_CHECKING:
    from swiss_travel.models.destination import Destination


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    destination_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("destinations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Free text, e.g. "Winter", "June-September", "Year-round"
    season: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    description_embedding: Mapped[Optional[list[float]]] = mapped_column(
        Vector(settings.EMBEDDING_DIM), nullable=True, deferred=True
    )

    destination: Mapped[Destination] = relationship("Destination", lazy="joined")

    @property
    def destination_name(self) -> str:
        return self.destination.name if self.destination else ""

    def embedding_text(self) -> str:
        return f"{self.name} in {self.destination_name}. {self.description}"
