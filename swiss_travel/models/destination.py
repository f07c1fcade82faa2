from __future__ import annotations

from typing import Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swiss_travel.core.config import settings
from swiss_travel.db.session import Base


class Destination(Base):
    __tablename__ = "destinations"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    region: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Dimension must match EMBEDDING_DIM; NULL until the startup backfill runs.
    # Deferred so plain reads never ship the vector over the wire.
    description_embedding: Mapped[Optional[list[float]]] = mapped_column(
        Vector(settings.EMBEDDING_DIM), nullable=True, deferred=True
    )

    def embedding_text(self) -> str:
        return f"{self.name} {self.region}. {self.description}"
