from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Brand(Base):
    """A tracked brand. Names are unique case-insensitively."""

    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    mentions: Mapped[list["Mention"]] = relationship(  # noqa: F821
        "Mention", back_populates="brand", cascade="all, delete-orphan", passive_deletes=True
    )


# "HubSpot" and "hubspot" are the same brand; concurrent inserts of both collide here
Index("uq_brands_name_lower", func.lower(Brand.name), unique=True)
