from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

JsonList = JSON().with_variant(JSONB, "postgresql")


class Mention(Base):
    """Whether and how often a brand appeared in one run's response.

    Written for every tracked brand, including brands that were not mentioned.
    """

    __tablename__ = "mentions"
    __table_args__ = (
        UniqueConstraint("prompt_run_id", "brand_id", name="uq_mention_run_brand"),
        CheckConstraint("mention_count >= 0", name="ck_mentions_count_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prompt_run_id: Mapped[int] = mapped_column(
        ForeignKey("prompt_runs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    brand_id: Mapped[int] = mapped_column(ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True)
    mentioned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    mention_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    context: Mapped[list | None] = mapped_column(JsonList, nullable=True)  # ["Salesforce is a leading CRM", ...]
    citation_urls: Mapped[list | None] = mapped_column(JsonList, nullable=True)  # ["https://...", ...]
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    prompt_run: Mapped["PromptRun"] = relationship("PromptRun", back_populates="mentions")  # noqa: F821
    brand: Mapped["Brand"] = relationship("Brand", back_populates="mentions")  # noqa: F821
