from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class PromptRun(Base):
    """One prompt/response cycle against a single provider. Never updated after insert."""

    __tablename__ = "prompt_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)  # rendered prompt sent to the provider
    raw_response: Mapped[str] = mapped_column(Text, nullable=False)
    ai_provider: Mapped[str] = mapped_column(String(50), nullable=False)  # openai | anthropic | groq
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )

    mentions: Mapped[list["Mention"]] = relationship(  # noqa: F821
        "Mention", back_populates="prompt_run", cascade="all, delete-orphan", passive_deletes=True
    )
