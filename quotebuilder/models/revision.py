"""
Quote revision ledger.
Append-only snapshots of a quote taken right before each update.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import String, Text, ForeignKey, Integer, DateTime, JSON, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from quotebuilder.core.database import Base
from quotebuilder.models.base import utcnow


class QuoteRevision(Base):
    """
    Snapshot of a quote as it was at ``version``.

    Rows are only ever inserted, hence no updated_at column.
    """

    __tablename__ = "quote_revisions"
    __table_args__ = (
        UniqueConstraint("quote_id", "version", name="uq_quote_revisions_quote_version"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    quote_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    snapshot: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )
    changed_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<QuoteRevision(quote_id={self.quote_id}, version={self.version})>"
