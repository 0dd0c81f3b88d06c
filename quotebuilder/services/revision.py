"""
Quote revision ledger.
Snapshots are appended before every update and never modified afterwards.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from quotebuilder.models.quote import Quote
from quotebuilder.models.revision import QuoteRevision
from quotebuilder.schemas.quote import QuoteSnapshot


logger = logging.getLogger(__name__)


class RevisionService:
    """Append-only access to quote revisions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        quote: Quote,
        changed_by_id: int | None = None,
        notes: str | None = None,
    ) -> QuoteRevision:
        """
        Record ``quote`` as it currently is, keyed by its current version.

        Must be called before the update is applied. A second snapshot of the
        same version violates the (quote_id, version) unique constraint.
        """
        snapshot = QuoteSnapshot.model_validate(quote).model_dump(mode="json", by_alias=True)
        revision = QuoteRevision(
            quote_id=quote.id,
            version=quote.version,
            status=quote.status.value,
            snapshot=snapshot,
            changed_by_id=changed_by_id,
            notes=notes,
        )
        self.db.add(revision)
        await self.db.flush()
        logger.debug("Recorded revision %s of quote %s", revision.version, quote.quote_number)

        return revision

    async def list(self, quote_id: int) -> list[QuoteRevision]:
        """Revisions of a quote, newest first."""
        result = await self.db.execute(
            select(QuoteRevision)
            .where(QuoteRevision.quote_id == quote_id)
            .order_by(QuoteRevision.created_at.desc(), QuoteRevision.id.desc())
        )
        return list(result.scalars().all())
