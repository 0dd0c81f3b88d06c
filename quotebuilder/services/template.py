"""
PDF template service.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from quotebuilder.core.exceptions import NotFoundError, ValidationError
from quotebuilder.models.quote import Quote
from quotebuilder.models.template import PdfTemplate
from quotebuilder.schemas.template import TemplateCreate, TemplateDuplicate, TemplateUpdate


logger = logging.getLogger(__name__)


class TemplateService:
    """Service for PDF template operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self) -> list[PdfTemplate]:
        result = await self.db.execute(select(PdfTemplate).order_by(PdfTemplate.name))
        return list(result.scalars().all())

    async def get_or_404(self, template_id: int) -> PdfTemplate:
        result = await self.db.execute(
            select(PdfTemplate).where(PdfTemplate.id == template_id)
        )
        template = result.scalar_one_or_none()
        if template is None:
            raise NotFoundError("Template", template_id)
        return template

    async def get_default(self) -> PdfTemplate | None:
        result = await self.db.execute(
            select(PdfTemplate).where(PdfTemplate.is_default.is_(True)).limit(1)
        )
        return result.scalar_one_or_none()

    async def create(self, data: TemplateCreate) -> PdfTemplate:
        """Create a template. A new default template demotes the previous one."""
        if data.is_default:
            await self._clear_default()

        template = PdfTemplate(
            name=data.name,
            description=data.description,
            is_default=data.is_default,
            config=data.config.model_dump(),
        )
        self.db.add(template)
        await self.db.flush()
        await self.db.refresh(template)

        return template

    async def update(self, template: PdfTemplate, data: TemplateUpdate) -> PdfTemplate:
        """
        Update name, description or config.

        A config replaces the stored one as a whole. The default flag only
        moves through ``set_default``.
        """
        update_data = data.model_dump(exclude_unset=True, exclude={"config"})
        for field, value in update_data.items():
            if value is not None or field == "description":
                setattr(template, field, value)
        if data.config is not None:
            template.config = data.config.model_dump()

        await self.db.flush()
        await self.db.refresh(template)

        return template

    async def duplicate(self, template: PdfTemplate, data: TemplateDuplicate | None = None) -> PdfTemplate:
        """Copy a template under a new name. Copies are never the default."""
        name = data.name if data and data.name else f"{template.name} (Copy)"
        copy = PdfTemplate(
            name=name[:255],
            description=template.description,
            is_default=False,
            config=dict(template.config or {}),
        )
        self.db.add(copy)
        await self.db.flush()
        await self.db.refresh(copy)

        logger.info("Duplicated template %s as %s", template.id, copy.id)
        return copy

    async def delete(self, template: PdfTemplate) -> None:
        """
        Delete a template. Quotes using it fall back to the default.

        Raises:
            ValidationError: If the template is the default one
        """
        if template.is_default:
            raise ValidationError(
                "The default template cannot be deleted, make another one the default first",
                template_id=template.id,
            )

        await self.db.execute(
            update(Quote)
            .where(Quote.template_id == template.id)
            .values(template_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(template)
        await self.db.flush()

        logger.info("Deleted template %s", template.id)

    async def set_default(self, template: PdfTemplate) -> PdfTemplate:
        """Make ``template`` the only default template."""
        await self._clear_default()
        template.is_default = True
        await self.db.flush()
        await self.db.refresh(template)

        return template

    async def _clear_default(self) -> None:
        await self.db.execute(
            update(PdfTemplate)
            .where(PdfTemplate.is_default.is_(True))
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
