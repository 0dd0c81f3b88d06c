"""
PDF template model.
Holds the handful of settings the quote PDF renderer understands.
"""

from typing import Optional
from sqlalchemy import String, Text, Boolean, JSON
from sqlalchemy.orm import Mapped, mapped_column

from quotebuilder.models.base import BaseModel


class PdfTemplate(BaseModel):
    """
    PDF template.

    Attributes:
        name: Template name
        description: Free text
        is_default: Used when a quote has no template of its own
        config: Renderer settings, see quotebuilder.schemas.template.TemplateConfig
    """

    __tablename__ = "pdf_templates"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    config: Mapped[dict] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PdfTemplate(id={self.id}, name='{self.name}', default={self.is_default})>"
