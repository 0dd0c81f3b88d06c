"""
PDF template schemas.
"""

from pydantic import Field

from quotebuilder.schemas.base import BaseSchema, TimestampSchema


class TemplateConfig(BaseSchema):
    """Settings understood by the quote PDF renderer."""

    accent_color: str = Field(default="#059669", pattern=r"^#[0-9A-Fa-f]{6}$")
    currency_symbol: str | None = Field(None, max_length=5)
    document_title: str = Field(default="QUOTATION", max_length=50)
    show_item_discounts: bool = True
    show_category_breakdown: bool = False
    show_policies: bool = True
    footer_text: str | None = None


class TemplateCreate(BaseSchema):
    """Schema for creating a template."""

    name: str = Field(..., min_length=2, max_length=255)
    description: str | None = None
    is_default: bool = False
    config: TemplateConfig = Field(default_factory=TemplateConfig)


class TemplateResponse(TimestampSchema):
    """Template response schema."""

    id: int
    name: str
    description: str | None
    is_default: bool
    config: TemplateConfig


class TemplateUpdate(BaseSchema):
    """Schema for updating a template."""

    name: str | None = Field(None, min_length=2, max_length=255)
    description: str | None = None
    config: TemplateConfig | None = None


class TemplateDuplicate(BaseSchema):
    """Optional name for a template copy."""

    name: str | None = Field(None, min_length=2, max_length=255)
