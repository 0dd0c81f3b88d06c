"""
Catalog models: categories and the products quoted from them.
Pricing reads the catalog only to suggest a default rate and to group
lines by category; quote items keep their own rate.
"""

from typing import Optional, List
from decimal import Decimal
from sqlalchemy import String, Text, ForeignKey, Integer, Numeric, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotebuilder.models.base import BaseModel


class Category(BaseModel):
    """
    Product category.

    Attributes:
        name: Category name shown in the breakdown report
        description: Free text
        parent_id: Optional parent category
        is_active: Inactive categories are hidden from the catalog
    """

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    products: Mapped[List["Product"]] = relationship(
        "Product",
        back_populates="category",
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class Product(BaseModel):
    """
    Catalog product.

    Attributes:
        item_code: Business identifier printed on quotes
        name: Product name
        description: Detailed description
        category_id: Category used for the breakdown report
        base_rate: Default rate suggested when the product is added to a quote
        unit: Unit of measurement (nos, sqft, rft, ...)
        is_area_priced: Quantity is derived from length × width
        is_active: Whether the product can be added to new quotes
    """

    __tablename__ = "products"

    item_code: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Pricing
    base_rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    unit: Mapped[str] = mapped_column(
        String(50),
        default="nos",
        nullable=False,
    )
    is_area_priced: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    category: Mapped[Optional["Category"]] = relationship(
        "Category",
        back_populates="products",
        lazy="selectin",
    )

    @property
    def category_name(self) -> Optional[str]:
        return self.category.name if self.category else None

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', base_rate={self.base_rate})>"
