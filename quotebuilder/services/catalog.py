"""
Catalog service.
Categories and products, plus the lookups quote pricing needs.
"""

import logging
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from quotebuilder.core.exceptions import ConflictError, NotFoundError, ValidationError
from quotebuilder.models.product import Category, Product
from quotebuilder.schemas.product import (
    CategoryCreate,
    CategoryUpdate,
    ProductCreate,
    ProductUpdate,
)


logger = logging.getLogger(__name__)


class CategoryService:
    """Service for category operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: CategoryCreate) -> Category:
        """
        Create a category.

        Raises:
            ConflictError: If the name is taken
        """
        await self._ensure_unique_name(data.name)
        if data.parent_id is not None:
            await self.get_or_404(data.parent_id)

        category = Category(**data.model_dump())
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)

        return category

    async def get_or_404(self, category_id: int) -> Category:
        result = await self.db.execute(
            select(Category).where(Category.id == category_id)
        )
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    async def list(self, is_active: bool | None = None) -> list[Category]:
        query = select(Category)
        if is_active is not None:
            query = query.where(Category.is_active == is_active)
        result = await self.db.execute(query.order_by(Category.name))
        return list(result.scalars().all())

    async def update(self, category: Category, data: CategoryUpdate) -> Category:
        """Update category."""
        update_data = data.model_dump(exclude_unset=True)

        if "name" in update_data and update_data["name"] != category.name:
            await self._ensure_unique_name(update_data["name"])
        if update_data.get("parent_id") is not None:
            if update_data["parent_id"] == category.id:
                raise ValidationError("A category cannot be its own parent")
            await self.get_or_404(update_data["parent_id"])

        for field, value in update_data.items():
            setattr(category, field, value)

        await self.db.flush()
        await self.db.refresh(category)

        return category

    async def delete(self, category: Category) -> None:
        """Delete category (soft delete by deactivating)."""
        category.is_active = False
        await self.db.flush()

    async def _ensure_unique_name(self, name: str) -> None:
        result = await self.db.execute(select(Category.id).where(Category.name == name))
        if result.scalar_one_or_none() is not None:
            raise ConflictError(f"Category '{name}' already exists", name=name)


class ProductService:
    """Service for product operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: ProductCreate) -> Product:
        """
        Create a new product.

        Args:
            data: Product data

        Returns:
            Created product
        """
        if data.category_id is not None:
            await CategoryService(self.db).get_or_404(data.category_id)

        product = Product(**data.model_dump())

        self.db.add(product)
        await self.db.flush()
        await self.db.refresh(product, ["category"])
        logger.info("Created product %s (%s)", product.name, product.item_code)

        return product

    async def get_by_id(self, product_id: int) -> Product | None:
        result = await self.db.execute(
            select(Product).where(Product.id == product_id)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, product_id: int) -> Product:
        """
        Get product by ID.

        Raises:
            NotFoundError: If product not found
        """
        product = await self.get_by_id(product_id)
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    async def list(
        self,
        skip: int = 0,
        limit: int = 20,
        search: str | None = None,
        category_id: int | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[Product], int]:
        """
        List products with pagination and filters.

        Args:
            skip: Number of records to skip
            limit: Maximum records to return
            search: Search term for name/item code
            category_id: Filter by category
            is_active: Filter by active status

        Returns:
            Tuple of (products list, total count)
        """
        query = select(Product)
        count_query = select(func.count(Product.id))

        if search:
            search_filter = f"%{search}%"
            condition = Product.name.ilike(search_filter) | Product.item_code.ilike(search_filter)
            query = query.where(condition)
            count_query = count_query.where(condition)

        if category_id is not None:
            query = query.where(Product.category_id == category_id)
            count_query = count_query.where(Product.category_id == category_id)

        if is_active is not None:
            query = query.where(Product.is_active == is_active)
            count_query = count_query.where(Product.is_active == is_active)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Product.name).offset(skip).limit(limit)
        result = await self.db.execute(query)
        products = list(result.scalars().all())

        return products, total

    async def update(self, product: Product, data: ProductUpdate) -> Product:
        """
        Update product.

        Changing ``base_rate`` never reprices existing quotes.
        """
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("category_id") is not None:
            await CategoryService(self.db).get_or_404(update_data["category_id"])

        for field, value in update_data.items():
            setattr(product, field, value)

        await self.db.flush()
        await self.db.refresh(product, ["category"])

        return product

    async def delete(self, product: Product) -> None:
        """Delete product (soft delete by deactivating)."""
        product.is_active = False
        await self.db.flush()


class CatalogService:
    """
    Read-only catalog lookups used while pricing quotes.

    Pricing never writes to the catalog, and a product's base rate is only
    a suggestion for new lines.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_product(self, product_id: int) -> Product:
        return await ProductService(self.db).get_or_404(product_id)

    async def load_products(self, product_ids: Iterable[int], *, require_active: bool = True) -> dict[int, Product]:
        """
        Fetch the products referenced by quote lines, keyed by id.

        Raises:
            NotFoundError: If a product does not exist
            ValidationError: If ``require_active`` and a product is inactive
        """
        wanted = set(product_ids)
        if not wanted:
            return {}

        result = await self.db.execute(select(Product).where(Product.id.in_(wanted)))
        products = {product.id: product for product in result.scalars().all()}

        missing = sorted(wanted - products.keys())
        if missing:
            raise NotFoundError("Product", missing[0], missing=missing)

        if require_active:
            inactive = sorted(pid for pid, product in products.items() if not product.is_active)
            if inactive:
                raise ValidationError(
                    "Inactive products cannot be added to a quote",
                    product_ids=inactive,
                )

        return products

    async def category_names(self, product_ids: Iterable[int]) -> dict[int, str | None]:
        """Map product id to its category name, None when uncategorized."""
        wanted = set(product_ids)
        if not wanted:
            return {}

        result = await self.db.execute(
            select(Product.id, Category.name)
            .outerjoin(Category, Product.category_id == Category.id)
            .where(Product.id.in_(wanted))
        )
        return {product_id: name for product_id, name in result.all()}
