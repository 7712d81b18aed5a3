# services/product.py
from typing import List, Optional

from sqlalchemy import or_

from storefront.models.database_models import Product
from storefront.models.enums import ProductSort
from storefront.models.schemas.product import ProductCreate
from storefront.utils.exceptions import NotFoundError
from storefront.utils.logging import get_logger

from .base import BaseService

logger = get_logger(__name__)


class ProductService(BaseService[Product]):
    """Catalog lookups consumed by the order writer, plus admin upkeep."""

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        return self.db.get(Product, product_id)

    async def get_active(self, product_id: str) -> Optional[Product]:
        product = await self.get_by_id(product_id)
        if product is None or not product.active:
            return None
        return product

    async def list_active(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort: ProductSort = ProductSort.NEWEST,
    ) -> List[Product]:
        query = self.db.query(Product).filter(Product.active.is_(True))

        if category:
            query = query.filter(Product.category == category)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
            )

        if sort == ProductSort.AZ:
            query = query.order_by(Product.name.asc())
        elif sort == ProductSort.PRICE:
            query = query.order_by(Product.price.asc())
        else:
            query = query.order_by(Product.created_at.desc())

        return query.all()

    async def list_categories(self) -> List[str]:
        rows = (
            self.db.query(Product.category)
            .filter(Product.active.is_(True))
            .distinct()
            .order_by(Product.category)
            .all()
        )
        return [row[0] for row in rows]

    async def create(self, data: ProductCreate) -> Product:
        product = Product(**data.model_dump())
        product = await self._handle_db_operation(lambda: self.db.add(product) or product)
        logger.info(f"Created product {product.id} ({product.name})")
        return product

    async def deactivate(self, product_id: str) -> Product:
        """Soft delete: historical order items keep pointing at the product."""
        product = await self.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found")

        product.active = False
        return await self._handle_db_operation(lambda: product)
